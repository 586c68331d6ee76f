"""
Shared constants for tests.

    from tests.mocks.models import TEST_SECRET, TEST_RATE_LIMIT
"""

from __future__ import annotations

# Long enough that PyJWT does not flag the HMAC key as weak.
TEST_SECRET = "test-secret-that-is-long-enough-for-hs256"

# Matches the rate limit configured for both the core and the HTTP app.
TEST_RATE_LIMIT = 5

PHONE = "+15550000001"
OTHER_PHONE = "+15550000002"
