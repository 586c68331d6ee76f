"""Tests for the /v1 auth endpoints."""

from app.services.tokens import validate_token
from tests.mocks.models import OTHER_PHONE, PHONE, TEST_RATE_LIMIT, TEST_SECRET


class TestRequestOtp:
    def test_request_otp_success(self, client, sync_redis):
        resp = client.post("/v1/request-otp", json={"phone": PHONE})
        assert resp.status_code == 200
        data = resp.json()
        assert data["message"] == "OTP sent"
        assert data["expires_in_seconds"] == 120
        assert len(sync_redis.get(f"otp:{PHONE}")) == 6

    def test_request_otp_does_not_leak_code(self, client, sync_redis):
        resp = client.post("/v1/request-otp", json={"phone": PHONE})
        assert sync_redis.get(f"otp:{PHONE}") not in resp.text

    def test_request_otp_blank_phone(self, client):
        resp = client.post("/v1/request-otp", json={"phone": "  "})
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Phone number is required"

    def test_request_otp_missing_phone(self, client):
        resp = client.post("/v1/request-otp", json={})
        assert resp.status_code == 422

    def test_request_otp_rate_limited(self, client):
        for i in range(TEST_RATE_LIMIT):
            resp = client.post("/v1/request-otp", json={"phone": PHONE})
            assert resp.status_code == 200, f"Request {i + 1} should succeed"

        resp = client.post("/v1/request-otp", json={"phone": PHONE})
        assert resp.status_code == 429
        assert resp.json()["detail"] == "Rate limit exceeded"

        # Another phone has its own window
        resp = client.post("/v1/request-otp", json={"phone": OTHER_PHONE})
        assert resp.status_code == 200


class TestVerifyOtp:
    def test_verify_valid_otp(self, client, sync_redis):
        client.post("/v1/request-otp", json={"phone": PHONE})
        code = sync_redis.get(f"otp:{PHONE}")

        resp = client.post("/v1/verify-otp", json={"phone": PHONE, "code": code})
        assert resp.status_code == 200
        data = resp.json()
        assert data["message"] == "Login success"
        assert validate_token(data["token"], TEST_SECRET) == PHONE

    def test_verify_seeded_otp(self, client, sync_redis):
        sync_redis.set(f"otp:{PHONE}", "654321", px=60_000)

        resp = client.post("/v1/verify-otp", json={"phone": PHONE, "code": "654321"})
        assert resp.status_code == 200

    def test_verify_invalid_otp(self, client, sync_redis):
        sync_redis.set(f"otp:{PHONE}", "654321", px=60_000)

        resp = client.post("/v1/verify-otp", json={"phone": PHONE, "code": "000000"})
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Invalid OTP"
        # Wrong guesses leave the pending code in place
        assert sync_redis.get(f"otp:{PHONE}") == "654321"

    def test_verify_without_request(self, client):
        resp = client.post("/v1/verify-otp", json={"phone": "+300", "code": "000000"})
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Invalid OTP"

    def test_verify_otp_wrong_length(self, client):
        resp = client.post("/v1/verify-otp", json={"phone": PHONE, "code": "12345"})
        assert resp.status_code == 422

    def test_verify_otp_blank_phone(self, client):
        resp = client.post("/v1/verify-otp", json={"phone": "", "code": "123456"})
        assert resp.status_code == 400

    def test_otp_cannot_be_reused(self, client, sync_redis):
        """An OTP can only be used once."""
        sync_redis.set(f"otp:{PHONE}", "111222", px=60_000)

        resp1 = client.post("/v1/verify-otp", json={"phone": PHONE, "code": "111222"})
        assert resp1.status_code == 200

        resp2 = client.post("/v1/verify-otp", json={"phone": PHONE, "code": "111222"})
        assert resp2.status_code == 401

    def test_verify_registers_user_once(self, client, login):
        headers = login(PHONE)
        login(PHONE)

        resp = client.get("/v1/users", headers=headers)
        assert resp.status_code == 200
        assert [u["phone"] for u in resp.json()["users"]] == [PHONE]


class TestRedisOutage:
    def test_request_otp_store_down(self, client, redis_server):
        redis_server.connected = False
        resp = client.post("/v1/request-otp", json={"phone": PHONE})
        assert resp.status_code == 503
        assert resp.json()["detail"] == "Temporary service issue. Please try again."

    def test_verify_otp_store_down(self, client, redis_server):
        redis_server.connected = False
        resp = client.post("/v1/verify-otp", json={"phone": PHONE, "code": "123456"})
        assert resp.status_code == 503
