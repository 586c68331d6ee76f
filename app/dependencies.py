import logging
from typing import Annotated

from fastapi import Depends, Header, HTTPException, Query, Request, status

from app.db import UserStore
from app.services.authenticator import Authenticator
from app.services.errors import Unauthorized

logger = logging.getLogger(__name__)


# ── Collaborators ─────────────────────────────────────────────────────────


def get_authenticator(request: Request) -> Authenticator:
    return request.app.state.authenticator


def get_user_store(request: Request) -> UserStore:
    return request.app.state.users


AuthenticatorDep = Annotated[Authenticator, Depends(get_authenticator)]
UserStoreDep = Annotated[UserStore, Depends(get_user_store)]


# ── Pagination ─────────────────────────────────────────────────────────────


class PaginationParams:
    def __init__(
        self,
        offset: Annotated[int, Query(ge=0, description="Offset for pagination")] = 0,
        limit: Annotated[int, Query(ge=1, le=100, description="Items per page")] = 10,
        search: Annotated[str | None, Query(max_length=32, description="Search by phone number")] = None,
    ):
        self.offset = offset
        self.limit = limit
        self.search = search or None


# ── Bearer auth ────────────────────────────────────────────────────────────


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_phone(
    authenticator: AuthenticatorDep,
    authorization: Annotated[str | None, Header()] = None,
) -> str:
    """Resolve the caller's phone from an ``Authorization: Bearer`` header."""
    if not authorization:
        raise _unauthorized("Authorization header required")

    scheme, _, token = authorization.partition(" ")
    if scheme != "Bearer" or not token.strip():
        raise _unauthorized("Invalid authorization header format")

    try:
        return authenticator.authenticate_request(token.strip())
    except Unauthorized as exc:
        raise _unauthorized(exc.message) from None


CurrentPhone = Annotated[str, Depends(get_current_phone)]
