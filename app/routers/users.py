"""
User directory endpoints (bearer token required).
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Path, Request, status

from app.dependencies import CurrentPhone, PaginationParams, UserStoreDep
from app.models import User, UserListResponse
from app.rate_limit import USERS, limiter
from app.services.errors import StoreUnavailable
from app.services.remote import bounded

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/users", tags=["users"])


@router.get(
    "",
    response_model=UserListResponse,
    operation_id="listUsers",
    summary="List users with pagination and phone search",
)
@limiter.limit(USERS)
async def list_users(
    request: Request,
    current_phone: CurrentPhone,
    users: UserStoreDep,
    pagination: Annotated[PaginationParams, Depends()],
) -> UserListResponse:
    try:
        items = await bounded(
            users.list_users(
                limit=pagination.limit,
                offset=pagination.offset,
                search=pagination.search,
            )
        )
        total = await bounded(users.count_users(pagination.search))
    except (StoreUnavailable, TimeoutError) as exc:
        logger.error(
            "List users failed (offset=%d limit=%d search=%r): %s",
            pagination.offset,
            pagination.limit,
            pagination.search,
            exc,
        )
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Failed to fetch users",
        ) from None

    return UserListResponse(
        users=items,
        total=total,
        offset=pagination.offset,
        limit=pagination.limit,
    )


@router.get(
    "/{user_id}",
    response_model=User,
    operation_id="getUser",
    summary="Get a single user by ID",
)
@limiter.limit(USERS)
async def get_user(
    request: Request,
    current_phone: CurrentPhone,
    users: UserStoreDep,
    user_id: Annotated[int, Path(ge=1)],
) -> User:
    try:
        user = await bounded(users.get_by_id(user_id))
    except (StoreUnavailable, TimeoutError) as exc:
        logger.error("Get user %d failed: %s", user_id, exc)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Failed to fetch user",
        ) from None

    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user
