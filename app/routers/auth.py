"""
Authentication endpoints for the phone OTP flow, issuing JWT bearer tokens.
"""

from fastapi import APIRouter, HTTPException, status

from app.dependencies import AuthenticatorDep
from app.models import (
    RequestOtpRequest,
    RequestOtpResponse,
    VerifyOtpRequest,
    VerifyOtpResponse,
)
from app.services.errors import (
    RateLimited,
    TemporaryFailure,
    Unauthorized,
    ValidationError,
)

router = APIRouter(prefix="/v1", tags=["auth"])


@router.post(
    "/request-otp",
    response_model=RequestOtpResponse,
    operation_id="requestOtp",
    summary="Request a one-time password for the given phone",
)
async def request_otp(body: RequestOtpRequest, authenticator: AuthenticatorDep) -> RequestOtpResponse:
    """
    Generate a 6-digit OTP and store it in Redis.
    There is no SMS gateway; the code is written to the server log.
    """
    try:
        issued = await authenticator.request_otp(body.phone)
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message) from None
    except RateLimited as exc:
        raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail=exc.message) from None
    except TemporaryFailure as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=exc.message) from None

    return RequestOtpResponse(
        message="OTP sent",
        expires_in_seconds=int(issued.expires_in.total_seconds()),
    )


@router.post(
    "/verify-otp",
    response_model=VerifyOtpResponse,
    operation_id="verifyOtp",
    summary="Verify OTP and login/register the user",
)
async def verify_otp(body: VerifyOtpRequest, authenticator: AuthenticatorDep) -> VerifyOtpResponse:
    """
    Consume the OTP. On success, create the user if this phone is new and
    return a signed JWT.
    """
    try:
        token = await authenticator.verify_otp(body.phone, body.code)
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message) from None
    except Unauthorized as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=exc.message) from None
    except TemporaryFailure as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=exc.message) from None

    return VerifyOtpResponse(message="Login success", token=token)
