"""Pydantic models for the OTP Auth API."""

from datetime import datetime
from typing import List

from pydantic import BaseModel, Field


class RequestOtpRequest(BaseModel):
    """Body of POST /v1/request-otp."""
    phone: str = Field(..., max_length=32, description="User's phone number", examples=["+1234567890"])


class RequestOtpResponse(BaseModel):
    message: str = Field(..., description="Success message", examples=["OTP sent"])
    expires_in_seconds: int = Field(..., description="Seconds until the code expires")


class VerifyOtpRequest(BaseModel):
    """Body of POST /v1/verify-otp."""
    phone: str = Field(..., max_length=32, description="User's phone number", examples=["+1234567890"])
    code: str = Field(..., pattern=r"^\d{6}$", description="6-digit OTP code", examples=["123456"])


class VerifyOtpResponse(BaseModel):
    message: str = Field(..., description="Success message", examples=["Login success"])
    token: str = Field(..., description="JWT bearer token")


class User(BaseModel):
    """User entity with phone number and registration time."""
    id: int = Field(..., description="Unique user identifier")
    phone: str = Field(..., description="User's phone number")
    created_at: datetime = Field(..., description="User registration timestamp")


class UserListResponse(BaseModel):
    """Paginated list of users."""
    users: List[User] = Field(default_factory=list, description="List of users")
    total: int = Field(..., description="Total number of matching users")
    offset: int = Field(..., description="Current offset for pagination")
    limit: int = Field(..., description="Number of users per page")


class ComponentHealth(BaseModel):
    status: str = Field(..., description="Component status (up/down)")


class HealthResponse(BaseModel):
    status: str = Field(..., description="Overall service status")
    version: str
    timestamp: datetime
    redis: ComponentHealth
    database: ComponentHealth
