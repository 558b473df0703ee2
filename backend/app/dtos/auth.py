"""Auth and profile DTOs"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"
URL_PATTERN = r"^https?://\S+$"


class RegisterRequest(BaseModel):
    email: str = Field(..., pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=8)
    full_name: Optional[str] = Field(default=None, alias="fullName", min_length=2)

    model_config = ConfigDict(populate_by_name=True)


class LoginRequest(BaseModel):
    email: str = Field(..., pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=1)


class RefreshTokenRequest(BaseModel):
    refresh_token: str = Field(..., alias="refreshToken", min_length=1)

    model_config = ConfigDict(populate_by_name=True)


class UpdateProfileRequest(BaseModel):
    full_name: Optional[str] = Field(default=None, alias="fullName", min_length=2)
    avatar_url: Optional[str] = Field(default=None, alias="avatarUrl", pattern=URL_PATTERN)

    model_config = ConfigDict(populate_by_name=True)


class UserResponse(BaseModel):
    id: str
    email: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None


class AuthResult(BaseModel):
    """User plus the session issued by the identity provider (passed through as-is)."""

    user: UserResponse
    session: Optional[Dict[str, Any]] = None
