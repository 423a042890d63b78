"""Request/response schemas for auth endpoints and decoded token claims."""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

from livo.schemas.user import (
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    USERNAME_MAX_LEN,
    USERNAME_MIN_LEN,
    UserResponse,
)


class RegisterRequest(BaseModel):
    """Self-registration payload."""

    username: str = Field(
        ..., min_length=USERNAME_MIN_LEN, max_length=USERNAME_MAX_LEN, description="Username"
    )
    email: EmailStr = Field(..., description="Email address")
    password: str = Field(
        ..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN, description="Password"
    )
    name: str = Field(..., min_length=1, max_length=255, description="Full name")


class LoginRequest(BaseModel):
    """Credentials for login."""

    username: str = Field(..., min_length=1, max_length=USERNAME_MAX_LEN, description="Username")
    password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN, description="Password")


class RefreshTokenRequest(BaseModel):
    refresh_token: str = Field(..., min_length=1, description="Refresh token from login or refresh")


class TokenPair(BaseModel):
    """Access/refresh token pair issued together."""

    access_token: str = Field(..., description="JWT access token")
    refresh_token: str = Field(..., description="JWT refresh token")


class LoginResponse(TokenPair):
    """Tokens plus a snapshot of the authenticated user."""

    token_type: str = Field(default="bearer", description="Token type")
    user: UserResponse


class AccessClaims(BaseModel):
    """
    Claims carried by an access token.

    roles is the role-name snapshot taken when the token was issued; it is not
    refreshed from storage until the next login or refresh.
    """

    user_id: int
    username: str
    roles: list[str]
    issued_at: datetime
    expires_at: datetime


class RefreshClaims(BaseModel):
    """Claims carried by a refresh token."""

    user_id: int
    issued_at: datetime
    expires_at: datetime
