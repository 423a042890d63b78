"""Auth endpoints: register, login, refresh and logout."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from livo.api.deps import get_auth_service, get_current_claims
from livo.schemas.auth import (
    AccessClaims,
    LoginRequest,
    LoginResponse,
    RefreshTokenRequest,
    RegisterRequest,
    TokenPair,
)
from livo.schemas.common import ApiResponse
from livo.schemas.user import UserResponse
from livo.services.auth import AuthService

router = APIRouter()


def _login_response(pair: TokenPair, user) -> LoginResponse:
    return LoginResponse(
        access_token=pair.access_token,
        refresh_token=pair.refresh_token,
        user=UserResponse.from_user(user),
    )


@router.post(
    "/register",
    response_model=ApiResponse[UserResponse],
    status_code=status.HTTP_201_CREATED,
)
def register(
    body: RegisterRequest,
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> ApiResponse[UserResponse]:
    """Register a new account. The default role is granted when it exists."""
    user = service.register(body.username, body.email, body.password, body.name)
    return ApiResponse(message="User registered successfully", data=UserResponse.from_user(user))


@router.post("/login", response_model=ApiResponse[LoginResponse])
def login(
    body: LoginRequest,
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> ApiResponse[LoginResponse]:
    """
    Authenticate with username and password; returns an access/refresh token pair.
    Include the access token in the Authorization header as: Bearer <access_token>
    """
    pair, user = service.login(body.username, body.password)
    return ApiResponse(message="Login successful", data=_login_response(pair, user))


@router.post("/refresh", response_model=ApiResponse[LoginResponse])
def refresh(
    body: RefreshTokenRequest,
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> ApiResponse[LoginResponse]:
    """Exchange the active refresh token for a new pair; the old refresh token stops working."""
    pair, user = service.refresh(body.refresh_token)
    return ApiResponse(message="Token refreshed successfully", data=_login_response(pair, user))


@router.post("/logout", response_model=ApiResponse[None])
def logout(
    claims: Annotated[AccessClaims, Depends(get_current_claims)],
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> ApiResponse[None]:
    """End the caller's session by clearing the stored refresh token."""
    service.logout(claims.user_id)
    return ApiResponse(message="Logout successful")
