"""Pydantic request/response schemas."""

from livo.schemas.auth import (
    AccessClaims,
    LoginRequest,
    LoginResponse,
    RefreshClaims,
    RefreshTokenRequest,
    RegisterRequest,
    TokenPair,
)
from livo.schemas.common import ApiResponse
from livo.schemas.health import HealthResponse
from livo.schemas.user import (
    CreateUserRequest,
    Pagination,
    RoleChangeRequest,
    RoleListItem,
    RoleResponse,
    RolesListResponse,
    UpdateUserPasswordRequest,
    UpdateUserProfileRequest,
    UpdateUserStatusRequest,
    UserResponse,
    UsersListResponse,
)

__all__ = [
    "AccessClaims",
    "ApiResponse",
    "CreateUserRequest",
    "HealthResponse",
    "LoginRequest",
    "LoginResponse",
    "Pagination",
    "RefreshClaims",
    "RefreshTokenRequest",
    "RegisterRequest",
    "RoleChangeRequest",
    "RoleListItem",
    "RoleResponse",
    "RolesListResponse",
    "TokenPair",
    "UpdateUserPasswordRequest",
    "UpdateUserProfileRequest",
    "UpdateUserStatusRequest",
    "UserResponse",
    "UsersListResponse",
]
