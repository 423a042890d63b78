"""User-manager endpoints: user listing, administration and role assignment."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from livo.api.deps import get_current_claims, get_user_manager, require_roles
from livo.core.roles import USER_MANAGEMENT_ROLES
from livo.schemas.auth import AccessClaims
from livo.schemas.common import ApiResponse
from livo.schemas.user import (
    CreateUserRequest,
    Pagination,
    RoleChangeRequest,
    RoleListItem,
    RolesListResponse,
    UpdateUserPasswordRequest,
    UpdateUserProfileRequest,
    UpdateUserStatusRequest,
    UserResponse,
    UsersListResponse,
)
from livo.services.user_manager import UserManagerService

router = APIRouter()

Manager = Annotated[UserManagerService, Depends(get_user_manager)]
Authenticated = Annotated[AccessClaims, Depends(get_current_claims)]
UserAdmin = Annotated[AccessClaims, Depends(require_roles(*USER_MANAGEMENT_ROLES))]


@router.get("/users", response_model=ApiResponse[UsersListResponse])
def list_users(
    _claims: Authenticated,
    service: Manager,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
    search: Annotated[str | None, Query(max_length=100)] = None,
) -> ApiResponse[UsersListResponse]:
    """List users ordered by id; search matches username or name (case-insensitive)."""
    users, total = service.list_users(page=page, limit=limit, search=search)
    return ApiResponse(
        message="Users retrieved successfully",
        data=UsersListResponse(
            users=[UserResponse.from_user(u) for u in users],
            pagination=Pagination(page=page, limit=limit, total=total),
        ),
    )


@router.get("/users/{user_id}", response_model=ApiResponse[UserResponse])
def get_user(user_id: int, _claims: Authenticated, service: Manager) -> ApiResponse[UserResponse]:
    user = service.get_user(user_id)
    return ApiResponse(message="User retrieved successfully", data=UserResponse.from_user(user))


@router.get("/roles", response_model=ApiResponse[RolesListResponse])
def list_roles(
    _claims: Authenticated,
    service: Manager,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
) -> ApiResponse[RolesListResponse]:
    roles, total = service.list_roles(page=page, limit=limit)
    return ApiResponse(
        message="Roles retrieved successfully",
        data=RolesListResponse(
            roles=[RoleListItem.from_role(r) for r in roles],
            pagination=Pagination(page=page, limit=limit, total=total),
        ),
    )


@router.post(
    "/users",
    response_model=ApiResponse[UserResponse],
    status_code=status.HTTP_201_CREATED,
)
def create_user(
    body: CreateUserRequest, actor: UserAdmin, service: Manager
) -> ApiResponse[UserResponse]:
    """Create a user, optionally with an initial role within the caller's authority."""
    user = service.create_user(
        username=body.username,
        email=body.email,
        password=body.password,
        name=body.name,
        actor=actor,
        is_active=body.is_active,
        initial_role=body.initial_role,
    )
    return ApiResponse(message="User created successfully", data=UserResponse.from_user(user))


@router.put("/users/{user_id}/status", response_model=ApiResponse[UserResponse])
def update_user_status(
    user_id: int, body: UpdateUserStatusRequest, _actor: UserAdmin, service: Manager
) -> ApiResponse[UserResponse]:
    user = service.update_status(user_id, body.is_active)
    return ApiResponse(message="User status updated", data=UserResponse.from_user(user))


@router.put("/users/{user_id}/password", response_model=ApiResponse[UserResponse])
def update_user_password(
    user_id: int, body: UpdateUserPasswordRequest, actor: UserAdmin, service: Manager
) -> ApiResponse[UserResponse]:
    """Reset a user's password; the user must log in again."""
    user = service.update_password(user_id, body.new_password, actor)
    return ApiResponse(message="Password updated", data=UserResponse.from_user(user))


@router.put("/users/{user_id}/profile", response_model=ApiResponse[UserResponse])
def update_user_profile(
    user_id: int, body: UpdateUserProfileRequest, actor: UserAdmin, service: Manager
) -> ApiResponse[UserResponse]:
    user = service.update_profile(user_id, actor, name=body.name, email=body.email)
    return ApiResponse(message="Profile updated", data=UserResponse.from_user(user))


@router.delete("/users/{user_id}", response_model=ApiResponse[None])
def delete_user(user_id: int, actor: UserAdmin, service: Manager) -> ApiResponse[None]:
    service.delete_user(user_id, actor)
    return ApiResponse(message="User deleted successfully")


@router.post("/users/{user_id}/roles", response_model=ApiResponse[UserResponse])
def assign_role(
    user_id: int, body: RoleChangeRequest, actor: UserAdmin, service: Manager
) -> ApiResponse[UserResponse]:
    user = service.assign_role(user_id, body.role_name, actor)
    return ApiResponse(message="Role assigned to user", data=UserResponse.from_user(user))


@router.delete("/users/{user_id}/roles", response_model=ApiResponse[UserResponse])
def remove_role(
    user_id: int, body: RoleChangeRequest, actor: UserAdmin, service: Manager
) -> ApiResponse[UserResponse]:
    user = service.remove_role(user_id, body.role_name, actor)
    return ApiResponse(message="Role removed from user", data=UserResponse.from_user(user))
