"""Request/response schemas for user and role administration."""

from datetime import datetime
from typing import TYPE_CHECKING

from pydantic import BaseModel, EmailStr, Field

if TYPE_CHECKING:
    from livo.models import Role, User

# Min/max lengths for username and password validation.
USERNAME_MIN_LEN = 3
USERNAME_MAX_LEN = 50
PASSWORD_MIN_LEN = 6
PASSWORD_MAX_LEN = 128

# Matches the timestamp layout used in role assignment listings.
ASSIGNED_AT_FORMAT = "%Y-%m-%d %H:%M:%S"


class RoleResponse(BaseModel):
    """Role held by a user, with who granted it and when."""

    id: int
    role: str
    description: str
    assigned_by: str | None = None
    assigned_at: str | None = None


class UserResponse(BaseModel):
    """User snapshot returned by auth and user-manager endpoints (no secrets)."""

    id: int
    username: str
    email: str
    name: str
    is_active: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None
    roles: list[RoleResponse] = Field(default_factory=list)

    @classmethod
    def from_user(cls, user: "User") -> "UserResponse":
        roles = [
            RoleResponse(
                id=ur.role.id,
                role=ur.role.name,
                description=ur.role.description or "",
                assigned_by=ur.assigner.username if ur.assigner is not None else None,
                assigned_at=ur.created_at.strftime(ASSIGNED_AT_FORMAT) if ur.created_at else None,
            )
            for ur in user.role_assignments
        ]
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            name=user.name,
            is_active=user.is_active,
            created_at=user.created_at,
            updated_at=user.updated_at,
            roles=roles,
        )


class RoleListItem(BaseModel):
    """Role entry for the role listing."""

    id: int
    role: str
    description: str
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_role(cls, role: "Role") -> "RoleListItem":
        return cls(
            id=role.id,
            role=role.name,
            description=role.description or "",
            created_at=role.created_at,
            updated_at=role.updated_at,
        )


class Pagination(BaseModel):
    page: int
    limit: int
    total: int


class UsersListResponse(BaseModel):
    users: list[UserResponse]
    pagination: Pagination


class RolesListResponse(BaseModel):
    roles: list[RoleListItem]
    pagination: Pagination


class CreateUserRequest(BaseModel):
    """Administrator-created user, optionally with an initial role."""

    username: str = Field(..., min_length=USERNAME_MIN_LEN, max_length=USERNAME_MAX_LEN)
    email: EmailStr
    password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)
    name: str = Field(..., min_length=1, max_length=255)
    is_active: bool = True
    initial_role: str | None = Field(default=None, description="Role granted on creation")


class UpdateUserStatusRequest(BaseModel):
    is_active: bool


class UpdateUserPasswordRequest(BaseModel):
    new_password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)


class UpdateUserProfileRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    email: EmailStr | None = None


class RoleChangeRequest(BaseModel):
    """Body for assigning or removing a role."""

    role_name: str = Field(..., min_length=1, max_length=50)
