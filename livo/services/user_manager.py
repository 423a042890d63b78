"""User and role administration with hierarchy-based permission checks."""

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from livo.core.database import safe_commit
from livo.core.errors import (
    AlreadyAssigned,
    DuplicateEmail,
    DuplicateUser,
    InvalidRole,
    PermissionDenied,
    RoleNotFound,
    SelfDeletion,
    UserNotFound,
)
from livo.core.roles import RoleHierarchy, default_hierarchy
from livo.core.security import hash_password
from livo.models import Role, User, UserRole
from livo.schemas.auth import AccessClaims
from livo.services import user_store

if TYPE_CHECKING:
    from livo.core.config import Settings

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


def _page_bounds(page: int, limit: int) -> tuple[int, int]:
    page = max(page, 1)
    limit = min(max(limit, 1), MAX_PAGE_SIZE)
    return page, limit


class UserManagerService:
    """
    Administrative operations on users and their roles.

    The acting user's authority is taken from the role snapshot in their
    access token (AccessClaims.roles), not re-read from storage.
    """

    def __init__(
        self,
        db: Session,
        settings: "Settings",
        hierarchy: RoleHierarchy = default_hierarchy,
    ) -> None:
        self.db = db
        self.settings = settings
        self.hierarchy = hierarchy

    def _actor_level(self, actor: AccessClaims) -> int:
        return self.hierarchy.max_level(actor.roles)

    def _user_level(self, user: User) -> int:
        return self.hierarchy.max_level(user.role_names)

    def _require_user(self, user_id: int) -> User:
        user = user_store.get_user(self.db, user_id)
        if user is None:
            raise UserNotFound()
        return user

    def list_users(
        self, page: int = 1, limit: int = 10, search: str | None = None
    ) -> tuple[list[User], int]:
        """Page through users, optionally filtering by username or name substring."""
        page, limit = _page_bounds(page, limit)
        query = user_store.live_users(self.db)
        search = (search or "").strip()
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(User.username.ilike(pattern), User.name.ilike(pattern)))
        total = query.count()
        users = query.order_by(User.id.asc()).limit(limit).offset((page - 1) * limit).all()
        return users, total

    def get_user(self, user_id: int) -> User:
        return self._require_user(user_id)

    def update_status(self, user_id: int, is_active: bool) -> User:
        user = self._require_user(user_id)
        user.is_active = is_active
        safe_commit(self.db)
        logger.info("User id=%s is_active set to %s", user_id, is_active)
        return user

    def assign_role(self, user_id: int, role_name: str, actor: AccessClaims) -> User:
        """
        Grant role_name to a user.

        Checks run in order: user exists, role exists, not already assigned,
        actor's highest level is at least the role's level.
        """
        user = self._require_user(user_id)
        role = user_store.get_role_by_name(self.db, role_name)
        if role is None:
            raise RoleNotFound()
        if any(ur.role_id == role.id for ur in user.role_assignments):
            raise AlreadyAssigned()
        if not self.hierarchy.can_assign(self._actor_level(actor), role_name):
            raise PermissionDenied("You do not have permission to assign this role")

        user.role_assignments.append(
            UserRole(user_id=user.id, role_id=role.id, assigned_by=actor.user_id)
        )
        safe_commit(self.db, AlreadyAssigned())
        logger.info(
            "Role %s assigned to user id=%s by user id=%s", role_name, user_id, actor.user_id
        )
        return user

    def remove_role(self, user_id: int, role_name: str, actor: AccessClaims) -> User:
        """Revoke role_name from a user; removing a role the user lacks is a no-op."""
        role = user_store.get_role_by_name(self.db, role_name)
        if role is None:
            raise RoleNotFound()
        if not self.hierarchy.can_assign(self._actor_level(actor), role_name):
            raise PermissionDenied("You do not have permission to remove this role")

        user = self._require_user(user_id)
        assignment = user_store.find_assignment(self.db, user.id, role.id)
        if assignment is not None:
            user.role_assignments.remove(assignment)
            safe_commit(self.db)
            logger.info(
                "Role %s removed from user id=%s by user id=%s",
                role_name,
                user_id,
                actor.user_id,
            )
        return user

    def create_user(
        self,
        username: str,
        email: str,
        password: str,
        name: str,
        actor: AccessClaims,
        is_active: bool = True,
        initial_role: str | None = None,
    ) -> User:
        """
        Create a user on behalf of an administrator.

        With initial_role the role must exist in the hierarchy, be within the
        actor's authority and be seeded; without it the default role is
        granted best effort. Nothing is persisted when a check fails.
        """
        if user_store.username_or_email_taken(self.db, username, email):
            raise DuplicateUser()

        role: Role | None = None
        if initial_role:
            if initial_role not in self.hierarchy:
                raise InvalidRole(detail=f"unknown role {initial_role!r}")
            if not self.hierarchy.can_assign(self._actor_level(actor), initial_role):
                raise PermissionDenied("You do not have permission to assign this role")
            role = user_store.get_role_by_name(self.db, initial_role)
            if role is None:
                raise RoleNotFound()

        user = User(
            username=username,
            email=email,
            password_hash=hash_password(password, self.settings.BCRYPT_ROUNDS),
            name=name,
            is_active=is_active,
        )
        if role is not None:
            user.role_assignments.append(UserRole(role_id=role.id, assigned_by=actor.user_id))
        self.db.add(user)

        if role is None:
            try:
                self.db.flush()
            except IntegrityError as e:
                self.db.rollback()
                raise DuplicateUser() from e
            user_store.grant_role_best_effort(
                self.db, user, self.settings.DEFAULT_ROLE, assigned_by=actor.user_id
            )
        safe_commit(self.db, DuplicateUser())
        self.db.refresh(user)
        logger.info("User id=%s created by user id=%s", user.id, actor.user_id)
        return user

    def delete_user(self, user_id: int, actor: AccessClaims) -> None:
        """
        Soft-delete a user and drop their role assignments.

        The actor cannot delete themselves and needs strictly more authority
        than the target.
        """
        user = self._require_user(user_id)
        if user.id == actor.user_id:
            raise SelfDeletion()
        if not self.hierarchy.can_delete_user(self._actor_level(actor), self._user_level(user)):
            raise PermissionDenied("You do not have permission to delete this user")

        user.role_assignments.clear()
        user.refresh_token = None
        user.deleted_at = datetime.now(UTC)
        safe_commit(self.db)
        logger.info("User id=%s deleted by user id=%s", user_id, actor.user_id)

    def update_password(self, user_id: int, new_password: str, actor: AccessClaims) -> User:
        """Set a new password and end the user's active session."""
        user = self._require_user(user_id)
        if not self.hierarchy.can_update_user(self._actor_level(actor), self._user_level(user)):
            raise PermissionDenied("You do not have permission to update this user")

        user.password_hash = hash_password(new_password, self.settings.BCRYPT_ROUNDS)
        user.refresh_token = None
        safe_commit(self.db)
        logger.info("Password reset for user id=%s by user id=%s", user_id, actor.user_id)
        return user

    def update_profile(
        self,
        user_id: int,
        actor: AccessClaims,
        name: str | None = None,
        email: str | None = None,
    ) -> User:
        user = self._require_user(user_id)
        if email and email != user.email and user_store.email_taken_by_other(
            self.db, email, user.id
        ):
            raise DuplicateEmail()
        if not self.hierarchy.can_update_user(self._actor_level(actor), self._user_level(user)):
            raise PermissionDenied("You do not have permission to update this user")

        if name:
            user.name = name
        if email:
            user.email = email
        safe_commit(self.db, DuplicateEmail())
        return user

    def list_roles(self, page: int = 1, limit: int = 10) -> tuple[list[Role], int]:
        page, limit = _page_bounds(page, limit)
        query = self.db.query(Role)
        total = query.count()
        roles = query.order_by(Role.id.asc()).limit(limit).offset((page - 1) * limit).all()
        return roles, total
