"""Query helpers over the users, roles and user_roles tables."""

import logging

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from livo.models import Role, User, UserRole

logger = logging.getLogger(__name__)


def live_users(db: Session) -> Query:
    """Users that have not been soft-deleted."""
    return db.query(User).filter(User.deleted_at.is_(None))


def get_user(db: Session, user_id: int) -> User | None:
    return live_users(db).filter(User.id == user_id).first()


def get_user_by_username(db: Session, username: str) -> User | None:
    return live_users(db).filter(User.username == username).first()


def username_or_email_taken(db: Session, username: str, email: str) -> bool:
    """Soft-deleted rows still hold their unique username and email."""
    existing = (
        db.query(User.id)
        .filter(or_(User.username == username, User.email == email))
        .first()
    )
    return existing is not None


def email_taken_by_other(db: Session, email: str, user_id: int) -> bool:
    existing = db.query(User.id).filter(User.email == email, User.id != user_id).first()
    return existing is not None


def get_role_by_name(db: Session, role_name: str) -> Role | None:
    return db.query(Role).filter(Role.name == role_name).first()


def find_assignment(db: Session, user_id: int, role_id: int) -> UserRole | None:
    return (
        db.query(UserRole)
        .filter(UserRole.user_id == user_id, UserRole.role_id == role_id)
        .first()
    )


def grant_role_best_effort(
    db: Session, user: User, role_name: str, assigned_by: int | None
) -> bool:
    """
    Grant role_name to user inside a savepoint; never raises.

    Returns False (and logs) when the role is not seeded or the insert fails;
    the surrounding transaction is left intact either way.
    """
    if not role_name:
        return False
    try:
        with db.begin_nested():
            role = get_role_by_name(db, role_name)
            if role is None:
                logger.warning(
                    "Default role %r not found; user %s created without it", role_name, user.id
                )
                return False
            db.add(UserRole(user_id=user.id, role_id=role.id, assigned_by=assigned_by))
    except SQLAlchemyError as e:
        logger.warning("Could not grant default role %r to user %s: %s", role_name, user.id, e)
        return False
    return True
