"""SQLAlchemy ORM models."""

from livo.models.base import Base
from livo.models.role import Role, UserRole
from livo.models.user import User

__all__ = ["Base", "Role", "User", "UserRole"]
