"""ORM model for application users (auth and RBAC)."""

from sqlalchemy import Boolean, Column, DateTime, Integer, String, func
from sqlalchemy.orm import relationship

from livo.models.base import Base


class User(Base):
    """
    User account for JWT authentication and role-based access control.

    refresh_token holds the single currently valid refresh token; NULL means
    no active session. deleted_at marks a soft-deleted account.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(50), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    refresh_token = Column(String(1024), nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)

    role_assignments = relationship(
        "UserRole",
        foreign_keys="UserRole.user_id",
        back_populates="user",
        order_by="UserRole.id",
        cascade="all, delete-orphan",
    )

    @property
    def role_names(self) -> list[str]:
        return [assignment.role.name for assignment in self.role_assignments]
