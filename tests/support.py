"""Shared fixtures for tests: in-memory SQLite schema, seeded roles and settings."""

import unittest
from datetime import UTC, datetime, timedelta

from pydantic import SecretStr
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from livo.core.config import Settings
from livo.core.roles import ROLE_DESCRIPTIONS, ROLE_LEVELS
from livo.core.security import hash_password
from livo.models import Base, Role, User, UserRole
from livo.schemas.auth import AccessClaims

TEST_SECRET = "test-secret-key"


def make_settings(**overrides: object) -> Settings:
    """Settings isolated from any local .env; cheap bcrypt cost for speed."""
    values: dict[str, object] = {
        "JWT_SECRET": SecretStr(TEST_SECRET),
        "BCRYPT_ROUNDS": 4,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def make_session_factory() -> tuple[object, sessionmaker]:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return engine, sessionmaker(bind=engine, autocommit=False, autoflush=False)


def seed_roles(db: Session, names: list[str] | None = None) -> None:
    for name in names if names is not None else list(ROLE_LEVELS):
        db.add(Role(name=name, description=ROLE_DESCRIPTIONS.get(name, "")))
    db.commit()


def make_user(
    db: Session,
    username: str,
    password: str = "pw123456",
    roles: tuple[str, ...] = (),
    is_active: bool = True,
) -> User:
    """Insert a user directly, bypassing services, with the given roles."""
    user = User(
        username=username,
        email=f"{username}@example.com",
        password_hash=hash_password(password, rounds=4),
        name=username.title(),
        is_active=is_active,
    )
    db.add(user)
    db.flush()
    for role_name in roles:
        role = db.query(Role).filter(Role.name == role_name).one()
        db.add(UserRole(user_id=user.id, role_id=role.id, assigned_by=None))
    db.commit()
    db.refresh(user)
    return user


def claims_for(user_id: int, *roles: str, username: str = "actor") -> AccessClaims:
    """Access claims for an acting user without going through the token codec."""
    now = datetime.now(UTC)
    return AccessClaims(
        user_id=user_id,
        username=username,
        roles=list(roles),
        issued_at=now,
        expires_at=now + timedelta(hours=1),
    )


class DatabaseTestCase(unittest.TestCase):
    """Fresh in-memory database per test, with the full role set seeded."""

    seed_all_roles = True

    def setUp(self) -> None:
        self.engine, self.SessionLocal = make_session_factory()
        self.db = self.SessionLocal()
        if self.seed_all_roles:
            seed_roles(self.db)
        self.settings = make_settings()

    def tearDown(self) -> None:
        self.db.close()
        self.engine.dispose()
