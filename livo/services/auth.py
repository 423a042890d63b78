"""Session lifecycle: registration, login, token refresh and logout.

Each user has at most one active session, represented by the refresh token
stored on the user row. Issuing a new token pair overwrites the stored token,
which invalidates any previously issued refresh token.

Concurrent refreshes for the same user are last-write-wins: both callers
receive a new pair, but only the token written last remains usable.
"""

import logging
from typing import TYPE_CHECKING

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from livo.core.database import safe_commit
from livo.core.errors import (
    AccountDisabled,
    DuplicateUser,
    InvalidCredentials,
    InvalidToken,
)
from livo.core.security import (
    TokenError,
    decode_refresh_token,
    hash_password,
    issue_token_pair,
    verify_password,
)
from livo.models import User
from livo.schemas.auth import TokenPair
from livo.services import user_store

if TYPE_CHECKING:
    from livo.core.config import Settings

logger = logging.getLogger(__name__)


class AuthService:
    """Login/refresh/logout orchestration over the user store and token codec."""

    def __init__(self, db: Session, settings: "Settings") -> None:
        self.db = db
        self.settings = settings

    @property
    def _secret(self) -> str:
        return self.settings.JWT_SECRET.get_secret_value()

    def _issue_pair(self, user: User) -> TokenPair:
        return issue_token_pair(
            user_id=user.id,
            username=user.username,
            roles=user.role_names,
            secret=self._secret,
            access_expire_hours=self.settings.JWT_EXPIRE_HOURS,
            refresh_expire_days=self.settings.REFRESH_TOKEN_EXPIRE_DAYS,
            algorithm=self.settings.JWT_ALGORITHM,
        )

    def register(self, username: str, email: str, password: str, name: str) -> User:
        """
        Create an active user and grant the default role if it is seeded.

        The default role is best effort: registration succeeds without it.
        """
        if user_store.username_or_email_taken(self.db, username, email):
            raise DuplicateUser()

        user = User(
            username=username,
            email=email,
            password_hash=hash_password(password, self.settings.BCRYPT_ROUNDS),
            name=name,
            is_active=True,
        )
        self.db.add(user)
        try:
            self.db.flush()
        except IntegrityError as e:
            self.db.rollback()
            raise DuplicateUser() from e

        user_store.grant_role_best_effort(
            self.db, user, self.settings.DEFAULT_ROLE, assigned_by=None
        )
        safe_commit(self.db, DuplicateUser())
        self.db.refresh(user)
        logger.info("Registered user id=%s username=%s", user.id, user.username)
        return user

    def login(self, username: str, password: str) -> tuple[TokenPair, User]:
        """Verify credentials, issue a token pair and make it the user's active session."""
        user = user_store.get_user_by_username(self.db, username)
        # TODO: collapse both messages into one once clients stop relying on the distinction
        if user is None:
            logger.info("Login failed: unknown username=%s", username)
            raise InvalidCredentials("Incorrect username", detail="user not found")
        if not verify_password(password, user.password_hash):
            logger.info("Login failed: wrong password for user id=%s", user.id)
            raise InvalidCredentials("Incorrect password", detail="wrong password")
        if not user.is_active:
            logger.info("Login refused: user id=%s is disabled", user.id)
            raise AccountDisabled()

        pair = self._issue_pair(user)
        user.refresh_token = pair.refresh_token
        safe_commit(self.db)
        logger.info("User id=%s logged in", user.id)
        return pair, user

    def refresh(self, refresh_token: str) -> tuple[TokenPair, User]:
        """
        Exchange the active refresh token for a new pair.

        Fails with InvalidToken when the token does not verify, or when it is
        not the token currently stored for its user (never issued, superseded
        by a later login/refresh, or cleared by logout).
        """
        try:
            claims = decode_refresh_token(
                refresh_token, self._secret, self.settings.JWT_ALGORITHM
            )
        except TokenError as e:
            logger.info("Refresh rejected: %s", e.message)
            raise InvalidToken("Invalid refresh token", detail=e.message) from e

        user = (
            user_store.live_users(self.db)
            .filter(User.id == claims.user_id, User.refresh_token == refresh_token)
            .first()
        )
        if user is None:
            logger.info("Refresh rejected: token is not active for user id=%s", claims.user_id)
            raise InvalidToken(
                "Invalid refresh token",
                detail="refresh token not found for this user",
            )

        pair = self._issue_pair(user)
        user.refresh_token = pair.refresh_token
        safe_commit(self.db)
        logger.info("Tokens refreshed for user id=%s", user.id)
        return pair, user

    def logout(self, user_id: int) -> None:
        """Clear the stored refresh token. Idempotent."""
        self.db.query(User).filter(User.id == user_id).update(
            {User.refresh_token: None}, synchronize_session=False
        )
        safe_commit(self.db)
        logger.info("User id=%s logged out", user_id)
