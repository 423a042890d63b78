"""Password hashing and JWT creation/verification for authentication.

Token helpers are pure: the signing secret, algorithm and lifetime are passed
in by the caller, never read from global settings.
"""

import secrets
from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
import jwt

from livo.core.errors import PasswordHashError
from livo.schemas.auth import AccessClaims, RefreshClaims, TokenPair

# Bcrypt cost (rounds); 12 is a good default for security vs speed.
BCRYPT_ROUNDS = 12

DEFAULT_ALGORITHM = "HS256"
ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


class TokenError(Exception):
    """Raised when a token cannot be accepted."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class TokenExpired(TokenError):
    """Signature is valid but the token is past its expiry."""


class TokenInvalidSignature(TokenError):
    """Token was not signed with the expected secret (or was tampered with)."""


class TokenMalformed(TokenError):
    """Token is structurally invalid or carries an unexpected claim shape."""


def hash_password(plain_password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    # bcrypt has a 72-byte limit; truncate to avoid errors (validation already limits length).
    pw_bytes = plain_password.encode("utf-8")[:72]
    try:
        return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=rounds)).decode("utf-8")
    except (ValueError, TypeError) as e:
        raise PasswordHashError(detail=str(e)) from e


def verify_password(plain_password: str, hashed: str | None) -> bool:
    """Verify a plain password against a stored hash."""
    if not hashed:
        return False
    pw_bytes = plain_password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def _encode(payload: dict[str, Any], secret: str, algorithm: str) -> str:
    return jwt.encode(payload, secret, algorithm=algorithm)


def create_access_token(
    user_id: int,
    username: str,
    roles: list[str],
    secret: str,
    expire_hours: int,
    algorithm: str = DEFAULT_ALGORITHM,
    now: datetime | None = None,
) -> str:
    """Create a JWT access token carrying identity and a snapshot of role names."""
    now = now or datetime.now(UTC)
    payload: dict[str, Any] = {
        "sub": str(user_id),
        "username": username,
        "roles": list(roles),
        "type": ACCESS_TOKEN_TYPE,
        "jti": secrets.token_hex(16),
        "iat": now,
        "exp": now + timedelta(hours=expire_hours),
    }
    return _encode(payload, secret, algorithm)


def create_refresh_token(
    user_id: int,
    secret: str,
    expire_days: int,
    algorithm: str = DEFAULT_ALGORITHM,
    now: datetime | None = None,
) -> str:
    """Create a JWT refresh token. The random jti keeps tokens issued in the same second distinct."""
    now = now or datetime.now(UTC)
    payload: dict[str, Any] = {
        "sub": str(user_id),
        "type": REFRESH_TOKEN_TYPE,
        "jti": secrets.token_hex(16),
        "iat": now,
        "exp": now + timedelta(days=expire_days),
    }
    return _encode(payload, secret, algorithm)


def issue_token_pair(
    user_id: int,
    username: str,
    roles: list[str],
    secret: str,
    access_expire_hours: int,
    refresh_expire_days: int,
    algorithm: str = DEFAULT_ALGORITHM,
    now: datetime | None = None,
) -> TokenPair:
    """Create an access/refresh pair sharing the same issue instant."""
    now = now or datetime.now(UTC)
    return TokenPair(
        access_token=create_access_token(
            user_id, username, roles, secret, access_expire_hours, algorithm, now
        ),
        refresh_token=create_refresh_token(
            user_id, secret, refresh_expire_days, algorithm, now
        ),
    )


def _decode(token: str, secret: str, algorithm: str, expected_type: str) -> dict[str, Any]:
    """
    Verify signature and expiry and check the token type claim.
    Raises TokenExpired, TokenInvalidSignature or TokenMalformed.
    """
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[algorithm],
            options={"require": ["sub", "type", "iat", "exp"]},
        )
    except jwt.ExpiredSignatureError as e:
        raise TokenExpired("Token has expired") from e
    except jwt.InvalidSignatureError as e:
        raise TokenInvalidSignature("Token signature is invalid") from e
    except jwt.PyJWTError as e:
        raise TokenMalformed(f"Token is malformed: {e}") from e

    if payload.get("type") != expected_type:
        raise TokenMalformed(f"Expected a {expected_type} token")
    return payload


def _user_id_from(payload: dict[str, Any]) -> int:
    try:
        return int(payload["sub"])
    except (KeyError, TypeError, ValueError) as e:
        raise TokenMalformed("Token subject is not a user id") from e


def decode_access_token(
    token: str, secret: str, algorithm: str = DEFAULT_ALGORITHM
) -> AccessClaims:
    """Decode and validate an access token; return its claims."""
    payload = _decode(token, secret, algorithm, ACCESS_TOKEN_TYPE)
    username = payload.get("username")
    roles = payload.get("roles")
    if not isinstance(username, str):
        raise TokenMalformed("Access token has no username")
    if not isinstance(roles, list) or not all(isinstance(r, str) for r in roles):
        raise TokenMalformed("Access token roles must be a list of strings")
    return AccessClaims(
        user_id=_user_id_from(payload),
        username=username,
        roles=roles,
        issued_at=datetime.fromtimestamp(payload["iat"], UTC),
        expires_at=datetime.fromtimestamp(payload["exp"], UTC),
    )


def decode_refresh_token(
    token: str, secret: str, algorithm: str = DEFAULT_ALGORITHM
) -> RefreshClaims:
    """Decode and validate a refresh token; return its claims."""
    payload = _decode(token, secret, algorithm, REFRESH_TOKEN_TYPE)
    return RefreshClaims(
        user_id=_user_id_from(payload),
        issued_at=datetime.fromtimestamp(payload["iat"], UTC),
        expires_at=datetime.fromtimestamp(payload["exp"], UTC),
    )
