"""FastAPI dependencies: services, bearer-token authentication and role gating."""

from collections.abc import Callable
from typing import Annotated

from fastapi import Depends
from fastapi.security import APIKeyHeader
from sqlalchemy.orm import Session

from livo.core.config import Settings, get_settings
from livo.core.database import get_db
from livo.core.errors import InvalidToken, MalformedHeader, MissingHeader
from livo.core.roles import RoleHierarchy, check_roles, default_hierarchy
from livo.core.security import TokenError, decode_access_token
from livo.schemas.auth import AccessClaims
from livo.services.auth import AuthService
from livo.services.user_manager import UserManagerService

# Raw header (not HTTPBearer) so a malformed scheme is reported distinctly from a missing header.
authorization_header = APIKeyHeader(
    name="Authorization",
    scheme_name="BearerAuth",
    description="Bearer <access_token>",
    auto_error=False,
)

BEARER_SCHEME = "Bearer"


def authenticate_header(
    authorization: str | None, secret: str, algorithm: str
) -> AccessClaims:
    """
    Validate an Authorization header value and return the access token claims.

    Raises MissingHeader, MalformedHeader (anything but exactly "Bearer <token>")
    or InvalidToken.
    """
    if not authorization:
        raise MissingHeader()
    parts = authorization.split(" ")
    if len(parts) != 2 or parts[0] != BEARER_SCHEME or not parts[1]:
        raise MalformedHeader()
    try:
        return decode_access_token(parts[1], secret, algorithm)
    except TokenError as e:
        raise InvalidToken(detail=e.message) from e


def get_role_hierarchy() -> RoleHierarchy:
    return default_hierarchy


def get_current_claims(
    authorization: Annotated[str | None, Depends(authorization_header)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> AccessClaims:
    """Dependency: require a valid Bearer access token and return its claims."""
    return authenticate_header(
        authorization,
        settings.JWT_SECRET.get_secret_value(),
        settings.JWT_ALGORITHM,
    )


def require_roles(*required: str) -> Callable[..., AccessClaims]:
    """Dependency factory: the caller must hold at least one of the required roles."""

    def dependency(
        claims: Annotated[AccessClaims, Depends(get_current_claims)],
    ) -> AccessClaims:
        check_roles(claims.roles, required)
        return claims

    return dependency


def get_auth_service(
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> AuthService:
    return AuthService(db, settings)


def get_user_manager(
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
    hierarchy: Annotated[RoleHierarchy, Depends(get_role_hierarchy)],
) -> UserManagerService:
    return UserManagerService(db, settings, hierarchy)
