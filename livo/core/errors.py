"""Domain errors raised by the auth core and user administration services.

Every error carries a stable ``error_code`` (the failure kind) and the HTTP
``status_code`` it is rendered with by the API exception handler.
"""


class LivoError(Exception):
    """Base class for service-layer errors mapped to HTTP responses."""

    status_code: int = 400
    error_code: str = "Error"
    default_message: str = "Request failed"

    def __init__(self, message: str | None = None, detail: str | None = None) -> None:
        self.message = message or self.default_message
        self.detail = detail
        super().__init__(self.message)


# Authentication (401)


class AuthenticationError(LivoError):
    status_code = 401
    error_code = "AuthenticationError"
    default_message = "Authentication failed"


class InvalidCredentials(AuthenticationError):
    error_code = "InvalidCredentials"
    default_message = "Invalid username or password"


class AccountDisabled(AuthenticationError):
    error_code = "AccountDisabled"
    default_message = "Account is disabled"


class InvalidToken(AuthenticationError):
    error_code = "InvalidToken"
    default_message = "Invalid or expired token"


class MissingHeader(AuthenticationError):
    error_code = "MissingHeader"
    default_message = "Authorization header is required"


class MalformedHeader(AuthenticationError):
    error_code = "MalformedHeader"
    default_message = "Authorization header must be 'Bearer <token>'"


# Authorization (403)


class AuthorizationError(LivoError):
    status_code = 403
    error_code = "AuthorizationError"
    default_message = "Access denied"


class Forbidden(AuthorizationError):
    error_code = "Forbidden"
    default_message = "You do not have access to this resource"


class PermissionDenied(AuthorizationError):
    error_code = "PermissionDenied"
    default_message = "Permission denied"


class SelfDeletion(AuthorizationError):
    error_code = "SelfDeletion"
    default_message = "You cannot delete your own account"


# Conflict (409)


class ConflictError(LivoError):
    status_code = 409
    error_code = "ConflictError"
    default_message = "Resource conflict"


class DuplicateUser(ConflictError):
    error_code = "DuplicateUser"
    default_message = "Username or email is already in use"


class DuplicateEmail(ConflictError):
    error_code = "DuplicateEmail"
    default_message = "Email is already in use by another user"


class AlreadyAssigned(ConflictError):
    error_code = "AlreadyAssigned"
    default_message = "User already has this role"


# Not found (404)


class NotFoundError(LivoError):
    status_code = 404
    error_code = "NotFoundError"
    default_message = "Resource not found"


class UserNotFound(NotFoundError):
    error_code = "UserNotFound"
    default_message = "User not found"


class RoleNotFound(NotFoundError):
    error_code = "RoleNotFound"
    default_message = "Role not found"


# Bad request (400)


class InvalidRequestError(LivoError):
    status_code = 400
    error_code = "ValidationError"
    default_message = "Invalid request"


class InvalidRole(InvalidRequestError):
    error_code = "InvalidRole"
    default_message = "Role is not valid"


# Internal (500)


class InternalError(LivoError):
    status_code = 500
    error_code = "InternalError"
    default_message = "Internal server error"


class PasswordHashError(InternalError):
    error_code = "PasswordHashError"
    default_message = "Failed to hash password"


class StorageError(InternalError):
    error_code = "StorageError"
    default_message = "Database operation failed"
