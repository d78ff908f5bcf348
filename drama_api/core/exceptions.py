# drama_api/core/exceptions.py
from enum import Enum

from fastapi import status


class ErrorKind(str, Enum):
    """Error categories and the HTTP status each one maps to"""
    VALIDATION = "validation_error"
    AUTHENTICATION = "authentication_error"
    AUTHORIZATION = "authorization_error"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INTERNAL = "internal_error"

    @property
    def status_code(self) -> int:
        return _STATUS_CODES[self]


_STATUS_CODES = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.AUTHENTICATION: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.AUTHORIZATION: status.HTTP_403_FORBIDDEN,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class AppError(Exception):
    """Base application error.

    Operational errors are expected failures whose message is safe to show
    to the client. Anything else is treated as a programming error.
    """
    kind: ErrorKind = ErrorKind.INTERNAL
    default_message: str = "Internal server error"

    def __init__(
        self,
        message: str = None,
        kind: ErrorKind = None,
        is_operational: bool = True
    ):
        self.message = message or self.default_message
        if kind is not None:
            self.kind = kind
        self.is_operational = is_operational
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return self.kind.status_code


class ValidationError(AppError):
    """Invalid input"""
    kind = ErrorKind.VALIDATION
    default_message = "Validation failed"


class AuthenticationError(AppError):
    """Missing or invalid credentials"""
    kind = ErrorKind.AUTHENTICATION
    default_message = "Authentication failed"


class InvalidTokenError(AuthenticationError):
    """Bad signature, malformed or expired token"""
    default_message = "Invalid or expired token"


class AuthorizationError(AppError):
    """Authenticated but not allowed"""
    kind = ErrorKind.AUTHORIZATION
    default_message = "Unauthorized access"


class NotFoundError(AppError):
    """Resource not found"""
    kind = ErrorKind.NOT_FOUND
    default_message = "Resource not found"


class ConflictError(AppError):
    """Resource already exists"""
    kind = ErrorKind.CONFLICT
    default_message = "Resource conflict"
