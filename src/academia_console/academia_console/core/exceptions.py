from __future__ import annotations

from typing import Any, Optional


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class RegistrationBlockedError(ValidationError):
    """Raised when attendance cannot be saved for the selected class today."""

    def __init__(self, message: str, validation: Any = None):
        super().__init__(message)
        self.validation = validation


class PartialSaveError(DomainError):
    """Raised when an attendance batch stopped after some calls succeeded.

    `progress` keeps track of what was already deleted/created so the next
    save for the same class and date can resume instead of starting over.
    """

    def __init__(self, message: str, progress: Any):
        super().__init__(message)
        self.progress = progress


class ApiError(DomainError):
    """Failure reported by (or while talking to) the REST backend."""

    def __init__(self, message: str, *, status: Optional[int] = None, details: Any = None):
        super().__init__(message)
        self.status = status
        self.details = details


class SessionExpiredError(ApiError):
    """401 from the backend: the bearer token is no longer accepted."""


class ForbiddenError(ApiError):
    pass


class NotFoundError(ApiError):
    pass


class ConflictError(ApiError):
    """409 or `HAS_ASSOCIATIONS`: the entity still has dependent records."""


class ServerError(ApiError):
    pass


class TransportError(ApiError):
    """Network failure before any HTTP status was received."""


class SchemaError(ApiError):
    """Backend payload does not match the expected entity shape."""
