"""Custom exceptions and error handling utilities."""
from fastapi import HTTPException, status
from typing import Optional


class AppException(Exception):
    """Base exception for application errors."""

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message or self.__class__.__name__

    def __str__(self) -> str:
        return self.message


class NotFoundError(AppException):
    """Raised when a resource is not found."""
    pass


class ValidationError(AppException):
    """Raised when validation fails."""
    pass


class AuthenticationError(AppException):
    """Raised when authentication fails."""
    pass


class InvalidURL(ValidationError):
    """Raised when a URL is missing or malformed."""
    pass


class DomainNotAllowed(AppException):
    """Raised when a URL host does not match the project's website host."""

    def __init__(self, allowed_host: str, message: Optional[str] = None):
        super().__init__(message or f"URL domain not allowed. Allowed: {allowed_host}")
        self.allowed_host = allowed_host


class ProjectNotFound(NotFoundError):
    """Raised when the guest project behind a key or job no longer exists."""

    def __init__(self, message: str = "Project not found"):
        super().__init__(message)


class ProjectExpired(AuthenticationError):
    """Raised when a guest project has passed its expiry."""

    def __init__(self, message: str = "Project has expired"):
        super().__init__(message)


class RenderTimeout(AppException):
    """Raised when the browser exceeds its navigation or render timeout."""
    pass


class RenderFailure(AppException):
    """Raised when the browser fails to render a page."""
    pass


class CheckTimeout(AppException):
    """Raised when a monitor check exceeds its timeout."""

    def __init__(self, message: str = "Request timed out"):
        super().__init__(message)


class CheckFailure(AppException):
    """Raised when a monitor check fails at the network level."""

    def __init__(self, message: str = "Fetch failed"):
        super().__init__(message)


class MonitorLimitReached(ValidationError):
    """Raised when a project already owns the maximum number of monitors."""

    def __init__(self, limit: int):
        super().__init__(f"Monitor limit reached ({limit}).")
        self.limit = limit


def handle_database_error(error: Exception, operation: str) -> HTTPException:
    """
    Convert database errors to HTTP exceptions.

    Args:
        error: The database error
        operation: Description of the operation that failed

    Returns:
        HTTPException with appropriate status code
    """
    error_message = str(error)

    # Handle common database errors
    if "not found" in error_message.lower() or "does not exist" in error_message.lower():
        return HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Resource not found: {operation}",
        )

    if "duplicate" in error_message.lower() or "unique" in error_message.lower():
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Resource already exists: {operation}",
        )

    # Default to 500 for unknown database errors
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Database error during {operation}: {error_message}",
    )


def not_found_error(resource: str, identifier: Optional[str] = None) -> HTTPException:
    """
    Create a standardized 404 error.

    Args:
        resource: Name of the resource (e.g., "Job", "Monitor")
        identifier: Optional identifier that was not found

    Returns:
        HTTPException with 404 status
    """
    message = f"{resource} not found"
    if identifier:
        message += f": {identifier}"
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=message)


def validation_error(message: str) -> HTTPException:
    """Create a standardized 400 validation error."""
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)


def authentication_error(message: str = "Invalid or expired API key") -> HTTPException:
    """Create a standardized 401 authentication error."""
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=message)


def forbidden_error(message: str = "Not allowed") -> HTTPException:
    """Create a standardized 403 forbidden error."""
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=message)


def domain_error(error: AppException) -> HTTPException:
    """
    Map Domain Guard failures to HTTP errors.

    InvalidURL becomes 400, DomainNotAllowed becomes 403.
    """
    if isinstance(error, DomainNotAllowed):
        return forbidden_error(error.message)
    return validation_error(error.message)
