"""Custom application exceptions.

Every exception carries a ``kind`` naming its place in the error taxonomy:

- ``ValidationError`` / ``PolicyViolation``: nothing happened, fix the input
- ``Forbidden`` / ``InvalidOperation``: the actor cannot do that
- ``NotFound`` / ``Conflict``: the data no longer exists or already changed
"""

from fastapi import HTTPException, status


class AppException(HTTPException):
    """Base application exception."""

    kind: str = "Error"

    def __init__(
        self,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail: str = "An unexpected error occurred",
        headers: dict[str, str] | None = None,
    ) -> None:
        super().__init__(status_code=status_code, detail=detail, headers=headers)

    def __str__(self) -> str:
        return str(self.detail)


class ValidationError(AppException):
    """Malformed or out-of-range input."""

    kind = "ValidationError"

    def __init__(self, detail: str = "Validation failed") -> None:
        super().__init__(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=detail)


class PolicyViolationError(AppException):
    """Input is well formed but a business rule rejects it."""

    kind = "PolicyViolation"

    def __init__(self, detail: str = "This request violates a booking policy") -> None:
        super().__init__(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=detail)


class NotFoundError(AppException):
    """Resource not found exception."""

    kind = "NotFound"

    def __init__(self, resource: str = "Resource", identifier: str | None = None) -> None:
        detail = f"{resource} not found"
        if identifier:
            detail = f"{resource} with ID '{identifier}' not found"
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class ConflictError(AppException):
    """State conflicts with existing data."""

    kind = "Conflict"

    def __init__(self, detail: str = "The request conflicts with existing data") -> None:
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class AuthenticationError(AppException):
    """Authentication failed exception."""

    kind = "Unauthenticated"

    def __init__(self, detail: str = "Authentication failed") -> None:
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class ForbiddenError(AppException):
    """Actor lacks permission for the entity."""

    kind = "Forbidden"

    def __init__(self, detail: str = "You don't have permission to access this resource") -> None:
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


AuthorizationError = ForbiddenError


class InvalidOperationError(AppException):
    """State-machine guard failure."""

    kind = "InvalidOperation"

    def __init__(self, detail: str = "This operation is not allowed in the current state") -> None:
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class RateLimitExceeded(AppException):
    """Rate limit exceeded exception."""

    kind = "RateLimited"

    def __init__(self, detail: str = "Too many requests. Please try again later.") -> None:
        super().__init__(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail=detail)
