"""Core utilities: errors, principals and token verification."""

from growshare.core.exceptions import (
    AppException,
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    ForbiddenError,
    InvalidOperationError,
    NotFoundError,
    PolicyViolationError,
    RateLimitExceeded,
    ValidationError,
)
from growshare.core.permissions import Actor, UserRole, parse_roles
from growshare.core.security import create_access_token, verify_token

__all__ = [
    "Actor",
    "AppException",
    "AuthenticationError",
    "AuthorizationError",
    "ConflictError",
    "ForbiddenError",
    "InvalidOperationError",
    "NotFoundError",
    "PolicyViolationError",
    "RateLimitExceeded",
    "UserRole",
    "ValidationError",
    "create_access_token",
    "parse_roles",
    "verify_token",
]
