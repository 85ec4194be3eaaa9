"""Bearer token helpers.

Tokens are minted by the identity provider; this service only verifies them.
``create_access_token`` exists for scripts and tests.
"""

from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

from jose import JWTError, jwt

from growshare.config import settings
from growshare.core.exceptions import AuthenticationError


def create_access_token(
    data: dict[str, Any],
    expires_delta: timedelta | None = None,
) -> str:
    """Create a JWT access token."""
    to_encode = data.copy()
    expire = datetime.now(UTC) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    to_encode.update({"exp": expire, "type": "access"})
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def verify_token(token: str, token_type: str = "access") -> dict[str, Any]:
    """Verify and decode a JWT token."""
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as e:
        raise AuthenticationError(f"Token validation failed: {e}") from None
    if payload.get("type") != token_type:
        raise AuthenticationError("Invalid token type")
    return payload


def token_subject(token: str) -> UUID:
    """User id carried in an access token's ``sub`` claim."""
    payload = verify_token(token, token_type="access")
    try:
        return UUID(str(payload.get("sub")))
    except ValueError:
        raise AuthenticationError("Invalid token payload") from None
