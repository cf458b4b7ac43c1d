"""
Authentication and Authorization Module

Provides authentication dependencies for FastAPI endpoints.
Bearer tokens are validated with the helpers in security.py and turned into a
``CurrentUser``. Admin endpoints additionally require the ``admin`` role.
"""

import logging
from dataclasses import dataclass
from uuid import UUID

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from enrollment_api.core.exceptions import AuthenticationError, AuthorizationError
from enrollment_api.core.security import decode_token

logger = logging.getLogger(__name__)

ADMIN_ROLE = "admin"

# Security scheme for OpenAPI documentation. Missing credentials are reported
# by the dependency itself so the error uses the JSON envelope.
security = HTTPBearer(
    auto_error=False,
    description="JWT Bearer token for authentication",
)


@dataclass
class CurrentUser:
    """
    Represents an authenticated caller.

    Populated from JWT claims after token validation.

    Attributes:
        id: User's unique identifier (UUID)
        email: User's email address
        role: "student" or "admin"
    """

    id: UUID
    email: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE

    def __str__(self) -> str:
        return f"CurrentUser(id={self.id}, role={self.role})"


def validate_token(token: str) -> CurrentUser:
    """
    Validate a JWT and extract the caller's identity.

    Args:
        token: JWT token string from the Authorization header

    Returns:
        CurrentUser built from the token claims

    Raises:
        AuthenticationError: If the token is invalid, expired or lacks claims
    """
    payload = decode_token(token)

    if payload is None:
        logger.warning("Invalid or expired JWT token")
        raise AuthenticationError("Invalid token")

    if payload.get("type", "access") != "access":
        logger.warning(f"Invalid token type: {payload.get('type')}")
        raise AuthenticationError("Invalid token")

    try:
        user_id = UUID(str(payload.get("sub")))
    except ValueError as e:
        logger.warning(f"Invalid token claims: {e}")
        raise AuthenticationError("Invalid token") from e

    return CurrentUser(
        id=user_id,
        email=payload.get("email", ""),
        role=payload.get("role", ""),
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> CurrentUser:
    """
    FastAPI dependency that validates the bearer token and returns the caller.

    Usage:
        @router.get("/enrollment")
        async def get_enrollment(user: CurrentUser = Depends(get_current_user)):
            ...

    Raises:
        AuthenticationError: If the token is missing, invalid, or expired
    """
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthenticationError("Unauthorized")

    return validate_token(credentials.credentials)


async def get_current_admin_user(
    user: CurrentUser = Depends(get_current_user),
) -> CurrentUser:
    """
    FastAPI dependency for registrar (admin) endpoints.

    Raises:
        AuthenticationError: If the token is missing or invalid
        AuthorizationError: If the caller is not an admin
    """
    if not user.is_admin:
        logger.warning(f"Access denied: user {user.id} has role '{user.role}', 'admin' required")
        raise AuthorizationError("Admin access required")

    logger.debug(f"Authenticated admin: {user.id}")
    return user


__all__ = [
    "ADMIN_ROLE",
    "CurrentUser",
    "validate_token",
    "get_current_user",
    "get_current_admin_user",
]
