"""
Security utilities for JWT token generation and validation.

Admin and volunteer logins receive a signed HS256 bearer token carrying
their id and role. The role in the token is informational only: the
principal dependency re-reads the admin row on every request.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from uuid import uuid4

import jwt
from jwt.exceptions import ExpiredSignatureError, InvalidTokenError

from core.config import settings


class SecurityError(Exception):
    """Base exception for security-related errors."""

    pass


class TokenExpiredError(SecurityError):
    """Raised when a token has expired."""

    pass


class TokenInvalidError(SecurityError):
    """Raised when a token is invalid."""

    pass


def create_access_token(
    admin_id: int,
    username: str,
    role: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Create a JWT access token for an admin principal.

    Args:
        admin_id: AdminUser primary key
        username: Login name, informational
        role: Role value at login time, informational
        expires_delta: Custom lifetime (default: settings.security.access_token_expire_minutes)

    Returns:
        JWT access token string

    Raises:
        SecurityError: If token creation fails
    """
    now = datetime.now(timezone.utc)
    expire = now + (
        expires_delta
        or timedelta(minutes=settings.security.access_token_expire_minutes)
    )

    payload = {
        "sub": str(admin_id),
        "username": username,
        "role": role,
        "type": "access",
        "iat": int(now.timestamp()),
        "exp": int(expire.timestamp()),
        "jti": str(uuid4()),
        "iss": settings.security.jwt_issuer,
        "aud": settings.security.jwt_audience,
    }

    try:
        return jwt.encode(
            payload,
            settings.security.secret_key,
            algorithm=settings.security.algorithm,
        )
    except Exception as e:
        raise SecurityError(f"Failed to create access token: {str(e)}")


def decode_token(token: str) -> Dict[str, Any]:
    """Decode and validate a JWT token.

    Raises:
        TokenExpiredError: If token has expired
        TokenInvalidError: If token is invalid
    """
    try:
        return jwt.decode(
            token,
            settings.security.secret_key,
            algorithms=[settings.security.algorithm],
            audience=settings.security.jwt_audience,
            issuer=settings.security.jwt_issuer,
        )
    except ExpiredSignatureError:
        raise TokenExpiredError("Token has expired")
    except InvalidTokenError as e:
        raise TokenInvalidError(f"Invalid token: {str(e)}")


def get_admin_id_from_token(payload: Dict[str, Any]) -> int:
    """Extract the admin id from a decoded token payload.

    Raises:
        TokenInvalidError: If the subject is missing or not an integer
    """
    if payload.get("type") != "access":
        raise TokenInvalidError("Not an access token")

    sub = payload.get("sub")
    if not sub:
        raise TokenInvalidError("Admin ID missing from token")

    try:
        return int(sub)
    except (TypeError, ValueError):
        raise TokenInvalidError("Invalid admin ID in token")
