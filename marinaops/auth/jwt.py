"""
JWT token creation and validation.
Uses python-jose for JWT handling.

Tokens carry the session user: ``sub`` (user id), ``email``, ``marina_id``
and ``role``.
"""

from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from jose import JWTError, jwt

from marinaops.config import get_settings
from marinaops.models.entities import User


def create_access_token(
    data: Dict[str, Any],
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a JWT access token.

    Args:
        data: Payload data to encode
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token
    """
    settings = get_settings()
    to_encode = data.copy()
    issued_at = datetime.utcnow()
    expire = issued_at + (expires_delta or timedelta(minutes=settings.jwt_expiration_minutes))

    to_encode.update({"exp": expire, "iat": issued_at, "type": "access"})

    return jwt.encode(
        to_encode,
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
    )


def create_user_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
    """Access token for a portal user."""
    return create_access_token(
        {
            "sub": user.id,
            "email": user.email,
            "marina_id": user.marina_id,
            "role": user.primary_role.value,
        },
        expires_delta,
    )


def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Decode and validate a JWT access token.

    Raises:
        JWTError: If token is invalid, expired, or not an access token
    """
    settings = get_settings()

    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as e:
        raise JWTError(f"Token validation failed: {str(e)}") from e

    if payload.get("type") != "access":
        raise JWTError("Token validation failed: invalid token type")

    return payload
