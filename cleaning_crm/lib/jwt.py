"""JWT token generation and validation utilities.

Uses the algorithm and secret from settings (HS256 by default).
Tokens carry the standard claims (sub, iat, exp); ``sub`` is the principal.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from jwt.exceptions import InvalidTokenError

from cleaning_crm.lib.settings import settings


def create_access_token(
    subject: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Create a JWT access token for a principal.

    Args:
        subject: Principal identifier (stored in 'sub' claim)
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string

    Example:
        >>> token = create_access_token("user_2a9Xc")
    """
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.jwt_expiration_minutes)

    now = datetime.now(timezone.utc)

    payload = {
        "sub": subject,
        "iat": now,
        "exp": now + expires_delta,
    }

    return jwt.encode(
        payload,
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
    )


def verify_token(token: str) -> dict:
    """Verify and decode a JWT token.

    Args:
        token: JWT token string to verify

    Returns:
        Decoded token payload with claims

    Raises:
        InvalidTokenError: If token is invalid, expired, or signature doesn't match
    """
    return jwt.decode(
        token,
        settings.jwt_secret,
        algorithms=[settings.jwt_algorithm],
    )


def get_principal_from_token(token: str) -> Optional[str]:
    """Return the principal carried by a token, or None if it is unusable.

    Example:
        >>> get_principal_from_token("not.a.valid.token") is None
        True
    """
    try:
        payload = verify_token(token)
    except InvalidTokenError:
        return None

    subject = payload.get("sub")
    if not subject:
        return None
    return str(subject)
