"""
JWT verification for tokens issued by the auth gateway.

The gateway signs access tokens with a shared secret; ``sub`` carries the
profile UUID and ``aud`` the audience configured in settings.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from grind.config import get_settings


def create_access_token(user_id: uuid.UUID, expires_in: timedelta | None = None) -> str:
    """
    Create an access token the same way the gateway does.

    Used by local tooling and tests; production tokens come from the gateway.

    Args:
        user_id: The profile UUID.
        expires_in: Lifetime override. Defaults to the configured expiry.

    Returns:
        Encoded JWT string.
    """
    settings = get_settings()
    now = datetime.now(timezone.utc)
    if expires_in is None:
        expires_in = timedelta(minutes=settings.jwt_access_token_expire_minutes)
    payload: dict[str, Any] = {
        "sub": str(user_id),
        "aud": settings.jwt_audience,
        "role": "authenticated",
        "iat": now,
        "exp": now + expires_in,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> dict[str, Any]:
    """
    Verify and decode an access token.

    Args:
        token: The encoded JWT string.

    Returns:
        Decoded payload dictionary.

    Raises:
        jwt.InvalidTokenError: If the token is invalid, expired, or has no usable subject.
    """
    settings = get_settings()
    try:
        payload: dict[str, Any] = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
        )
    except jwt.ExpiredSignatureError:
        msg = "Token has expired"
        raise jwt.InvalidTokenError(msg) from None

    try:
        uuid.UUID(str(payload.get("sub")))
    except ValueError:
        msg = "Token subject is not a user id"
        raise jwt.InvalidTokenError(msg) from None

    return payload
