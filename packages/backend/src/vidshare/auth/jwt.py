"""JWT token creation and verification.

Learn: Two credential types, each signed with its OWN secret:
- Access token: short-lived (60min), sent with every request
- Refresh token: long-lived (10 days), only used to mint a new pair

Every token gets a random jti, so two tokens minted for the same user
within the same second are still different strings. Rotation relies on
that: the new refresh token must never equal the one it replaces.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from vidshare.config import settings

ACCESS = "access"
REFRESH = "refresh"


class TokenError(Exception):
    """Raised when token creation/verification fails."""


def _encode(claims: dict, secret: str, expires: timedelta) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        **claims,
        "iat": now,
        "exp": now + expires,
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(payload, secret, algorithm=settings.jwt_algorithm)


def create_access_token(
    user_id: str,
    username: Optional[str] = None,
    email: Optional[str] = None,
    expires_minutes: Optional[int] = None,
) -> str:
    """Create a JWT access token."""
    claims = {"sub": user_id, "type": ACCESS}
    if username:
        claims["username"] = username
    if email:
        claims["email"] = email
    minutes = (
        expires_minutes
        if expires_minutes is not None
        else settings.access_token_expire_minutes
    )
    return _encode(claims, settings.access_token_secret, timedelta(minutes=minutes))


def create_refresh_token(
    user_id: str,
    expires_days: Optional[int] = None,
) -> str:
    """Create a JWT refresh token."""
    days = expires_days if expires_days is not None else settings.refresh_token_expire_days
    return _encode(
        {"sub": user_id, "type": REFRESH},
        settings.refresh_token_secret,
        timedelta(days=days),
    )


def _decode(token: str, secret: str, expected_type: str) -> dict:
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError:
        raise TokenError("Token has expired")
    except jwt.InvalidTokenError as e:
        raise TokenError(f"Invalid token: {e}")

    if payload.get("type") != expected_type:
        raise TokenError(f"Wrong token type: expected {expected_type}")
    return payload


def verify_access_token(token: str) -> dict:
    """Verify and decode an access token.

    Returns the payload dict on success.
    Raises TokenError on failure.
    """
    return _decode(token, settings.access_token_secret, ACCESS)


def verify_refresh_token(token: str) -> dict:
    """Verify and decode a refresh token.

    Returns the payload dict on success.
    Raises TokenError on failure.
    """
    return _decode(token, settings.refresh_token_secret, REFRESH)
