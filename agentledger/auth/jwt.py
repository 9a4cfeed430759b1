"""
JWT Token Management.

HS256-signed session tokens. The same token travels in the session
cookie or an Authorization: Bearer header.
"""

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from agentledger.config import Settings


class TokenError(Exception):
    """Raised when token creation or validation fails."""

    pass


def create_access_token(
    settings: Settings,
    user_id: str,
    email: str,
    role: str,
    expires_delta: timedelta | None = None,
) -> str:
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.jwt_access_token_expire_minutes)

    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "email": email,
        "role": role,
        "iat": now,
        "exp": now + expires_delta,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(settings: Settings, token: str) -> dict:
    """
    Decode and validate a session token.

    Raises TokenError on any failure, including expiry.
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as e:
        raise TokenError(f"Invalid token: {e}") from e
    if not payload.get("sub"):
        raise TokenError("Token missing required claims")
    return payload
