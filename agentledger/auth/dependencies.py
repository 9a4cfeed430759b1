"""
FastAPI auth dependencies.

The session token is read from the session cookie first, then from an
Authorization: Bearer header. Anything missing or invalid is a 401.
"""

import structlog
from fastapi import Depends, Request

from agentledger.api.deps import get_registry
from agentledger.auth.jwt import TokenError, decode_token
from agentledger.exceptions import AuthenticationRequired
from agentledger.schemas.records import UserRecord
from agentledger.services.registry import ServiceRegistry

logger = structlog.get_logger(__name__)


def _extract_token(request: Request, cookie_name: str) -> str | None:
    token = request.cookies.get(cookie_name)
    if token:
        return token
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:].strip() or None
    return None


async def get_current_user(
    request: Request,
    registry: ServiceRegistry = Depends(get_registry),
) -> UserRecord:
    token = _extract_token(request, registry.settings.session_cookie_name)
    if not token:
        raise AuthenticationRequired("Unauthorized")

    try:
        payload = decode_token(registry.settings, token)
    except TokenError as e:
        logger.info("session_rejected", reason=str(e))
        raise AuthenticationRequired("Unauthorized") from e

    user = await registry.repository.get_user(payload["sub"])
    if user is None:
        logger.info("session_rejected", reason="user not found")
        raise AuthenticationRequired("Unauthorized")

    structlog.contextvars.bind_contextvars(user_id=user.id)
    request.state.user_id = user.id
    return user
