"""
Auth API routes — register, login, logout, current user.

Uses bcrypt directly for password hashing. Login sets an httponly
session cookie holding a signed JWT.
"""

import bcrypt
import structlog
from fastapi import APIRouter, Depends, Response

from agentledger.api.deps import get_registry
from agentledger.auth.dependencies import get_current_user
from agentledger.auth.jwt import create_access_token
from agentledger.auth.schemas import (
    AuthResponse,
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    UserOut,
)
from agentledger.exceptions import AuthenticationRequired
from agentledger.schemas.common import UserRole
from agentledger.schemas.records import UserRecord
from agentledger.services.registry import ServiceRegistry

logger = structlog.get_logger(__name__)
router = APIRouter(prefix="/auth", tags=["auth"])


def hash_password(password: str, rounds: int = 12) -> str:
    """Hash a password using bcrypt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    """Verify a password against a bcrypt hash."""
    return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))


def _user_out(user: UserRecord) -> UserOut:
    return UserOut.model_validate(user, from_attributes=True)


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(
    body: RegisterRequest,
    registry: ServiceRegistry = Depends(get_registry),
):
    """Create a user. Duplicate emails are rejected with 409."""
    user = await registry.repository.create_user(
        name=body.name,
        email=body.email,
        password_hash=hash_password(body.password, registry.settings.bcrypt_rounds),
        role=body.role or UserRole.COMPLIANCE,
    )
    logger.info("user_registered", user_id=user.id, role=user.role)
    return AuthResponse(user=_user_out(user))


@router.post("/login", response_model=LoginResponse)
async def login(
    body: LoginRequest,
    response: Response,
    registry: ServiceRegistry = Depends(get_registry),
):
    settings = registry.settings
    user = await registry.repository.get_user_by_email(body.email)

    # OAuth-origin accounts have no password and cannot log in here
    if user is None or not user.password_hash or not verify_password(body.password, user.password_hash):
        logger.info("login_failed", email=body.email)
        raise AuthenticationRequired("Invalid email or password")

    token = create_access_token(settings, user_id=user.id, email=user.email, role=str(user.role))
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.jwt_access_token_expire_minutes * 60,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
        path="/",
    )
    logger.info("user_logged_in", user_id=user.id)
    return LoginResponse(user=_user_out(user), access_token=token)


@router.post("/logout")
async def logout(
    response: Response,
    registry: ServiceRegistry = Depends(get_registry),
):
    response.delete_cookie(registry.settings.session_cookie_name, path="/")
    return {"success": True}


@router.get("/me", response_model=AuthResponse)
async def me(user: UserRecord = Depends(get_current_user)):
    return AuthResponse(user=_user_out(user))
