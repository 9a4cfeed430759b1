"""Pydantic schemas for authentication endpoints."""

from typing import Annotated, Optional

from pydantic import AfterValidator, EmailStr, Field

from agentledger.schemas.common import CamelModel, UserRole

# bcrypt only looks at the first 72 bytes and refuses longer input.
BCRYPT_MAX_BYTES = 72


def _check_password_bytes(value: str) -> str:
    if len(value.encode("utf-8")) > BCRYPT_MAX_BYTES:
        raise ValueError(f"password must be at most {BCRYPT_MAX_BYTES} bytes")
    return value


BcryptPassword = Annotated[str, AfterValidator(_check_password_bytes)]


class RegisterRequest(CamelModel):
    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    password: BcryptPassword = Field(min_length=8, max_length=128)
    role: Optional[UserRole] = None


class LoginRequest(CamelModel):
    email: EmailStr
    password: BcryptPassword = Field(min_length=1, max_length=128)


class UserOut(CamelModel):
    id: str
    name: str
    email: str
    role: UserRole
    image: Optional[str] = None


class AuthResponse(CamelModel):
    success: bool = True
    user: UserOut


class LoginResponse(AuthResponse):
    access_token: str
    token_type: str = "bearer"
