"""DTOs for authentication and the user profile."""

from datetime import datetime

from hekate.models.dto.base import CamelModel


class User(CamelModel):
    """Authenticated user. Only ``name`` is editable from the client."""

    id: str
    name: str
    email: str
    role: str = "USER"
    created_at: datetime | None = None
    updated_at: datetime | None = None


class AuthResponse(CamelModel):
    user: User
    token: str


class LoginRequest(CamelModel):
    email: str
    password: str


class RegisterRequest(CamelModel):
    name: str
    email: str
    password: str


class VerifyPasswordResetCodeRequest(CamelModel):
    email: str
    code: str


class VerifyPasswordResetCodeResponse(CamelModel):
    valid: bool
    message: str = ""


class ResetPasswordRequest(CamelModel):
    email: str
    code: str
    new_password: str
