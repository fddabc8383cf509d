"""Authentication and password-reset endpoints."""
from hekate.api.base import BaseApi, api_call
from hekate.models.dto import (
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    User,
    VerifyPasswordResetCodeRequest,
    VerifyPasswordResetCodeResponse,
)


class AuthApi(BaseApi):
    """Endpoints under /auth. Login, register and the reset flow are unauthenticated."""

    @api_call("Error al intentar iniciar sesión")
    async def login(self, credentials: LoginRequest) -> AuthResponse:
        data = await self.client.post("/auth/login", credentials.to_payload(), authenticated=False)
        return AuthResponse.model_validate(data)

    @api_call("Error al intentar iniciar sesión con Google")
    async def login_with_google(self, google_token: str) -> AuthResponse:
        data = await self.client.post("/auth/google", {"token": google_token}, authenticated=False)
        return AuthResponse.model_validate(data)

    @api_call("Error al intentar registrarse")
    async def register(self, user_data: RegisterRequest) -> AuthResponse:
        data = await self.client.post("/auth/register", user_data.to_payload(), authenticated=False)
        return AuthResponse.model_validate(data)

    @api_call("Error al obtener el perfil de usuario")
    async def get_profile(self) -> User:
        return User.model_validate(await self.client.get("/auth/profile"))

    @api_call("Error al solicitar el código de recuperación")
    async def request_password_reset_code(self, email: str) -> None:
        await self.client.post("/auth/forgot-password", {"email": email}, authenticated=False)

    @api_call("Error al verificar el código de recuperación")
    async def verify_password_reset_code(
        self, request: VerifyPasswordResetCodeRequest
    ) -> VerifyPasswordResetCodeResponse:
        data = await self.client.post("/auth/verify-reset-code", request.to_payload(), authenticated=False)
        return VerifyPasswordResetCodeResponse.model_validate(data)

    @api_call("Error al restablecer la contraseña")
    async def reset_password(self, request: ResetPasswordRequest) -> VerifyPasswordResetCodeResponse:
        data = await self.client.post("/auth/reset-password", request.to_payload(), authenticated=False)
        return VerifyPasswordResetCodeResponse.model_validate(data or {"valid": True})
