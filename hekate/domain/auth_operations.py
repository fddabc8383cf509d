"""
Auth Session

Owns the bearer token lifecycle (login, restore on start, logout), the
password-reset flow and the editable part of the profile.
"""
import logging
from typing import Any, Mapping, Optional, Union

from hekate.api import AuthApi, UserApi
from hekate.core.auth import TokenStore
from hekate.domain import query_keys
from hekate.domain.exceptions import HekateError
from hekate.domain.forms import (
    EditProfileForm,
    FormModel,
    FormResult,
    LoginForm,
    RegisterForm,
    ResetPasswordForm,
    VerificationCodeForm,
    submit_form,
)
from hekate.domain.optimistic import MutationResult, MutationStatus, OptimisticUpdater
from hekate.models.dto import (
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    User,
    VerifyPasswordResetCodeRequest,
)

logger = logging.getLogger(__name__)

FormInput = Union[Mapping[str, Any], FormModel]


class AuthSession:
    """Current user and token, backed by a TokenStore."""

    def __init__(
        self,
        auth_api: AuthApi,
        user_api: UserApi,
        token_store: TokenStore,
        updater: OptimisticUpdater,
    ):
        self.auth_api = auth_api
        self.user_api = user_api
        self.token_store = token_store
        self.updater = updater
        self.cache = updater.cache
        self.notifier = updater.notifier
        self.user: Optional[User] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None and self.token_store.get_token() is not None

    # ─────────────────────────────────────────────────────────────
    # Session lifecycle
    # ─────────────────────────────────────────────────────────────

    async def restore(self) -> Optional[User]:
        """
        Resume a stored session.

        A stored token that the server no longer accepts is cleared and
        the session starts logged out.
        """
        if self.token_store.get_token() is None:
            return None
        try:
            self.user = await self.auth_api.get_profile()
        except HekateError as e:
            logger.info(f"Stored token rejected, logging out: {e}")
            self._forget()
            return None
        self.token_store.set_user_data(self.user.to_payload())
        return self.user

    def _start(self, response: AuthResponse) -> User:
        self.token_store.set_token(response.token)
        self.token_store.set_user_data(response.user.to_payload())
        self.user = response.user
        self.cache.set_query_data(query_keys.USER_PROFILE, response.user)
        logger.info(f"Session started for user {response.user.id}")
        return response.user

    def _forget(self) -> None:
        self.token_store.clear()
        self.user = None
        self.cache.clear()

    async def _authenticate(self, request, error_message: str) -> MutationResult:
        try:
            response = await request()
        except HekateError as e:
            logger.warning(f"Authentication failed: {e}")
            self.notifier.error(str(e) or error_message)
            return MutationResult(status=MutationStatus.FAILED, error=e)
        return MutationResult(status=MutationStatus.SUCCEEDED, data=self._start(response))

    async def login(self, data: FormInput) -> FormResult:
        async def submit(form: LoginForm) -> MutationResult:
            request = LoginRequest(email=form.email, password=form.password)
            return await self._authenticate(
                lambda: self.auth_api.login(request), "Error al intentar iniciar sesión"
            )

        return await submit_form(LoginForm, data, submit)

    async def login_with_google(self, google_token: str) -> MutationResult:
        """Exchange a Google ID token for a session."""
        return await self._authenticate(
            lambda: self.auth_api.login_with_google(google_token),
            "Error al intentar iniciar sesión con Google",
        )

    async def register(self, data: FormInput) -> FormResult:
        async def submit(form: RegisterForm) -> MutationResult:
            request = RegisterRequest(name=form.name, email=form.email, password=form.password)
            return await self._authenticate(
                lambda: self.auth_api.register(request), "Error al intentar registrarse"
            )

        return await submit_form(RegisterForm, data, submit)

    def logout(self) -> None:
        """Drop the token, the cached profile and every cached query."""
        self._forget()
        logger.info("Session ended")

    # ─────────────────────────────────────────────────────────────
    # Password reset
    # ─────────────────────────────────────────────────────────────

    async def request_reset_code(self, email: str) -> MutationResult:
        return await self.updater.send(
            lambda: self.auth_api.request_password_reset_code(email),
            error_message="Error al solicitar el código de recuperación",
            success_message="Te enviamos un código de verificación a tu correo",
        )

    async def verify_reset_code(self, email: str, data: FormInput) -> FormResult:
        """
        Check the 5-digit code. The call succeeds but ``data.valid`` is
        False when the server rejects the code.
        """
        async def submit(form: VerificationCodeForm) -> MutationResult:
            request = VerifyPasswordResetCodeRequest(email=email, code=form.code)
            result = await self.updater.send(
                lambda: self.auth_api.verify_password_reset_code(request),
                error_message="Error al verificar el código de recuperación",
            )
            if result.succeeded and not result.data.valid:
                self.notifier.error(result.data.message or "Código inválido")
            return result

        return await submit_form(VerificationCodeForm, data, submit)

    async def reset_password(self, email: str, code: str, data: FormInput) -> FormResult:
        async def submit(form: ResetPasswordForm) -> MutationResult:
            request = ResetPasswordRequest(email=email, code=code, new_password=form.new_password)
            return await self.updater.send(
                lambda: self.auth_api.reset_password(request),
                error_message="Error al restablecer la contraseña",
                success_message="Contraseña actualizada correctamente",
            )

        return await submit_form(ResetPasswordForm, data, submit)

    # ─────────────────────────────────────────────────────────────
    # Profile
    # ─────────────────────────────────────────────────────────────

    async def get_profile(self) -> User:
        return await self.cache.ensure_query_data(query_keys.USER_PROFILE, self.user_api.get_profile)

    async def update_name(self, data: FormInput) -> FormResult:
        async def submit(form: EditProfileForm) -> MutationResult:
            result = await self.updater.send(
                lambda: self.user_api.update_name(form.name),
                invalidate=[query_keys.USER_PROFILE],
                error_message="Error al actualizar el perfil de usuario",
            )
            if result.succeeded:
                self.user = result.data
                self.token_store.set_user_data(result.data.to_payload())
            return result

        return await submit_form(EditProfileForm, data, submit)
