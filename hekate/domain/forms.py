"""
Form schemas and submission gate.

Each form is a pydantic model whose validators carry the user-facing
messages. Cross-field rules (password confirmation) live in ``refine``,
which only runs once every field passed on its own, and report against a
single field so the UI can show the error next to it.

``submit_form`` is the only way operations accept user input: the submit
action is never invoked while any field is in error.
"""
import inspect
import re
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Generic, List, Mapping, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

from hekate.domain.exceptions import FormValidationError

F = TypeVar("F", bound="FormModel")

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

FieldErrors = Dict[str, List[str]]


def _fail(message: str) -> PydanticCustomError:
    return PydanticCustomError("form_field", message)


class FormModel(BaseModel):
    """Base for form schemas. Accepts snake_case or camelCase input keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def refine(self) -> FieldErrors:
        """Cross-field checks. Override to return ``{field: [messages]}``."""
        return {}


# ─────────────────────────────────────────────────────────────
# Auth forms
# ─────────────────────────────────────────────────────────────


class LoginForm(FormModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        if not v:
            raise _fail("El correo electrónico es requerido")
        if not EMAIL_PATTERN.match(v):
            raise _fail("Correo electrónico inválido")
        return v

    @field_validator("password")
    @classmethod
    def _password(cls, v: str) -> str:
        if not v:
            raise _fail("La contraseña es requerida")
        return v


class RegisterForm(FormModel):
    name: str
    email: str
    password: str
    confirm_password: str

    @field_validator("name")
    @classmethod
    def _name(cls, v: str) -> str:
        if not v:
            raise _fail("El nombre es requerido")
        return v

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        if not v:
            raise _fail("El correo electrónico es requerido")
        if not EMAIL_PATTERN.match(v):
            raise _fail("Correo electrónico inválido")
        return v

    @field_validator("password")
    @classmethod
    def _password_strength(cls, v: str) -> str:
        if len(v) < 8:
            raise _fail("La contraseña debe tener al menos 8 caracteres")
        if not re.search(r"[A-Z]", v):
            raise _fail("Debe incluir al menos una letra mayúscula")
        if not re.search(r"[a-z]", v):
            raise _fail("Debe incluir al menos una letra minúscula")
        if not re.search(r"[^a-zA-Z0-9]", v):
            raise _fail("Debe incluir al menos un carácter especial")
        return v

    @field_validator("confirm_password")
    @classmethod
    def _confirm(cls, v: str) -> str:
        if not v:
            raise _fail("Por favor confirma tu contraseña")
        return v

    def refine(self) -> FieldErrors:
        if self.password != self.confirm_password:
            return {"confirm_password": ["Las contraseñas no coinciden"]}
        return {}


class ResetPasswordForm(FormModel):
    new_password: str
    confirm_password: str

    @field_validator("new_password")
    @classmethod
    def _length(cls, v: str) -> str:
        if len(v) < 5:
            raise _fail("Password must be at least 5 characters")
        if len(v) > 12:
            raise _fail("Password must be less than 12 characters")
        return v

    @field_validator("confirm_password")
    @classmethod
    def _confirm(cls, v: str) -> str:
        if not v:
            raise _fail("Please confirm your password")
        return v

    def refine(self) -> FieldErrors:
        if self.new_password != self.confirm_password:
            return {"confirm_password": ["Passwords don't match"]}
        return {}


class VerificationCodeForm(FormModel):
    code: str

    @field_validator("code")
    @classmethod
    def _code(cls, v: str) -> str:
        if len(v) != 5:
            raise _fail("El código de verificación debe tener exactamente 5 caracteres")
        if not v.isdigit():
            raise _fail("El código de verificación debe contener solo números")
        return v


# ─────────────────────────────────────────────────────────────
# Content forms
# ─────────────────────────────────────────────────────────────


class DreamForm(FormModel):
    title: str
    text: str
    images: List[str] = []

    @field_validator("title", "text")
    @classmethod
    def _not_empty(cls, v: str) -> str:
        if len(v) < 1:
            raise _fail("Debe ser al menos 1 caracter")
        return v


class EditProfileForm(FormModel):
    name: str

    @field_validator("name")
    @classmethod
    def _name(cls, v: str) -> str:
        if not v:
            raise _fail("Name is required")
        return v


class BlockForm(FormModel):
    title: str
    description: str = ""
    color: str = ""

    @field_validator("title")
    @classmethod
    def _title(cls, v: str) -> str:
        if not v.strip():
            raise _fail("El título es requerido")
        return v


# ─────────────────────────────────────────────────────────────
# Validation and submission
# ─────────────────────────────────────────────────────────────


@dataclass
class FormResult(Generic[F]):
    """Validated form (when valid), field errors, and the submit outcome."""
    form: Optional[F] = None
    errors: FieldErrors = field(default_factory=dict)
    submitted: bool = False
    result: Any = None

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def raise_for_errors(self) -> None:
        if self.errors:
            raise FormValidationError(self.errors)


def _field_errors(form_cls: Type[FormModel], error: ValidationError) -> FieldErrors:
    by_alias = {(info.alias or name): name for name, info in form_cls.model_fields.items()}
    errors: FieldErrors = {}
    for item in error.errors():
        loc = item.get("loc") or ("__root__",)
        name = by_alias.get(str(loc[0]), str(loc[0]))
        message = "Este campo es requerido" if item.get("type") == "missing" else item["msg"]
        errors.setdefault(name, []).append(message)
    return errors


def validate_form(form_cls: Type[F], data: Union[Mapping[str, Any], F]) -> FormResult[F]:
    """Validate raw input against a form schema, field rules first, then ``refine``."""
    if isinstance(data, form_cls):
        form = data
    else:
        try:
            form = form_cls.model_validate(dict(data))
        except ValidationError as e:
            return FormResult(errors=_field_errors(form_cls, e))

    errors = form.refine()
    if errors:
        return FormResult(errors=errors)
    return FormResult(form=form)


async def submit_form(
    form_cls: Type[F],
    data: Union[Mapping[str, Any], F],
    on_submit: Callable[[F], Union[Awaitable[Any], Any]],
) -> FormResult[F]:
    """
    Validate and, only if valid, invoke ``on_submit`` with the parsed form.

    Returns:
        FormResult with ``submitted`` and ``result`` set when the action ran
    """
    result = validate_form(form_cls, data)
    if not result.is_valid:
        return result

    outcome = on_submit(result.form)
    if inspect.isawaitable(outcome):
        outcome = await outcome
    result.submitted = True
    result.result = outcome
    return result
