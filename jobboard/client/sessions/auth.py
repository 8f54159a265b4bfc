"""Login and registration session."""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional, Union

from ...shared.dto import UserRole
from ...shared.errors import ValidationError
from ...shared.utils import any_blank, is_password_strong
from ..remote_store import RemoteStore
from ..state import StateContainer


@dataclass(frozen=True)
class AuthSessionState:
    email: str = ""
    password: str = ""
    confirm_password: str = ""
    name: str = ""
    role: UserRole = UserRole.JOB_SEEKER
    loading: bool = False
    error: Optional[str] = None
    authenticated: bool = False


@dataclass(frozen=True)
class UpdateEmail:
    email: str


@dataclass(frozen=True)
class UpdatePassword:
    password: str


@dataclass(frozen=True)
class UpdateConfirmPassword:
    password: str


@dataclass(frozen=True)
class UpdateName:
    name: str


@dataclass(frozen=True)
class SelectRole:
    role: UserRole


@dataclass(frozen=True)
class Login:
    pass


@dataclass(frozen=True)
class Register:
    pass


@dataclass(frozen=True)
class ClearError:
    pass


AuthEvent = Union[UpdateEmail, UpdatePassword, UpdateConfirmPassword, UpdateName, SelectRole, Login, Register, ClearError]


def validate_registration(state: AuthSessionState) -> None:
    """Raise ``ValidationError`` when the registration form is not acceptable."""
    if any_blank([state.name, state.email, state.password, state.confirm_password]):
        raise ValidationError("Please fill in all fields")
    if state.password != state.confirm_password:
        raise ValidationError("Passwords do not match")
    if not is_password_strong(state.password):
        raise ValidationError("Password does not meet policy")


class AuthSession:
    def __init__(self, store: RemoteStore):
        self.store = store
        self.container: StateContainer[AuthSessionState] = StateContainer(AuthSessionState(), name="auth")

    @property
    def state(self) -> AuthSessionState:
        return self.container.current

    def dispatch(self, event: AuthEvent) -> None:
        if isinstance(event, UpdateEmail):
            self.container.update(lambda s: replace(s, email=event.email))
        elif isinstance(event, UpdatePassword):
            self.container.update(lambda s: replace(s, password=event.password))
        elif isinstance(event, UpdateConfirmPassword):
            self.container.update(lambda s: replace(s, confirm_password=event.password))
        elif isinstance(event, UpdateName):
            self.container.update(lambda s: replace(s, name=event.name))
        elif isinstance(event, SelectRole):
            self.container.update(lambda s: replace(s, role=event.role))
        elif isinstance(event, Login):
            self._login()
        elif isinstance(event, Register):
            self._register()
        elif isinstance(event, ClearError):
            self.container.clear_error()
        else:
            raise TypeError(f"Unsupported auth event: {event!r}")

    def _login(self) -> None:
        state = self.container.current
        if any_blank([state.email, state.password]):
            self.container.update(lambda s: replace(s, error="Please fill in all fields"))
            return
        email, password = state.email.strip(), state.password
        self.container.update(lambda s: replace(s, loading=True, error=None))

        async def sign_in() -> None:
            (await self.store.authenticate(email, password)).unwrap()
            self.container.update(lambda s: replace(s, authenticated=True, password="", loading=False))

        self.container.run_supervised(sign_in, name="auth-login")

    def _register(self) -> None:
        state = self.container.current
        try:
            validate_registration(state)
        except ValidationError as exc:
            self.container.update(lambda s: replace(s, error=exc.message))
            return
        self.container.update(lambda s: replace(s, loading=True, error=None))

        async def sign_up() -> None:
            result = await self.store.register(state.email.strip(), state.password, state.name.strip(), state.role)
            result.unwrap()
            self.container.update(
                lambda s: replace(s, authenticated=True, password="", confirm_password="", loading=False)
            )

        self.container.run_supervised(sign_up, name="auth-register")

    async def close(self) -> None:
        await self.container.close()
