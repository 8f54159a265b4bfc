"""Profile screen session: view, edit, save and logout."""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Optional, Union

from ...shared.dto import UserProfile
from ...shared.errors import NotSignedIn, ValidationError
from ...shared.utils import is_blank
from ..remote_store import RemoteStore
from ..state import StateContainer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProfileSessionState:
    profile: Optional[UserProfile] = None
    editing: bool = False
    draft_name: str = ""
    draft_email: str = ""
    loading: bool = False
    error: Optional[str] = None
    logged_out: bool = False


@dataclass(frozen=True)
class LoadProfile:
    pass


@dataclass(frozen=True)
class ToggleEditMode:
    editing: bool


@dataclass(frozen=True)
class UpdateName:
    name: str


@dataclass(frozen=True)
class UpdateEmail:
    email: str


@dataclass(frozen=True)
class SaveProfile:
    pass


@dataclass(frozen=True)
class Logout:
    pass


@dataclass(frozen=True)
class ClearError:
    pass


ProfileEvent = Union[LoadProfile, ToggleEditMode, UpdateName, UpdateEmail, SaveProfile, Logout, ClearError]


def _toggle(state: ProfileSessionState, editing: bool) -> ProfileSessionState:
    if not editing:
        return replace(state, editing=False)
    if state.profile is None:
        return state
    return replace(
        state,
        editing=True,
        draft_name=state.profile.name,
        draft_email=state.profile.email,
    )


class ProfileSession:
    def __init__(self, store: RemoteStore):
        self.store = store
        self.container: StateContainer[ProfileSessionState] = StateContainer(ProfileSessionState(), name="profile")
        self.dispatch(LoadProfile())

    @property
    def state(self) -> ProfileSessionState:
        return self.container.current

    def dispatch(self, event: ProfileEvent) -> None:
        if isinstance(event, LoadProfile):
            self._load_profile()
        elif isinstance(event, ToggleEditMode):
            self.container.update(lambda s: _toggle(s, event.editing))
        elif isinstance(event, UpdateName):
            self.container.update(lambda s: replace(s, draft_name=event.name))
        elif isinstance(event, UpdateEmail):
            self.container.update(lambda s: replace(s, draft_email=event.email))
        elif isinstance(event, SaveProfile):
            self._save_profile()
        elif isinstance(event, Logout):
            self._logout()
        elif isinstance(event, ClearError):
            self.container.clear_error()
        else:
            raise TypeError(f"Unsupported profile event: {event!r}")

    def _load_profile(self) -> None:
        user_id = self.store.current_user_id()
        if not user_id:
            self.container.update(lambda s: replace(s, error=NotSignedIn().message))
            return
        self.container.update(lambda s: replace(s, loading=True, error=None))

        async def load() -> None:
            profile = (await self.store.fetch_profile(user_id)).unwrap()
            self.container.update(
                lambda s: replace(
                    s,
                    profile=profile,
                    draft_name=profile.name,
                    draft_email=profile.email,
                    loading=False,
                )
            )

        self.container.run_supervised(load, name="profile-load")

    def can_save(self) -> bool:
        state = self.container.current
        return state.editing and not is_blank(state.draft_name) and not state.loading

    def _save_profile(self) -> None:
        state = self.container.current
        if not state.editing or state.profile is None:
            return
        if is_blank(state.draft_name):
            self.container.update(lambda s: replace(s, error=ValidationError("Name cannot be empty").message))
            return
        updated = replace(state.profile, name=state.draft_name, email=state.draft_email)
        self.container.update(lambda s: replace(s, loading=True, error=None))

        async def save() -> None:
            result = await self.store.save_profile(updated)
            if result.ok:
                self.container.update(lambda s: replace(s, profile=updated, editing=False, loading=False))
            else:
                logger.info("Saving profile %s failed: %s", updated.id, result.error.message)
                self.container.fail(result.error.message)

        self.container.run_supervised(save, name="profile-save")

    def _logout(self) -> None:
        async def sign_out() -> None:
            await self.store.sign_out()
            self.container.update(lambda s: replace(s, logged_out=True))

        self.container.run_supervised(sign_out, name="profile-logout")

    async def close(self) -> None:
        await self.container.close()
