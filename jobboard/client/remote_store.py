"""Remote store port and its HTTP implementation.

Sessions only see the ``RemoteStore`` protocol.  ``HttpRemoteStore`` adapts
the blocking ``APIClient`` to it: one-shot calls run in a worker thread and
return a ``Result``; live streams are produced by polling the server and
emitting a new snapshot whenever it changes.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, AsyncIterator, Callable, List, Optional, Protocol, Tuple, TypeVar

from ..shared.dto import ChatMessage, ChatRoomSummary, Job, UserProfile, UserRole
from ..shared.errors import JobBoardError, RemoteFailure, Result
from . import storage
from .api import APIClient

T = TypeVar("T")

logger = logging.getLogger(__name__)


class RemoteStore(Protocol):
    """Authentication plus document reads, writes and live queries."""

    async def authenticate(self, email: str, password: str) -> Result[None]: ...
    async def register(self, email: str, password: str, name: str, role: UserRole) -> Result[None]: ...
    def current_user_id(self) -> Optional[str]: ...
    async def sign_out(self) -> None: ...

    async def fetch_profile(self, user_id: str) -> Result[UserProfile]: ...
    async def save_profile(self, profile: UserProfile) -> Result[None]: ...
    async def find_user(self, email: str) -> Result[Optional[UserProfile]]: ...

    async def post_job(self, job: Job) -> Result[None]: ...
    async def fetch_jobs(self) -> Result[Tuple[Job, ...]]: ...  # posted_at descending
    async def fetch_job(self, job_id: str) -> Result[Job]: ...

    async def open_room(self, peer_id: str) -> Result[ChatRoomSummary]: ...
    def subscribe_rooms(self, user_id: str) -> AsyncIterator[Tuple[ChatRoomSummary, ...]]: ...
    def subscribe_messages(self, room_id: str) -> AsyncIterator[Tuple[ChatMessage, ...]]: ...
    async def send_message(self, message: ChatMessage) -> Result[None]: ...


class HttpRemoteStore:
    """``RemoteStore`` backed by the job board REST server."""

    def __init__(self, api: APIClient, poll_interval: float = 2.5):
        self.api = api
        self.poll_interval = poll_interval
        user = storage.get_user() or {}
        self._user_id: Optional[str] = user.get("id")

    async def _call(self, fn: Callable[..., Any], *args: Any, convert: Optional[Callable[[Any], T]] = None) -> Result[T]:
        try:
            raw = await asyncio.to_thread(fn, *args)
            value = convert(raw) if convert else None
        except JobBoardError as exc:
            logger.info("%s failed [%s]: %s", getattr(fn, "__name__", fn), exc.kind.value, exc.message)
            return Result.failure(exc)
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Malformed response from %s: %s", getattr(fn, "__name__", fn), exc)
            return Result.failure(RemoteFailure("Malformed response from server"))
        return Result.success(value)

    # ---- auth ----
    async def authenticate(self, email: str, password: str) -> Result[None]:
        def accept(response: dict) -> Tuple[str, dict, str]:
            return response["token"], response["user"], str(response["user"]["id"])

        result = await self._call(self.api.login, email, password, convert=accept)
        if not result.ok:
            return Result.failure(result.error)
        token, user, user_id = result.value
        await asyncio.to_thread(storage.store_auth, token, user)
        self._user_id = user_id
        return Result.success()

    async def register(self, email: str, password: str, name: str, role: UserRole) -> Result[None]:
        payload = {"email": email, "password": password, "name": name, "role": role.value}
        result = await self._call(self.api.register, payload)
        if not result.ok:
            return result
        return await self.authenticate(email, password)

    def current_user_id(self) -> Optional[str]:
        return self._user_id

    async def sign_out(self) -> None:
        try:
            await asyncio.to_thread(self.api.logout)
        except JobBoardError as exc:
            logger.info("Server logout failed, clearing local session anyway: %s", exc.message)
        await asyncio.to_thread(storage.clear_auth)
        self._user_id = None

    # ---- profiles ----
    async def fetch_profile(self, user_id: str) -> Result[UserProfile]:
        return await self._call(self.api.get_user, user_id, convert=UserProfile.from_dict)

    async def save_profile(self, profile: UserProfile) -> Result[None]:
        payload = {"email": profile.email, "name": profile.name, "role": profile.role.value}
        return await self._call(self.api.update_user, profile.id, payload)

    async def find_user(self, email: str) -> Result[Optional[UserProfile]]:
        def first(rows: List[dict]) -> Optional[UserProfile]:
            return UserProfile.from_dict(rows[0]) if rows else None

        return await self._call(self.api.find_users, email, convert=first)

    # ---- jobs ----
    async def post_job(self, job: Job) -> Result[None]:
        payload = job.to_dict()
        payload.pop("id")
        payload.pop("posted_at")
        return await self._call(self.api.post_job, payload)

    async def fetch_jobs(self) -> Result[Tuple[Job, ...]]:
        return await self._call(self.api.list_jobs, convert=lambda rows: tuple(Job.from_dict(r) for r in rows))

    async def fetch_job(self, job_id: str) -> Result[Job]:
        return await self._call(self.api.get_job, job_id, convert=Job.from_dict)

    # ---- chat ----
    async def open_room(self, peer_id: str) -> Result[ChatRoomSummary]:
        return await self._call(self.api.open_room, peer_id, convert=ChatRoomSummary.from_dict)

    async def send_message(self, message: ChatMessage) -> Result[None]:
        payload = {"receiver_id": message.receiver_id, "content": message.content}
        return await self._call(self.api.send_message, payload)

    async def subscribe_rooms(self, user_id: str) -> AsyncIterator[Tuple[ChatRoomSummary, ...]]:
        async for rows in self._poll(self.api.list_rooms):
            rooms = (ChatRoomSummary.from_dict(r) for r in rows)
            yield tuple(room for room in rooms if user_id in room.participant_ids)

    async def subscribe_messages(self, room_id: str) -> AsyncIterator[Tuple[ChatMessage, ...]]:
        async for rows in self._poll(self.api.get_messages, room_id):
            yield tuple(ChatMessage.from_dict(r) for r in rows)

    async def _poll(self, fetch: Callable[..., Any], *args: Any) -> AsyncIterator[Any]:
        """Yield ``fetch(*args)`` now and again whenever the result changes."""
        last: Any = None
        first = True
        while True:
            rows = await asyncio.to_thread(fetch, *args)
            if first or rows != last:
                first = False
                last = rows
                yield rows
            await asyncio.sleep(self.poll_interval)
