import asyncio
import os
import tempfile
from collections import defaultdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pytest

os.environ.setdefault("JOBBOARD_DATABASE_URL", "sqlite://")
os.environ.setdefault("JOBBOARD_SERVER_LOG", str(Path(tempfile.gettempdir()) / "jobboard-test-server.log"))

from jobboard.shared.dto import ChatMessage, ChatRoomSummary, Job, UserProfile, UserRole  # noqa: E402
from jobboard.shared.errors import RemoteFailure, Result  # noqa: E402

_END = object()


def at(hour: int, minute: int = 0) -> datetime:
    return datetime(2024, 5, 1, hour, minute, tzinfo=timezone.utc)


def room(room_id: str, *participants: str, hour: int = 10, preview: str = "") -> ChatRoomSummary:
    return ChatRoomSummary(
        id=room_id,
        participant_ids=frozenset(participants),
        last_message_preview=preview,
        last_message_time=at(hour),
    )


def message(msg_id: str, sender: str, receiver: str, content: str, hour: int = 10, minute: int = 0) -> ChatMessage:
    return ChatMessage(id=msg_id, sender_id=sender, receiver_id=receiver, content=content, timestamp=at(hour, minute))


async def drain(rounds: int = 5) -> None:
    """Let pending tasks run until they block again."""
    for _ in range(rounds):
        await asyncio.sleep(0)


class FakeRemoteStore:
    """In-memory store; streams are fed by the test through queues."""

    def __init__(self, user_id: Optional[str] = "u1"):
        self.user_id = user_id
        self.profile: Optional[UserProfile] = None
        self.profile_error: Optional[str] = None
        self.save_error: Optional[str] = None
        self.send_error: Optional[str] = None
        self.auth_error: Optional[str] = None
        self.jobs: Tuple[Job, ...] = ()
        self.jobs_error: Optional[str] = None
        self.users: Dict[str, UserProfile] = {}
        self.send_gate: Optional[asyncio.Event] = None

        self.calls: List[Tuple] = []
        self.sent: List[ChatMessage] = []
        self.saved: List[UserProfile] = []
        self.posted: List[Job] = []
        self.signed_out = False

        self._room_queues: List[asyncio.Queue] = []
        self._message_queues: Dict[str, List[asyncio.Queue]] = defaultdict(list)
        self.active_room_subscriptions = 0
        self.active_message_subscriptions = 0

    # ---- auth ----
    async def authenticate(self, email, password):
        self.calls.append(("authenticate", email, password))
        if self.auth_error:
            return Result.failure(RemoteFailure(self.auth_error))
        self.user_id = "u1"
        return Result.success()

    async def register(self, email, password, name, role):
        self.calls.append(("register", email, password, name, role))
        if self.auth_error:
            return Result.failure(RemoteFailure(self.auth_error))
        self.user_id = "u1"
        return Result.success()

    def current_user_id(self):
        return self.user_id

    async def sign_out(self):
        self.calls.append(("sign_out",))
        self.signed_out = True
        self.user_id = None

    # ---- profiles ----
    async def fetch_profile(self, user_id):
        self.calls.append(("fetch_profile", user_id))
        if self.profile_error:
            return Result.failure(RemoteFailure(self.profile_error))
        return Result.success(self.profile)

    async def save_profile(self, profile):
        self.calls.append(("save_profile", profile))
        if self.save_error:
            return Result.failure(RemoteFailure(self.save_error))
        self.saved.append(profile)
        return Result.success()

    async def find_user(self, email):
        self.calls.append(("find_user", email))
        return Result.success(self.users.get(email))

    # ---- jobs ----
    async def post_job(self, job):
        self.calls.append(("post_job", job))
        self.posted.append(job)
        return Result.success()

    async def fetch_jobs(self):
        self.calls.append(("fetch_jobs",))
        if self.jobs_error:
            return Result.failure(RemoteFailure(self.jobs_error))
        return Result.success(self.jobs)

    async def fetch_job(self, job_id):
        self.calls.append(("fetch_job", job_id))
        for job in self.jobs:
            if job.id == job_id:
                return Result.success(job)
        return Result.failure(RemoteFailure("Job not found"))

    # ---- chat ----
    async def open_room(self, peer_id):
        self.calls.append(("open_room", peer_id))
        return Result.success(room(f"room-{peer_id}", self.user_id, peer_id))

    async def send_message(self, msg):
        self.calls.append(("send_message", msg))
        if self.send_gate is not None:
            await self.send_gate.wait()
        if self.send_error:
            return Result.failure(RemoteFailure(self.send_error))
        self.sent.append(msg)
        return Result.success()

    async def subscribe_rooms(self, user_id):
        self.calls.append(("subscribe_rooms", user_id))
        queue: asyncio.Queue = asyncio.Queue()
        self._room_queues.append(queue)
        self.active_room_subscriptions += 1
        try:
            while True:
                item = await queue.get()
                if item is _END:
                    return
                if isinstance(item, Exception):
                    raise item
                yield item
        finally:
            self.active_room_subscriptions -= 1
            self._room_queues.remove(queue)

    async def subscribe_messages(self, room_id):
        self.calls.append(("subscribe_messages", room_id))
        queue: asyncio.Queue = asyncio.Queue()
        self._message_queues[room_id].append(queue)
        self.active_message_subscriptions += 1
        try:
            while True:
                item = await queue.get()
                if item is _END:
                    return
                if isinstance(item, Exception):
                    raise item
                yield item
        finally:
            self.active_message_subscriptions -= 1
            self._message_queues[room_id].remove(queue)

    # ---- test controls ----
    def emit_rooms(self, rooms) -> None:
        for queue in list(self._room_queues):
            queue.put_nowait(tuple(rooms))

    def emit_messages(self, room_id: str, messages) -> None:
        for queue in list(self._message_queues[room_id]):
            queue.put_nowait(tuple(messages))

    def fail_messages(self, room_id: str, error: Exception) -> None:
        for queue in list(self._message_queues[room_id]):
            queue.put_nowait(error)

    def end_messages(self, room_id: str) -> None:
        for queue in list(self._message_queues[room_id]):
            queue.put_nowait(_END)

    def calls_named(self, name: str) -> List[Tuple]:
        return [c for c in self.calls if c[0] == name]


@pytest.fixture
def store() -> FakeRemoteStore:
    return FakeRemoteStore()


@pytest.fixture
def profile() -> UserProfile:
    return UserProfile(id="u1", email="ada@example.com", name="Ada", role=UserRole.EMPLOYER)
