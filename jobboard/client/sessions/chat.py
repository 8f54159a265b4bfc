"""Chat screen session: room list, selected room stream and sending."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from typing import Optional, Tuple, Union

from ...shared.dto import ChatMessage, ChatRoomSummary
from ...shared.errors import MalformedRoom, NotSignedIn, RemoteFailure, ValidationError
from ...shared.utils import is_blank
from ..remote_store import RemoteStore
from ..state import StateContainer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChatSessionState:
    rooms: Tuple[ChatRoomSummary, ...] = ()
    selected_room: Optional[ChatRoomSummary] = None
    messages: Tuple[ChatMessage, ...] = ()
    draft: str = ""
    loading: bool = False
    error: Optional[str] = None


@dataclass(frozen=True)
class LoadRooms:
    pass


@dataclass(frozen=True)
class SelectRoom:
    room: ChatRoomSummary


@dataclass(frozen=True)
class UnselectRoom:
    pass


@dataclass(frozen=True)
class UpdateDraft:
    text: str


@dataclass(frozen=True)
class SendMessage:
    pass


@dataclass(frozen=True)
class StartChat:
    """Open (or reuse) the room with the user registered under ``email``."""

    email: str


@dataclass(frozen=True)
class ClearError:
    pass


ChatEvent = Union[LoadRooms, SelectRoom, UnselectRoom, UpdateDraft, SendMessage, StartChat, ClearError]


def _cancel(task: Optional[asyncio.Task]) -> None:
    if task is not None and not task.done():
        task.cancel()


class ChatSession:
    """Owns the chat screen state and the subscriptions feeding it.

    Every message subscription is tagged with the selection generation that
    started it; emissions from an older generation are dropped so a superseded
    room can never overwrite ``messages``.
    """

    def __init__(self, store: RemoteStore):
        self.store = store
        self.container: StateContainer[ChatSessionState] = StateContainer(ChatSessionState(), name="chat")
        self._rooms_task: Optional[asyncio.Task] = None
        self._messages_task: Optional[asyncio.Task] = None
        self._generation = 0
        self._awaiting_messages = False
        self.dispatch(LoadRooms())

    @property
    def state(self) -> ChatSessionState:
        return self.container.current

    def dispatch(self, event: ChatEvent) -> None:
        if isinstance(event, LoadRooms):
            self._load_rooms()
        elif isinstance(event, SelectRoom):
            self._select_room(event.room)
        elif isinstance(event, UnselectRoom):
            self._unselect_room()
        elif isinstance(event, UpdateDraft):
            self.container.update(lambda s: replace(s, draft=event.text))
        elif isinstance(event, SendMessage):
            self._send_message()
        elif isinstance(event, StartChat):
            self._start_chat(event.email)
        elif isinstance(event, ClearError):
            self.container.clear_error()
        else:
            raise TypeError(f"Unsupported chat event: {event!r}")

    # ------------------------------------------------------------------
    # Rooms
    # ------------------------------------------------------------------
    def _load_rooms(self) -> None:
        user_id = self.store.current_user_id()
        if not user_id:
            self._reject(NotSignedIn())
            return
        _cancel(self._rooms_task)
        self.container.update(lambda s: replace(s, loading=True, error=None))

        async def collect() -> None:
            first = True
            async for rooms in self.store.subscribe_rooms(user_id):
                ordered = tuple(sorted(rooms, key=lambda r: r.last_message_time, reverse=True))
                done = first and not self._awaiting_messages
                self.container.update(lambda s: replace(s, rooms=ordered, loading=False if done else s.loading))
                first = False
            if first and not self._awaiting_messages:
                self.container.set_loading(False)

        self._rooms_task = self.container.run_supervised(collect, name="chat-rooms")

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------
    def _select_room(self, room: ChatRoomSummary) -> None:
        self._generation += 1
        generation = self._generation
        _cancel(self._messages_task)
        self._awaiting_messages = True
        logger.debug("Selecting room %s (generation %s)", room.id, generation)
        self.container.update(lambda s: replace(s, selected_room=room, messages=(), loading=True))

        async def collect() -> None:
            first = True
            try:
                async for messages in self.store.subscribe_messages(room.id):
                    if generation != self._generation:
                        logger.debug("Dropping stale emission for room %s", room.id)
                        return
                    ordered = tuple(sorted(messages, key=lambda m: m.timestamp))
                    if first:
                        self._awaiting_messages = False
                    self.container.update(
                        lambda s: replace(s, messages=ordered, loading=False if first else s.loading)
                    )
                    first = False
                if first and generation == self._generation:
                    self.container.set_loading(False)
            finally:
                if generation == self._generation:
                    self._awaiting_messages = False

        self._messages_task = self.container.run_supervised(collect, name=f"chat-messages-{room.id}")

    def _unselect_room(self) -> None:
        if self.container.current.selected_room is None:
            return
        self._generation += 1
        _cancel(self._messages_task)
        self._messages_task = None
        was_awaiting = self._awaiting_messages
        self._awaiting_messages = False
        self.container.update(
            lambda s: replace(
                s,
                selected_room=None,
                messages=(),
                loading=False if was_awaiting else s.loading,
            )
        )

    def _start_chat(self, email: str) -> None:
        if is_blank(email):
            self._reject(ValidationError("Enter an email address"))
            return

        async def open_room() -> None:
            self.container.update(lambda s: replace(s, loading=True, error=None))
            peer = (await self.store.find_user(email.strip())).unwrap()
            if peer is None:
                raise RemoteFailure("No user with that email")
            room = (await self.store.open_room(peer.id)).unwrap()
            self.container.set_loading(False)
            self.dispatch(SelectRoom(room))

        self.container.run_supervised(open_room, name="chat-open-room")

    # ------------------------------------------------------------------
    # Sending
    # ------------------------------------------------------------------
    def other_participant_id(self, room: ChatRoomSummary) -> str:
        """Return the single participant of ``room`` that is not the current user."""
        others = room.participant_ids - {self.store.current_user_id()}
        if len(others) != 1:
            raise MalformedRoom(room.id)
        return next(iter(others))

    def can_send(self) -> bool:
        state = self.container.current
        return state.selected_room is not None and not is_blank(state.draft) and not state.loading

    def _send_message(self) -> None:
        state = self.container.current
        room = state.selected_room
        if room is None or is_blank(state.draft):
            return
        sender_id = self.store.current_user_id()
        if not sender_id:
            self._reject(NotSignedIn())
            return
        try:
            receiver_id = self.other_participant_id(room)
        except MalformedRoom as exc:
            self._reject(exc)
            return
        message = ChatMessage(sender_id=sender_id, receiver_id=receiver_id, content=state.draft.strip())

        async def submit() -> None:
            result = await self.store.send_message(message)
            if result.ok:
                self.container.update(lambda s: replace(s, draft=""))
            else:
                logger.info("Sending to room %s failed: %s", room.id, result.error.message)
                self.container.update(lambda s: replace(s, error=result.error.message))

        self.container.run_supervised(submit, name="chat-send")

    def _reject(self, exc: Union[ValidationError, MalformedRoom]) -> None:
        """Surface a locally detected failure without touching ``loading``."""
        logger.info("Rejected [%s]: %s", exc.kind.value, exc.message)
        self.container.update(lambda s: replace(s, error=exc.message))

    async def close(self) -> None:
        """Tear down: cancel room and message subscriptions and pending work."""
        self._generation += 1
        self._rooms_task = None
        self._messages_task = None
        await self.container.close()
