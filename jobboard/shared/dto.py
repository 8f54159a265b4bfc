"""Shared domain records exchanged between client and server."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, FrozenSet, Tuple

from .utils import parse_timestamp, utcnow


class UserRole(str, Enum):
    JOB_SEEKER = "JOB_SEEKER"
    EMPLOYER = "EMPLOYER"


class JobType(str, Enum):
    FULL_TIME = "FULL_TIME"
    PART_TIME = "PART_TIME"
    CONTRACT = "CONTRACT"
    FREELANCE = "FREELANCE"


@dataclass(frozen=True)
class UserProfile:
    id: str
    email: str
    name: str
    role: UserRole = UserRole.JOB_SEEKER

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "email": self.email, "name": self.name, "role": self.role.value}

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "UserProfile":
        return UserProfile(
            id=str(data["id"]),
            email=data.get("email", ""),
            name=data.get("name", ""),
            role=UserRole(data.get("role", UserRole.JOB_SEEKER.value)),
        )


@dataclass(frozen=True)
class Job:
    id: str
    title: str
    company: str
    description: str
    location: str
    salary: str
    requirements: Tuple[str, ...] = ()
    posted_by: str = ""
    posted_at: datetime = field(default_factory=utcnow)
    type: JobType = JobType.FULL_TIME

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "company": self.company,
            "description": self.description,
            "location": self.location,
            "salary": self.salary,
            "requirements": list(self.requirements),
            "posted_by": self.posted_by,
            "posted_at": self.posted_at.isoformat(),
            "type": self.type.value,
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Job":
        return Job(
            id=str(data.get("id", "")),
            title=data["title"],
            company=data["company"],
            description=data.get("description", ""),
            location=data.get("location", ""),
            salary=data.get("salary", ""),
            requirements=tuple(data.get("requirements") or ()),
            posted_by=data.get("posted_by", ""),
            posted_at=parse_timestamp(data.get("posted_at")),
            type=JobType(data.get("type", JobType.FULL_TIME.value)),
        )


@dataclass(frozen=True)
class ChatRoomSummary:
    """Snapshot of a 1:1 room as listed in the sidebar."""

    id: str
    participant_ids: FrozenSet[str]
    last_message_preview: str = ""
    last_message_time: datetime = field(default_factory=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "participant_ids": sorted(self.participant_ids),
            "last_message_preview": self.last_message_preview,
            "last_message_time": self.last_message_time.isoformat(),
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "ChatRoomSummary":
        return ChatRoomSummary(
            id=str(data["id"]),
            participant_ids=frozenset(str(p) for p in data.get("participant_ids", ())),
            last_message_preview=data.get("last_message_preview") or "",
            last_message_time=parse_timestamp(data.get("last_message_time")),
        )


@dataclass(frozen=True)
class ChatMessage:
    sender_id: str
    receiver_id: str
    content: str
    id: str = ""
    timestamp: datetime = field(default_factory=utcnow)
    # Not updated by any client flow yet; kept for read receipts.
    is_read: bool = False

    def __post_init__(self) -> None:
        if self.sender_id == self.receiver_id:
            raise ValueError("sender and receiver must differ")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "sender_id": self.sender_id,
            "receiver_id": self.receiver_id,
            "content": self.content,
            "timestamp": self.timestamp.isoformat(),
            "is_read": self.is_read,
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "ChatMessage":
        return ChatMessage(
            id=str(data.get("id", "")),
            sender_id=str(data["sender_id"]),
            receiver_id=str(data["receiver_id"]),
            content=data.get("content", ""),
            timestamp=parse_timestamp(data.get("timestamp")),
            is_read=bool(data.get("is_read", False)),
        )
