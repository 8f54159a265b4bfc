"""Database models for the job board server."""
import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint

from .database import Base


def new_id() -> str:
    return uuid.uuid4().hex


class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, default=new_id)
    email = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=False)
    role = Column(String, nullable=False, default="JOB_SEEKER")
    password_hash = Column(String, nullable=False)
    failed_login_attempts = Column(Integer, default=0)
    lock_until = Column(DateTime, nullable=True)


class Job(Base):
    __tablename__ = "jobs"

    id = Column(String, primary_key=True, default=new_id)
    title = Column(String, nullable=False)
    company = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    location = Column(String, nullable=False)
    salary = Column(String, nullable=False)
    requirements = Column(Text, default="")
    type = Column(String, nullable=False, default="FULL_TIME")
    posted_by = Column(String, ForeignKey("users.id"), nullable=False)
    posted_at = Column(DateTime, default=datetime.utcnow, index=True)


class ChatRoom(Base):
    """A 1:1 room; ``user_a_id`` sorts before ``user_b_id``."""

    __tablename__ = "chat_rooms"
    __table_args__ = (UniqueConstraint("user_a_id", "user_b_id", name="uq_room_pair"),)

    id = Column(String, primary_key=True, default=new_id)
    user_a_id = Column(String, ForeignKey("users.id"), nullable=False)
    user_b_id = Column(String, ForeignKey("users.id"), nullable=False)
    last_message_preview = Column(String, default="")
    last_message_time = Column(DateTime, default=datetime.utcnow, index=True)

    @property
    def participant_ids(self) -> list:
        return [self.user_a_id, self.user_b_id]


class Message(Base):
    __tablename__ = "messages"

    id = Column(String, primary_key=True, default=new_id)
    room_id = Column(String, ForeignKey("chat_rooms.id"), nullable=False, index=True)
    sender_id = Column(String, ForeignKey("users.id"), nullable=False)
    receiver_id = Column(String, ForeignKey("users.id"), nullable=False)
    content = Column(Text, nullable=False)
    timestamp = Column(DateTime, default=datetime.utcnow)
    is_read = Column(Boolean, default=False)
