"""Pydantic schemas for request and response bodies."""
from datetime import datetime
from typing import List, Literal

from pydantic import BaseModel, ConfigDict, Field

Role = Literal["JOB_SEEKER", "EMPLOYER"]
JobTypeName = Literal["FULL_TIME", "PART_TIME", "CONTRACT", "FREELANCE"]


class RegisterRequest(BaseModel):
    email: str = Field(..., min_length=3)
    password: str
    name: str = Field(..., min_length=1)
    role: Role = "JOB_SEEKER"


class LoginRequest(BaseModel):
    email: str
    password: str


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    name: str
    role: Role


class UserUpdate(BaseModel):
    email: str = Field(..., min_length=3)
    name: str = Field(..., min_length=1)
    role: Role


class LoginResponse(BaseModel):
    token: str
    user: UserOut


class JobCreate(BaseModel):
    title: str = Field(..., min_length=1)
    company: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    location: str = Field(..., min_length=1)
    salary: str = Field(..., min_length=1)
    requirements: List[str] = []
    type: JobTypeName = "FULL_TIME"


class JobOut(BaseModel):
    id: str
    title: str
    company: str
    description: str
    location: str
    salary: str
    requirements: List[str]
    type: JobTypeName
    posted_by: str
    posted_at: datetime


class RoomCreate(BaseModel):
    peer_id: str


class RoomOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    participant_ids: List[str]
    last_message_preview: str
    last_message_time: datetime


class MessageCreate(BaseModel):
    receiver_id: str
    content: str = Field(..., min_length=1)


class MessageOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    sender_id: str
    receiver_id: str
    content: str
    timestamp: datetime
    is_read: bool
