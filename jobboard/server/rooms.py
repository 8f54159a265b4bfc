"""Chat room and message routes."""
from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import or_
from sqlalchemy.orm import Session

from . import schemas
from .auth import get_current_user_id, logger
from .database import get_db
from .models import ChatRoom, Message
from .users import get_user_or_404

router = APIRouter(tags=["chat"])

PREVIEW_LENGTH = 80


def _room_for_pair(db: Session, first_id: str, second_id: str) -> ChatRoom:
    """Return the 1:1 room of two users, creating it on first contact."""
    if first_id == second_id:
        raise HTTPException(status_code=400, detail="You cannot chat with yourself")
    user_a_id, user_b_id = sorted((first_id, second_id))
    room = db.query(ChatRoom).filter(ChatRoom.user_a_id == user_a_id, ChatRoom.user_b_id == user_b_id).first()
    if room:
        return room
    room = ChatRoom(user_a_id=user_a_id, user_b_id=user_b_id, last_message_preview="")
    db.add(room)
    db.flush()
    logger.info("ROOM_CREATED room_id=%s users=%s,%s", room.id, user_a_id, user_b_id)
    return room


@router.get("/rooms", response_model=List[schemas.RoomOut])
def list_rooms(db: Session = Depends(get_db), current_user_id: str = Depends(get_current_user_id)):
    return (
        db.query(ChatRoom)
        .filter(or_(ChatRoom.user_a_id == current_user_id, ChatRoom.user_b_id == current_user_id))
        .order_by(ChatRoom.last_message_time.desc())
        .all()
    )


@router.post("/rooms", response_model=schemas.RoomOut)
def open_room(
    payload: schemas.RoomCreate,
    db: Session = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id),
):
    get_user_or_404(db, payload.peer_id)
    room = _room_for_pair(db, current_user_id, payload.peer_id)
    db.commit()
    db.refresh(room)
    return room


@router.get("/rooms/{room_id}/messages", response_model=List[schemas.MessageOut])
def get_room_messages(
    room_id: str,
    db: Session = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id),
):
    room = db.query(ChatRoom).filter(ChatRoom.id == room_id).first()
    if not room:
        raise HTTPException(status_code=404, detail="Chat room not found")
    if current_user_id not in room.participant_ids:
        logger.warning("UNAUTHORIZED_ACCESS reason=foreign_room user_id=%s room_id=%s", current_user_id, room_id)
        raise HTTPException(status_code=403, detail="Not a participant of this chat")
    return (
        db.query(Message)
        .filter(Message.room_id == room_id)
        .order_by(Message.timestamp, Message.id)
        .all()
    )


@router.post("/messages")
def send_message(
    payload: schemas.MessageCreate,
    db: Session = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id),
):
    sender = get_user_or_404(db, current_user_id)
    receiver = get_user_or_404(db, payload.receiver_id)
    room = _room_for_pair(db, sender.id, receiver.id)

    now = datetime.utcnow()
    message = Message(
        room_id=room.id,
        sender_id=sender.id,
        receiver_id=receiver.id,
        content=payload.content,
        timestamp=now,
    )
    room.last_message_preview = payload.content[:PREVIEW_LENGTH]
    room.last_message_time = now
    db.add(message)
    db.commit()
    db.refresh(message)
    logger.info(
        "MESSAGE_SENT sender_id=%s receiver_id=%s room_id=%s message_id=%s",
        sender.id,
        receiver.id,
        room.id,
        message.id,
    )
    return {"message": "Message stored", "id": message.id, "room_id": room.id}
