"""User lookup and profile routes."""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from . import schemas
from .auth import get_current_user_id, logger
from .database import get_db
from .models import User

router = APIRouter(prefix="/users", tags=["users"])


def get_user_or_404(db: Session, user_id: str) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.get("", response_model=List[schemas.UserOut])
def list_users(email: Optional[str] = None, db: Session = Depends(get_db), _: str = Depends(get_current_user_id)):
    query = db.query(User)
    if email:
        query = query.filter(User.email == email.strip().lower())
    return query.order_by(User.email).all()


@router.get("/{user_id}", response_model=schemas.UserOut)
def get_profile(user_id: str, db: Session = Depends(get_db), _: str = Depends(get_current_user_id)):
    return get_user_or_404(db, user_id)


@router.put("/{user_id}", response_model=schemas.UserOut)
def update_profile(
    user_id: str,
    payload: schemas.UserUpdate,
    db: Session = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id),
):
    if user_id != current_user_id:
        logger.warning("UNAUTHORIZED_ACCESS reason=foreign_profile user_id=%s target=%s", current_user_id, user_id)
        raise HTTPException(status_code=403, detail="You can only edit your own profile")
    user = get_user_or_404(db, user_id)
    email = payload.email.strip().lower()
    clash = db.query(User).filter(User.email == email, User.id != user_id).first()
    if clash:
        raise HTTPException(status_code=400, detail="Email already registered")

    user.email = email
    user.name = payload.name.strip()
    user.role = payload.role
    db.commit()
    db.refresh(user)
    logger.info("PROFILE_UPDATED user_id=%s", user.id)
    return user
