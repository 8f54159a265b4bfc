"""Authentication and authorization utilities and routes."""
import secrets
from datetime import datetime, timedelta
from typing import Dict, Optional

import bcrypt
from fastapi import APIRouter, Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from . import schemas
from .config import LOG_FILE, LOGIN_LOCK_ATTEMPTS, LOGIN_LOCK_MINUTES, TOKEN_EXPIRY_MINUTES
from .database import get_db
from .models import User
from ..shared.logging_config import configure_logging
from ..shared.utils import is_password_strong

router = APIRouter(prefix="/auth", tags=["auth"])
logger = configure_logging("jobboard_server", LOG_FILE)

# In-memory token store: token -> {"user_id": str, "expires": datetime}
TOKEN_STORE: Dict[str, Dict[str, datetime | str]] = {}


def _issue_token(user_id: str) -> str:
    token = secrets.token_urlsafe(32)
    TOKEN_STORE[token] = {"user_id": user_id, "expires": datetime.utcnow() + timedelta(minutes=TOKEN_EXPIRY_MINUTES)}
    return token


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(payload: schemas.RegisterRequest, db: Session = Depends(get_db)):
    email = payload.email.strip().lower()
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=400, detail="Email already registered")
    if not is_password_strong(payload.password):
        raise HTTPException(status_code=400, detail="Password does not meet policy")

    user = User(
        email=email,
        name=payload.name.strip(),
        role=payload.role,
        password_hash=bcrypt.hashpw(payload.password.encode(), bcrypt.gensalt()).decode(),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("REGISTER_SUCCESS email=%s user_id=%s role=%s", email, user.id, user.role)
    return {"message": "Registration successful", "id": user.id}


@router.post("/login", response_model=schemas.LoginResponse)
def login(payload: schemas.LoginRequest, db: Session = Depends(get_db)):
    email = payload.email.strip().lower()
    user: Optional[User] = db.query(User).filter(User.email == email).first()
    if not user:
        logger.info("LOGIN_FAIL email=%s reason=not_found", email)
        raise HTTPException(status_code=401, detail="Invalid credentials")

    if user.lock_until and user.lock_until > datetime.utcnow():
        logger.warning("ACCOUNT_BLOCKED email=%s locked_until=%s", email, user.lock_until)
        raise HTTPException(status_code=403, detail=f"Account locked until {user.lock_until}")

    if not bcrypt.checkpw(payload.password.encode(), user.password_hash.encode()):
        user.failed_login_attempts = (user.failed_login_attempts or 0) + 1
        if user.failed_login_attempts >= LOGIN_LOCK_ATTEMPTS:
            user.lock_until = datetime.utcnow() + timedelta(minutes=LOGIN_LOCK_MINUTES)
            logger.warning("ACCOUNT_BLOCKED email=%s locked_until=%s", email, user.lock_until)
        db.commit()
        logger.info("LOGIN_FAIL email=%s reason=bad_password", email)
        raise HTTPException(status_code=401, detail="Invalid credentials")

    user.failed_login_attempts = 0
    user.lock_until = None
    db.commit()

    token = _issue_token(user.id)
    logger.info("LOGIN_SUCCESS email=%s user_id=%s", user.email, user.id)
    return schemas.LoginResponse(token=token, user=schemas.UserOut.model_validate(user))


def _bearer(header: str | None) -> str:
    if not header or not header.startswith("Bearer "):
        logger.warning("UNAUTHORIZED_ACCESS reason=missing_token")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing token")
    return header.split(" ", 1)[1]


def _validate_token(header: str | None) -> str:
    token = _bearer(header)
    token_data = TOKEN_STORE.get(token)
    if not token_data:
        logger.warning("UNAUTHORIZED_ACCESS reason=unknown_token")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    if token_data["expires"] < datetime.utcnow():
        logger.warning("UNAUTHORIZED_ACCESS reason=expired_token")
        TOKEN_STORE.pop(token, None)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token expired")
    return str(token_data["user_id"])


def get_current_user_id(authorization: str | None = Header(default=None)) -> str:
    """FastAPI dependency returning authenticated user's id."""
    return _validate_token(authorization)


@router.post("/logout")
def logout(authorization: str | None = Header(default=None)):
    user_id = _validate_token(authorization)
    TOKEN_STORE.pop(_bearer(authorization), None)
    logger.info("LOGOUT user_id=%s", user_id)
    return {"message": "Signed out"}
