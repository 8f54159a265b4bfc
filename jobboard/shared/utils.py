"""Shared utility functions."""
import re
from datetime import datetime, timezone
from typing import Iterable, Optional, Union

PASSWORD_BLACKLIST = {
    "123456",
    "123456789",
    "password",
    "qwerty",
    "111111",
    "12345678",
}


def is_password_strong(password: str, min_length: int = 10) -> bool:
    """Return True if password meets simple strength requirements."""
    if len(password) < min_length:
        return False
    if password.lower() in PASSWORD_BLACKLIST:
        return False
    if re.fullmatch(r"\d+", password):
        return False
    return True


def is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def any_blank(values: Iterable[Optional[str]]) -> bool:
    return any(is_blank(v) for v in values)


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


def parse_timestamp(value: Union[str, datetime, None]) -> datetime:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    if value is None or value == "":
        return utcnow()
    if isinstance(value, datetime):
        dt = value
    else:
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt
