"""
Password hashing and session tokens.

The session cookie carries a signed JWT whose ``sub`` claim is the numeric
user id. The token only identifies the caller; roles are always re-read
from the database by the authorization gate.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Optional

import bcrypt
import jwt

from ticketing.core.config import get_settings

if TYPE_CHECKING:
    from ticketing.models.user import UserRole


def hash_password(password: str) -> str:
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt())
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


def create_session_token(user_id: int, expires_delta: Optional[timedelta] = None) -> str:
    settings = get_settings()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    payload = {"sub": str(user_id), "exp": expire}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def resolve_user_id(token: Optional[str]) -> Optional[int]:
    """
    Map a session token to a user id.

    Returns None for a missing, tampered, expired or non-numeric token.
    Never raises.
    """
    if not token:
        return None

    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.PyJWTError:
        return None

    subject = payload.get("sub")
    if not isinstance(subject, str) or not (subject.isascii() and subject.isdigit()):
        return None
    return int(subject)


@dataclass(frozen=True)
class Identity:
    """The caller behind a request. `role` is only set once re-read from storage."""

    user_id: int
    role: Optional["UserRole"] = None
