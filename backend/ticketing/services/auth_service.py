"""
Authentication service handling login and current-user lookups.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ticketing.core.exceptions import InvalidArgument, NotFound, Unauthenticated
from ticketing.core.security import verify_password
from ticketing.core.logging import get_logger
from ticketing.models.user import User

logger = get_logger(__name__)


async def authenticate_user(db: AsyncSession, email: Optional[str], password: Optional[str]) -> User:
    """
    Verify credentials and return the user.
    Raises 400 if a field is missing and 401 if credentials are invalid.
    """
    if not email or not password:
        raise InvalidArgument("Email and password required")

    result = await db.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()

    if not user or not verify_password(password, user.password_hash):
        logger.warning("login_failed", email=email)
        raise Unauthenticated("Invalid credentials")

    logger.info("user_logged_in", user_id=user.id)
    return user


async def get_user(db: AsyncSession, user_id: int) -> User:
    user = await db.get(User, user_id)
    if user is None:
        raise NotFound("User not found")
    return user
