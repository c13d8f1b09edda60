"""
User administration: create, list, update and delete accounts.
"""

from typing import Optional

from sqlalchemy import delete, exists, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ticketing.core.exceptions import Conflict, InvalidArgument, NotFound
from ticketing.core.security import hash_password
from ticketing.core.logging import get_logger
from ticketing.models.booking import Booking
from ticketing.models.user import User, UserRole
from ticketing.schemas.user import UserCreate, UserUpdate

logger = get_logger(__name__)


def _validated_role(value: str) -> str:
    role = UserRole.parse(value)
    if role is None:
        raise InvalidArgument(
            f"role must be one of: {', '.join(r.value for r in UserRole)}"
        )
    return role.value


async def _ensure_email_free(db: AsyncSession, email: str, exclude_user_id: Optional[int] = None) -> None:
    query = select(User.id).where(User.email == email)
    if exclude_user_id is not None:
        query = query.where(User.id != exclude_user_id)
    if (await db.execute(query)).first() is not None:
        logger.warning("user_email_taken", email=email)
        raise Conflict("Email already registered")


async def create_user(db: AsyncSession, data: UserCreate) -> User:
    role = _validated_role(data.role)
    await _ensure_email_free(db, data.email)

    user = User(
        name=data.name,
        email=data.email,
        phone=data.phone,
        role=role,
        password_hash=hash_password(data.password),
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise Conflict("Email already registered") from e

    logger.info("user_created", user_id=user.id, role=role)
    return user


async def list_users(db: AsyncSession) -> list[User]:
    result = await db.execute(select(User).order_by(User.id))
    return list(result.scalars().all())


async def update_user(db: AsyncSession, user_id: int, data: UserUpdate) -> User:
    user = await db.get(User, user_id)
    if user is None:
        raise NotFound("User not found")

    changes = data.model_dump(exclude_unset=True)
    if "role" in changes:
        changes["role"] = _validated_role(changes["role"])
    if changes.get("email") and changes["email"] != user.email:
        await _ensure_email_free(db, changes["email"], exclude_user_id=user_id)
    if "password" in changes:
        password = changes.pop("password")
        if password:
            user.password_hash = hash_password(password)

    for field, value in changes.items():
        if value is None and field != "phone":
            continue
        setattr(user, field, value)

    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise Conflict("Email already registered") from e

    logger.info("user_updated", user_id=user_id, fields=sorted(changes))
    return user


async def delete_user(db: AsyncSession, user_id: int) -> None:
    """Delete a user. Refused while the user still has bookings."""
    if await db.get(User, user_id) is None:
        raise NotFound("User not found")

    has_bookings = (
        await db.execute(select(exists().where(Booking.user_id == user_id)))
    ).scalar()
    if has_bookings:
        raise Conflict("User has bookings and cannot be deleted")

    try:
        await db.execute(delete(User).where(User.id == user_id))
        await db.commit()
    except IntegrityError as e:
        # Still referenced elsewhere (e.g. organizer of events)
        await db.rollback()
        raise Conflict("User is still referenced and cannot be deleted") from e

    logger.info("user_deleted", user_id=user_id)
