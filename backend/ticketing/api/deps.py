"""
Request identity and authorization dependencies.

`require_auth` only needs a resolvable session. `require_role(...)` also
re-reads the caller's role from the database on every request, so a role
change takes effect immediately regardless of when the session was issued.
"""

from typing import Optional

import structlog
from fastapi import Depends, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ticketing.core.config import get_settings
from ticketing.core.exceptions import Forbidden, Unauthenticated
from ticketing.core.logging import get_logger
from ticketing.core.metrics import record_auth_denial
from ticketing.core.security import Identity, resolve_user_id
from ticketing.db.session import get_db
from ticketing.models.user import User, UserRole

logger = get_logger(__name__)


def get_session_user_id(request: Request) -> Optional[int]:
    """Resolve the session cookie to a user id, or None."""
    return resolve_user_id(request.cookies.get(get_settings().SESSION_COOKIE_NAME))


def _attach(request: Request, identity: Identity) -> Identity:
    request.state.identity = identity
    structlog.contextvars.bind_contextvars(user_id=identity.user_id)
    return identity


def _unauthenticated(message: str = "Not authenticated") -> Unauthenticated:
    record_auth_denial("unauthenticated")
    return Unauthenticated(message)


async def require_auth(request: Request) -> Identity:
    user_id = get_session_user_id(request)
    if user_id is None:
        raise _unauthenticated()
    return _attach(request, Identity(user_id=user_id))


def require_role(*allowed_roles: UserRole):
    """Build a dependency admitting only callers whose stored role is in `allowed_roles`."""
    allowed = frozenset(allowed_roles)

    async def dependency(request: Request, db: AsyncSession = Depends(get_db)) -> Identity:
        user_id = get_session_user_id(request)
        if user_id is None:
            raise _unauthenticated()

        stored_role = (
            await db.execute(select(User.role).where(User.id == user_id))
        ).scalar_one_or_none()
        if stored_role is None:
            raise _unauthenticated("User not found")

        role = UserRole.parse(stored_role)
        if role not in allowed:
            record_auth_denial("forbidden")
            logger.warning(
                "authorization_denied",
                user_id=user_id,
                role=stored_role,
                allowed=sorted(r.value for r in allowed),
            )
            raise Forbidden()

        return _attach(request, Identity(user_id=user_id, role=role))

    return dependency


ALL_ROLES = (UserRole.CUSTOMER, UserRole.ORGANIZER, UserRole.ADMIN)

require_organizer = require_role(UserRole.ORGANIZER, UserRole.ADMIN)
require_admin = require_role(UserRole.ADMIN)
require_known_user = require_role(*ALL_ROLES)
