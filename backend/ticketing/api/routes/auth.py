"""
Authentication endpoints: login, logout and the current user.
"""

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from ticketing.api.deps import Identity, require_auth
from ticketing.core.config import get_settings
from ticketing.core.security import create_session_token
from ticketing.db.session import get_db
from ticketing.schemas.event import OkResponse
from ticketing.schemas.user import LoginRequest, LoginResponse, TotalPaidResponse, UserResponse
from ticketing.services.auth_service import authenticate_user, get_user
from ticketing.services.booking_service import get_total_paid

router = APIRouter(tags=["Authentication"])


@router.post("/login", response_model=LoginResponse)
async def login(login_data: LoginRequest, response: Response, db: AsyncSession = Depends(get_db)):
    """Verify credentials and set the session cookie."""
    settings = get_settings()
    user = await authenticate_user(db, login_data.email, login_data.password)
    response.set_cookie(
        settings.SESSION_COOKIE_NAME,
        create_session_token(user.id),
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        httponly=True,
        samesite="lax",
        secure=settings.SESSION_COOKIE_SECURE,
    )
    return LoginResponse(user=UserResponse.model_validate(user))


@router.post("/logout", response_model=OkResponse)
async def logout(response: Response):
    response.delete_cookie(get_settings().SESSION_COOKIE_NAME)
    return OkResponse()


@router.get("/me", response_model=LoginResponse)
async def me(identity: Identity = Depends(require_auth), db: AsyncSession = Depends(get_db)):
    user = await get_user(db, identity.user_id)
    return LoginResponse(user=UserResponse.model_validate(user))


@router.get("/users/me/total-paid", response_model=TotalPaidResponse)
async def total_paid(identity: Identity = Depends(require_auth), db: AsyncSession = Depends(get_db)):
    """Total of successful payments across the caller's bookings."""
    total = await get_total_paid(db, identity.user_id)
    return TotalPaidResponse(total_paid=total)
