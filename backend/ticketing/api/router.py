"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from ticketing.api.routes import auth, bookings, events, feedback, manage

api_router = APIRouter(prefix="/api")
api_router.include_router(auth.router)
api_router.include_router(events.router)
api_router.include_router(events.venues_router)
api_router.include_router(bookings.router)
api_router.include_router(feedback.router)
api_router.include_router(manage.router)
