"""
Feedback endpoints: attendees rate events they booked.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ticketing.api.deps import Identity, require_auth
from ticketing.db.session import get_db
from ticketing.schemas.booking import FeedbackCreate, FeedbackResponse
from ticketing.schemas.event import OkResponse
from ticketing.services.feedback_service import list_user_feedback, submit_feedback

router = APIRouter(prefix="/feedback", tags=["Feedback"])


@router.post("", response_model=OkResponse, status_code=status.HTTP_201_CREATED)
async def submit_feedback_endpoint(
    feedback: FeedbackCreate,
    identity: Identity = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    """Create or replace the caller's rating for an event."""
    await submit_feedback(db, identity.user_id, feedback.event_id, feedback.rating, feedback.comments)
    return OkResponse()


@router.get("/me", response_model=list[FeedbackResponse])
async def my_feedback(
    identity: Identity = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await list_user_feedback(db, identity.user_id)
