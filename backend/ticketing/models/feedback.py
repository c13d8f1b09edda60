from sqlalchemy import Column, Integer, String, ForeignKey, CheckConstraint

from ticketing.db.base import Base, TimestampMixin


class Feedback(Base, TimestampMixin):
    """One rating per (user, event); resubmission overwrites it."""

    __tablename__ = "feedback"

    user_id = Column(Integer, ForeignKey("users.id"), primary_key=True)
    event_id = Column(Integer, ForeignKey("events.id"), primary_key=True, index=True)
    rating = Column(Integer, nullable=False)
    comments = Column(String(1000), nullable=True)

    __table_args__ = (
        CheckConstraint("rating BETWEEN 1 AND 5", name="check_feedback_rating_range"),
    )
