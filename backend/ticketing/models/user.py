"""
User model and the closed set of roles used by the authorization gate.
"""

import enum
from typing import Optional

from sqlalchemy import Column, Integer, String, CheckConstraint
from sqlalchemy.orm import relationship

from ticketing.db.base import Base, TimestampMixin


class UserRole(str, enum.Enum):
    CUSTOMER = "Customer"
    ORGANIZER = "Organizer"
    ADMIN = "Admin"

    @classmethod
    def parse(cls, value) -> Optional["UserRole"]:
        """Return the matching role, or None for anything outside the enumeration."""
        try:
            return cls(value)
        except ValueError:
            return None


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    phone = Column(String(20), nullable=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default=UserRole.CUSTOMER.value)

    # Relationships
    events = relationship("Event", back_populates="organizer")
    bookings = relationship("Booking", back_populates="user")

    __table_args__ = (
        CheckConstraint("role IN ('Customer', 'Organizer', 'Admin')", name="check_user_role"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
