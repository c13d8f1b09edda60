"""
Pydantic schemas for user-related request/response validation.
"""

from typing import Optional
from pydantic import AliasChoices, EmailStr, Field

from ticketing.schemas.base import CamelModel


class LoginRequest(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None


class UserResponse(CamelModel):
    user_id: int = Field(
        validation_alias=AliasChoices("id", "user_id", "userId"), serialization_alias="userId"
    )
    name: str
    email: str
    phone: Optional[str] = None
    role: str


class LoginResponse(CamelModel):
    user: UserResponse


class UserCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=20)
    role: str
    password: str = Field(..., min_length=1, max_length=128)


class UserUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=20)
    role: Optional[str] = None
    password: Optional[str] = Field(None, min_length=1, max_length=128)


class UserCreated(CamelModel):
    user_id: int


class TotalPaidResponse(CamelModel):
    total_paid: float
