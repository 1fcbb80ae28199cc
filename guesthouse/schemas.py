"""Pydantic schemas for the guesthouse API."""
from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from .models import BookingStatus, RoleEnum


def to_naive_utc(value: Any) -> Any:
    """Accept date-only or aware values and return a naive UTC datetime.

    Instants are stored as naive UTC, so ``2024-01-05`` becomes midnight and
    ``2024-01-05T10:00:00+02:00`` becomes ``08:00``.
    """
    if isinstance(value, str) and len(value) == 10:
        value = datetime.fromisoformat(value)
    if isinstance(value, date) and not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day)
    if isinstance(value, datetime) and value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=32)


class UserCreate(UserBase):
    email: EmailStr
    password: str = Field(..., min_length=6)


class UserUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=32)
    password: Optional[str] = Field(None, min_length=6)


class UserRead(UserBase):
    id: str
    role: RoleEnum
    created_at: datetime

    model_config = {"from_attributes": True}


class PhoneLoginRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1)


class FacilityBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    icon: Optional[str] = Field(None, max_length=100)


class FacilityCreate(FacilityBase):
    pass


class FacilityUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    icon: Optional[str] = Field(None, max_length=100)


class FacilityRead(FacilityBase):
    id: str
    is_active: bool

    model_config = {"from_attributes": True}


class RoomBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1)
    capacity: int = Field(..., ge=1)
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)


class RoomCreate(RoomBase):
    facility_ids: List[str] = Field(default_factory=list)


class RoomUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, min_length=1)
    capacity: Optional[int] = Field(None, ge=1)
    price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    facility_ids: Optional[List[str]] = None


class RoomRead(RoomBase):
    id: str
    is_active: bool
    facilities: List[FacilityRead] = Field(default_factory=list)

    model_config = {"from_attributes": True}


class RoomSummary(BaseModel):
    id: str
    name: str
    description: str
    capacity: int
    price: Decimal

    model_config = {"from_attributes": True}


class UserSummary(BaseModel):
    id: str
    name: str
    email: Optional[str] = None

    model_config = {"from_attributes": True}


class BookingCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    room_id: str
    check_in: datetime
    check_out: datetime
    reserver_name: str = Field(..., min_length=1, max_length=100)
    reserver_phone: str = Field(..., min_length=1, max_length=32)
    special_requests: Optional[str] = None

    @field_validator("check_in", "check_out", mode="before")
    @classmethod
    def _accept_dates(cls, value: Any) -> Any:
        return to_naive_utc(value)

    @field_validator("check_in", "check_out")
    @classmethod
    def _strip_timezone(cls, value: datetime) -> datetime:
        return to_naive_utc(value)


class BookingStatusUpdate(BaseModel):
    status: BookingStatus
    cancellation_reason: Optional[str] = None


class BookingCancel(BaseModel):
    reason: str


class BookingRead(BaseModel):
    id: str
    room_id: str
    user_id: Optional[str] = None
    check_in: datetime
    check_out: datetime
    status: BookingStatus
    total_price: Decimal
    special_requests: Optional[str] = None
    cancellation_reason: Optional[str] = None
    reserver_name: str
    reserver_phone: str
    created_at: datetime
    room: Optional[RoomSummary] = None
    user: Optional[UserSummary] = None

    model_config = {"from_attributes": True}


class AvailabilityRead(BaseModel):
    room_id: str
    available: bool
