from pydantic import BaseModel, field_validator
from datetime import datetime
from typing import Optional
from app.models.booking import BookingStatus


def _booking_status(value):
    parsed = BookingStatus.parse(value)
    if parsed is None:
        raise ValueError(f"status must be one of {[s.value for s in BookingStatus]}")
    return parsed


class BookingCreate(BaseModel):
    trip_id: int
    passenger: str
    status: BookingStatus = BookingStatus.CONFIRMED
    social_id: Optional[str] = None
    phone_number: Optional[str] = None
    date_of_birth: Optional[str] = None

    @field_validator("status", mode="before")
    @classmethod
    def known_status(cls, value):
        return _booking_status(value)


class BookingStatusUpdate(BaseModel):
    status: BookingStatus

    @field_validator("status", mode="before")
    @classmethod
    def known_status(cls, value):
        return _booking_status(value)


class BookingOut(BaseModel):
    id: int
    trip_id: int
    passenger: str
    status: str
    booked_at: Optional[datetime]

    class Config:
        from_attributes = True
