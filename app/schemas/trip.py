# app/schemas/trip.py
from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class TripCreate(BaseModel):
    origin: str
    destination: str
    vehicle_id: int
    departure_time: datetime
    arrival_time: datetime


class TripUpdate(BaseModel):
    origin: Optional[str] = None
    destination: Optional[str] = None
    vehicle_id: Optional[int] = None
    departure_time: Optional[datetime] = None
    arrival_time: Optional[datetime] = None


class TripOut(BaseModel):
    id: int
    origin: str
    destination: str
    vehicle_id: Optional[int]
    departure_time: datetime
    arrival_time: datetime
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class SeatSummaryOut(BaseModel):
    trip_id: int
    capacity: int
    booked: int
    available: int
    is_available: bool
