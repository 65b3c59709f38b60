# app/models/booking.py
"""
Passenger bookings table.
Every status other than Cancelled occupies one seat on the trip's vehicle.
"""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from app.database import Base
from app.models.labels import LabelEnum


class BookingStatus(LabelEnum):
    CONFIRMED = "Confirmed"
    PENDING = "Pending"
    CANCELLED = "Cancelled"


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    trip_id = Column(Integer, ForeignKey("trips.id", ondelete="CASCADE"), nullable=False, index=True)
    passenger = Column(String(200), nullable=False)
    social_id = Column(String(50))
    phone_number = Column(String(30))
    date_of_birth = Column(String(20))
    status = Column(String(30), nullable=False, index=True)
    booked_at = Column(DateTime)

    def __repr__(self):
        return f"<Booking {self.id} trip={self.trip_id} status={self.status}>"
