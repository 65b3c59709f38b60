# app/models/trip.py
"""
Scheduled trips table.
A trip occupies its vehicle for the half-open window [departure_time, arrival_time).
"""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from app.database import Base


class Trip(Base):
    __tablename__ = "trips"

    id = Column(Integer, primary_key=True, autoincrement=True)
    origin = Column(String(100), nullable=False)
    destination = Column(String(100), nullable=False)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id", ondelete="SET NULL"), index=True)
    departure_time = Column(DateTime, nullable=False, index=True)
    arrival_time = Column(DateTime, nullable=False)
    created_at = Column(DateTime)

    def __repr__(self):
        return f"<Trip {self.id} {self.origin}->{self.destination} vehicle={self.vehicle_id}>"
