# app/models/vehicle.py
"""
Fleet vehicles table.
Capacity is set when the vehicle is registered or updated; it is never derived from bookings.
Used by availability_service (scheduling) and capacity_service (seat admission).
"""

from sqlalchemy import Column, Integer, String, DateTime, Date, Text
from app.database import Base
from app.models.labels import LabelEnum


class VehicleStatus(LabelEnum):
    ACTIVE = "Active"
    UNDER_REPAIR = "Under repair"
    RETIRED = "Retired"


class Vehicle(Base):
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    vehicle_number = Column(String(50), unique=True, nullable=False, index=True)
    vehicle_type = Column(String(50), nullable=False)
    capacity = Column(Integer, nullable=False, default=0)
    status = Column(String(30), nullable=False, default=VehicleStatus.ACTIVE.value)
    last_maintenance_date = Column(Date)
    next_maintenance_date = Column(Date)
    notes = Column(Text)
    created_at = Column(DateTime)

    def __repr__(self):
        return f"<Vehicle {self.vehicle_number} cap={self.capacity} status={self.status}>"
