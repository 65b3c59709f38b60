from pydantic import BaseModel, field_validator
from datetime import date, datetime
from typing import Optional
from app.models.vehicle import VehicleStatus


def _vehicle_status(value):
    if value is None:
        return None
    parsed = VehicleStatus.parse(value)
    if parsed is None:
        raise ValueError(f"status must be one of {[s.value for s in VehicleStatus]}")
    return parsed


class VehicleCreate(BaseModel):
    vehicle_number: str
    vehicle_type: str
    capacity: int
    status: VehicleStatus = VehicleStatus.ACTIVE    # "UnderRepair" is accepted for "Under repair"
    last_maintenance_date: Optional[date] = None
    next_maintenance_date: Optional[date] = None
    notes: Optional[str] = None

    @field_validator("status", mode="before")
    @classmethod
    def known_status(cls, value):
        return _vehicle_status(value)


class VehicleUpdate(BaseModel):
    vehicle_number: Optional[str] = None
    vehicle_type: Optional[str] = None
    capacity: Optional[int] = None
    status: Optional[VehicleStatus] = None
    last_maintenance_date: Optional[date] = None
    next_maintenance_date: Optional[date] = None
    notes: Optional[str] = None

    @field_validator("status", mode="before")
    @classmethod
    def known_status(cls, value):
        return _vehicle_status(value)


class VehicleOut(BaseModel):
    id: int
    vehicle_number: str
    vehicle_type: str
    capacity: int
    status: str
    last_maintenance_date: Optional[date]
    next_maintenance_date: Optional[date]
    notes: Optional[str]
    created_at: Optional[datetime]

    class Config:
        from_attributes = True
