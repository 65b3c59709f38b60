# app/services/availability_service.py
"""
Vehicle availability for a proposed trip window.

A vehicle is eligible for [departure, arrival) when all of these hold:
  1. it is not Under repair
  2. its next maintenance does not fall inside the window
  3. none of its trips (other than the one being edited) overlaps the window
"""

from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Session
from app.models.vehicle import Vehicle, VehicleStatus
from app.models.trip import Trip
from app.services.interval_overlap import as_utc, overlaps, blocked_by_maintenance
from app.config import settings
from app.utils.logger import get_logger

logger = get_logger(__name__)


def get_vehicle(db: Session, vehicle_id: int) -> Optional[Vehicle]:
    return db.query(Vehicle).filter(Vehicle.id == vehicle_id).first()


def conflicting_trips(db: Session, vehicle_id: int, departure: datetime, arrival: datetime,
                      exclude_trip_id: Optional[int] = None) -> list[Trip]:
    """Trips on this vehicle whose window overlaps [departure, arrival)."""
    departure, arrival = as_utc(departure), as_utc(arrival)
    q = db.query(Trip).filter(
        Trip.vehicle_id == vehicle_id,
        Trip.departure_time < arrival,
        Trip.arrival_time > departure,
    )
    if exclude_trip_id is not None:
        q = q.filter(Trip.id != exclude_trip_id)
    # Re-check in Python so the half-open rule lives in one place
    return [t for t in q.all() if overlaps(t.departure_time, t.arrival_time, departure, arrival)]


def vehicle_is_eligible(vehicle: Vehicle, departure: datetime, arrival: datetime) -> bool:
    """Status and maintenance checks only; trip conflicts need the database."""
    if VehicleStatus.parse(vehicle.status) is VehicleStatus.UNDER_REPAIR:
        return False
    if blocked_by_maintenance(departure, arrival, vehicle.next_maintenance_date,
                              settings.MAINTENANCE_BLACKOUT_HOURS):
        return False
    return True


def is_vehicle_available(db: Session, vehicle_id: int, departure: datetime, arrival: datetime,
                         exclude_trip_id: Optional[int] = None) -> bool:
    """
    Returns False for unknown vehicles. Pass exclude_trip_id when re-validating an
    edited trip so it does not conflict with its own current window.
    """
    departure, arrival = as_utc(departure), as_utc(arrival)
    vehicle = get_vehicle(db, vehicle_id)
    if not vehicle:
        logger.info(f"[AVAIL] Vehicle {vehicle_id} not found")
        return False

    if not vehicle_is_eligible(vehicle, departure, arrival):
        logger.info(f"[AVAIL] Vehicle {vehicle.vehicle_number} ineligible "
                    f"(status={vehicle.status}, next_maintenance={vehicle.next_maintenance_date})")
        return False

    clashes = conflicting_trips(db, vehicle_id, departure, arrival, exclude_trip_id)
    if clashes:
        logger.info(f"[AVAIL] Vehicle {vehicle.vehicle_number} busy: "
                    f"overlaps trips {[t.id for t in clashes]}")
        return False
    return True


def list_available_vehicles(db: Session, departure: datetime, arrival: datetime) -> list[Vehicle]:
    """All vehicles that could take a brand-new trip over [departure, arrival)."""
    departure, arrival = as_utc(departure), as_utc(arrival)
    return [
        v for v in db.query(Vehicle).order_by(Vehicle.vehicle_number).all()
        if vehicle_is_eligible(v, departure, arrival)
        and not conflicting_trips(db, v.id, departure, arrival)
    ]
