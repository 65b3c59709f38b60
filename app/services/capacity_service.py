# app/services/capacity_service.py
"""
Seat accounting for trips.

Seats are counted, never decremented: a trip's load is the number of its bookings
whose status is not Cancelled, and it may not exceed the capacity of the trip's vehicle.
The check here is not atomic on its own; reservation_service serializes it per trip.
"""

from typing import Optional
from sqlalchemy import func
from sqlalchemy.orm import Session
from app.models.booking import Booking, BookingStatus
from app.models.trip import Trip
from app.models.vehicle import Vehicle
from app.services.decisions import Decision, RejectReason
from app.utils.logger import get_logger

logger = get_logger(__name__)

CANCELLED = BookingStatus.CANCELLED.value


def is_active_status(status: str) -> bool:
    return BookingStatus.parse(status) is not BookingStatus.CANCELLED


def active_booking_count(db: Session, trip_id: int) -> int:
    return db.query(func.count(Booking.id)).filter(
        Booking.trip_id == trip_id,
        Booking.status != CANCELLED,
    ).scalar() or 0


def vehicle_active_booking_count(db: Session, vehicle_id: int) -> int:
    """Active bookings across every trip assigned to the vehicle."""
    return db.query(func.count(Booking.id)).join(Trip, Booking.trip_id == Trip.id).filter(
        Trip.vehicle_id == vehicle_id,
        Booking.status != CANCELLED,
    ).scalar() or 0


def trip_capacity(db: Session, trip_id: int) -> Optional[int]:
    """Seat capacity of the trip's vehicle. None if the trip does not exist; 0 if it has no vehicle."""
    trip = db.query(Trip).filter(Trip.id == trip_id).first()
    if not trip:
        return None
    if trip.vehicle_id is None:
        return 0
    capacity = db.query(Vehicle.capacity).filter(Vehicle.id == trip.vehicle_id).scalar()
    return capacity or 0


def has_available_seat(db: Session, trip_id: int) -> bool:
    capacity = trip_capacity(db, trip_id)
    if capacity is None:
        return False
    return active_booking_count(db, trip_id) < capacity


def admit_booking(db: Session, trip_id: int) -> Decision:
    """Accept iff one more active booking keeps the trip within capacity."""
    capacity = trip_capacity(db, trip_id)
    if capacity is None:
        logger.warning(f"[CAPACITY] Admission refused: trip {trip_id} not found")
        return Decision.reject(RejectReason.NOT_FOUND, f"Trip {trip_id} not found")
    booked = active_booking_count(db, trip_id)
    if booked >= capacity:
        logger.warning(f"[CAPACITY] Trip {trip_id} full ({booked}/{capacity})")
        return Decision.reject(RejectReason.NO_SEATS_AVAILABLE,
                               "Trip is fully booked. No seats available.")
    return Decision.accept(trip_id)


def seat_summary(db: Session, trip_id: int) -> Optional[dict]:
    capacity = trip_capacity(db, trip_id)
    if capacity is None:
        return None
    booked = active_booking_count(db, trip_id)
    available = max(0, capacity - booked)
    return {
        "trip_id": trip_id,
        "capacity": capacity,
        "booked": booked,
        "available": available,
        "is_available": available > 0,
    }


def log_capacity(db: Session, trip_id: int, what: str):
    """Post-change audit line: current capacity vs active load."""
    logger.info(f"[CAPACITY] Trip {trip_id}: {what}. "
                f"Capacity: {trip_capacity(db, trip_id)}, Active bookings: {active_booking_count(db, trip_id)}")
