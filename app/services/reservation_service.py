# app/services/reservation_service.py
"""
Admission control for trips and bookings.

Every mutation that could oversell a trip or double-book a vehicle runs inside a per-key lock:
  - ("vehicle", id): trip scheduling, so two trips can't both claim the same slot
  - ("trip", id):    seat admission and the active-booking guards

Vehicle updates and deletes hold the vehicle key plus the key of every trip on
the vehicle, so a booking can't slip in while the active-booking guard is checked.
All keys go through one KeyedLock.hold() call and are taken in a fixed order.

Inside the lock the relevant row is also read FOR UPDATE, which serializes
separate processes on PostgreSQL (SQLite ignores it). Rejections come back as
Decision values; storage errors roll the session back and propagate.
"""

from contextlib import contextmanager
from datetime import datetime, date
from typing import Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from app.models.booking import Booking, BookingStatus
from app.models.trip import Trip
from app.models.vehicle import Vehicle, VehicleStatus
from app.services import availability_service, capacity_service
from app.services.decisions import Decision, RejectReason
from app.services.interval_overlap import as_utc
from app.utils.locks import KeyedLock
from app.utils.logger import get_logger

logger = get_logger(__name__)

VEHICLE_FIELDS = ("vehicle_number", "vehicle_type", "capacity", "status",
                  "last_maintenance_date", "next_maintenance_date", "notes")
REQUIRED_VEHICLE_FIELDS = ("vehicle_number", "vehicle_type", "capacity", "status")


def _trip_key(trip_id):
    return ("trip", trip_id)


def _vehicle_key(vehicle_id):
    return ("vehicle", vehicle_id)


def _not_found(kind: str, id) -> Decision:
    logger.warning(f"[{kind.upper()}] {kind} {id} not found")
    return Decision.reject(RejectReason.NOT_FOUND, f"{kind} {id} not found")


def _invalid(message: str) -> Decision:
    logger.warning(f"[INPUT] {message}")
    return Decision.reject(RejectReason.INVALID_INPUT, message)


def _validate_window(origin: str, destination: str, departure: datetime, arrival: datetime) -> Optional[Decision]:
    if origin == destination:
        return Decision.reject(RejectReason.ORIGIN_EQUALS_DESTINATION,
                               "Origin and destination cannot be the same city")
    if departure >= arrival:
        return Decision.reject(RejectReason.INVALID_TIME_WINDOW,
                               "Departure time must be before arrival time")
    return None


class ReservationCoordinator:
    def __init__(self, locks: KeyedLock = None):
        self.locks = locks or KeyedLock()

    @contextmanager
    def _unit_of_work(self, db: Session):
        try:
            yield
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            raise

    def _trip_ids_for_vehicle(self, db: Session, vehicle_id: int) -> set:
        return {row.id for row in db.query(Trip.id).filter(Trip.vehicle_id == vehicle_id)}

    @contextmanager
    def _hold_vehicle_and_trips(self, db: Session, vehicle_id: int):
        """
        Lock the vehicle and every trip currently on it.

        A trip can only join the vehicle while its vehicle key is free, so once the
        keys are held the set can only shrink. If a trip joined between reading the
        set and acquiring the keys, release and try again.
        """
        while True:
            trip_ids = self._trip_ids_for_vehicle(db, vehicle_id)
            keys = [_vehicle_key(vehicle_id)] + [_trip_key(t) for t in trip_ids]
            with self.locks.hold(*keys):
                if self._trip_ids_for_vehicle(db, vehicle_id) <= trip_ids:
                    yield
                    return
            logger.debug(f"[VEHICLE] Trips on vehicle {vehicle_id} changed while locking; retrying")

    # ── Vehicles ──────────────────────────────────────────────────────────

    def register_vehicle(self, db: Session, vehicle_number: str, vehicle_type: str, capacity: int,
                         status: str = VehicleStatus.ACTIVE.value,
                         last_maintenance_date: date = None, next_maintenance_date: date = None,
                         notes: str = None) -> Decision:
        if not vehicle_number or not vehicle_type or capacity is None or capacity < 0:
            return _invalid("Vehicle number, type and a non-negative capacity are required")
        parsed_status = VehicleStatus.parse(status)
        if parsed_status is None:
            return _invalid(f"Unknown vehicle status {status!r}")

        with self._unit_of_work(db):
            if db.query(Vehicle).filter(Vehicle.vehicle_number == vehicle_number).first():
                logger.warning(f"[VEHICLE] Duplicate vehicle number {vehicle_number}")
                return Decision.reject(RejectReason.DUPLICATE_VEHICLE,
                                       f"Vehicle {vehicle_number} already registered")
            vehicle = Vehicle(vehicle_number=vehicle_number, vehicle_type=vehicle_type,
                              capacity=capacity, status=parsed_status.value,
                              last_maintenance_date=last_maintenance_date,
                              next_maintenance_date=next_maintenance_date,
                              notes=notes, created_at=datetime.utcnow())
            db.add(vehicle)
            db.flush()
        logger.info(f"[VEHICLE] Registered {vehicle_number} (id={vehicle.id}, capacity={capacity})")
        return Decision.accept(vehicle.id)

    def update_vehicle(self, db: Session, vehicle_id: int, **fields) -> Decision:
        """Blocked while any trip on the vehicle still has active bookings."""
        unknown = set(fields) - set(VEHICLE_FIELDS)
        if unknown:
            raise TypeError(f"Unknown vehicle fields: {sorted(unknown)}")
        for name in REQUIRED_VEHICLE_FIELDS:
            if name in fields and fields[name] in (None, ""):
                return _invalid(f"{name} cannot be empty")
        if "capacity" in fields and fields["capacity"] < 0:
            return _invalid("Capacity cannot be negative")
        if "status" in fields:
            parsed_status = VehicleStatus.parse(fields["status"])
            if parsed_status is None:
                return _invalid(f"Unknown vehicle status {fields['status']!r}")
            fields["status"] = parsed_status.value

        with self._hold_vehicle_and_trips(db, vehicle_id), self._unit_of_work(db):
            vehicle = (db.query(Vehicle).filter(Vehicle.id == vehicle_id)
                       .populate_existing().with_for_update().first())
            if not vehicle:
                return _not_found("Vehicle", vehicle_id)
            booked = capacity_service.vehicle_active_booking_count(db, vehicle_id)
            if booked > 0:
                logger.warning(f"[VEHICLE] Update of {vehicle.vehicle_number} refused: {booked} active bookings")
                return Decision.reject(RejectReason.HAS_ACTIVE_BOOKINGS,
                                       "Cannot modify vehicle assigned to trips with active bookings")
            new_number = fields.get("vehicle_number")
            if new_number and new_number != vehicle.vehicle_number:
                taken = db.query(Vehicle).filter(Vehicle.vehicle_number == new_number).first()
                if taken:
                    logger.warning(f"[VEHICLE] Duplicate vehicle number {new_number}")
                    return Decision.reject(RejectReason.DUPLICATE_VEHICLE,
                                           f"Vehicle {new_number} already registered")
            for name, value in fields.items():
                setattr(vehicle, name, value)
        logger.info(f"[VEHICLE] Updated vehicle {vehicle_id}: {sorted(fields)}")
        return Decision.accept(vehicle_id)

    def delete_vehicle(self, db: Session, vehicle_id: int) -> Decision:
        with self._hold_vehicle_and_trips(db, vehicle_id), self._unit_of_work(db):
            vehicle = (db.query(Vehicle).filter(Vehicle.id == vehicle_id)
                       .populate_existing().with_for_update().first())
            if not vehicle:
                return _not_found("Vehicle", vehicle_id)
            booked = capacity_service.vehicle_active_booking_count(db, vehicle_id)
            if booked > 0:
                logger.warning(f"[VEHICLE] Delete of {vehicle.vehicle_number} refused: {booked} active bookings")
                return Decision.reject(RejectReason.HAS_ACTIVE_BOOKINGS,
                                       "Cannot delete vehicle assigned to trips with active bookings")
            # Trips outlive their vehicle with no assignment
            db.query(Trip).filter(Trip.vehicle_id == vehicle_id).update(
                {Trip.vehicle_id: None}, synchronize_session=False)
            db.delete(vehicle)
        logger.info(f"[VEHICLE] Deleted vehicle {vehicle_id}")
        return Decision.accept(vehicle_id)

    # ── Trips ─────────────────────────────────────────────────────────────

    def propose_trip(self, db: Session, origin: str, destination: str, vehicle_id: int,
                     departure: datetime, arrival: datetime) -> Decision:
        departure, arrival = as_utc(departure), as_utc(arrival)
        invalid = _validate_window(origin, destination, departure, arrival)
        if invalid:
            logger.warning(f"[TRIP] Proposal rejected: {invalid.message}")
            return invalid

        with self.locks.hold(_vehicle_key(vehicle_id)), self._unit_of_work(db):
            db.query(Vehicle).filter(Vehicle.id == vehicle_id).with_for_update().first()
            if not availability_service.is_vehicle_available(db, vehicle_id, departure, arrival):
                logger.warning(f"[TRIP] Vehicle {vehicle_id} unavailable for {departure} → {arrival}")
                return Decision.reject(RejectReason.VEHICLE_UNAVAILABLE,
                                       "Selected vehicle is not available for this schedule")
            trip = Trip(origin=origin, destination=destination, vehicle_id=vehicle_id,
                        departure_time=departure, arrival_time=arrival,
                        created_at=datetime.utcnow())
            db.add(trip)
            db.flush()
        logger.info(f"[TRIP] Created trip {trip.id} {origin}→{destination} on vehicle {vehicle_id}")
        return Decision.accept(trip.id, "Trip created")

    def edit_trip(self, db: Session, trip_id: int, origin: str = None, destination: str = None,
                  vehicle_id: int = None, departure: datetime = None, arrival: datetime = None) -> Decision:
        """Omitted fields keep their current value. The trip never conflicts with itself."""
        departure, arrival = as_utc(departure), as_utc(arrival)

        while True:
            found = db.query(Trip.vehicle_id).filter(Trip.id == trip_id).first()
            if not found:
                return _not_found("Trip", trip_id)
            locked_vehicle = vehicle_id if vehicle_id is not None else found.vehicle_id

            with self.locks.hold(_trip_key(trip_id), _vehicle_key(locked_vehicle)), self._unit_of_work(db):
                trip = (db.query(Trip).filter(Trip.id == trip_id)
                        .populate_existing().with_for_update().first())
                if not trip:
                    return _not_found("Trip", trip_id)
                target_vehicle = vehicle_id if vehicle_id is not None else trip.vehicle_id
                if target_vehicle != locked_vehicle:
                    # Moved by a concurrent edit before the trip key was taken
                    logger.debug(f"[TRIP] Trip {trip_id} changed vehicle while locking; retrying")
                    continue

                new_origin = origin if origin is not None else trip.origin
                new_destination = destination if destination is not None else trip.destination
                new_departure = departure or trip.departure_time
                new_arrival = arrival or trip.arrival_time

                invalid = _validate_window(new_origin, new_destination, new_departure, new_arrival)
                if invalid:
                    logger.warning(f"[TRIP] Edit of trip {trip_id} rejected: {invalid.message}")
                    return invalid

                booked = capacity_service.active_booking_count(db, trip_id)
                if booked > 0 and (new_origin != trip.origin or new_destination != trip.destination):
                    logger.warning(f"[TRIP] Route change on trip {trip_id} refused: {booked} active bookings")
                    return Decision.reject(RejectReason.HAS_ACTIVE_BOOKINGS,
                                           "Cannot change origin or destination for trips with active bookings")

                if target_vehicle is None or not availability_service.is_vehicle_available(
                        db, target_vehicle, new_departure, new_arrival, exclude_trip_id=trip_id):
                    logger.warning(f"[TRIP] Vehicle {target_vehicle} unavailable for edited trip {trip_id}")
                    return Decision.reject(RejectReason.VEHICLE_UNAVAILABLE,
                                           "Selected vehicle is not available for the new schedule")

                trip.origin = new_origin
                trip.destination = new_destination
                trip.vehicle_id = target_vehicle
                trip.departure_time = new_departure
                trip.arrival_time = new_arrival
            logger.info(f"[TRIP] Updated trip {trip_id}")
            return Decision.accept(trip_id, "Trip updated")

    def delete_trip(self, db: Session, trip_id: int) -> Decision:
        with self.locks.hold(_trip_key(trip_id)), self._unit_of_work(db):
            trip = db.query(Trip).filter(Trip.id == trip_id).with_for_update().first()
            if not trip:
                return _not_found("Trip", trip_id)
            booked = capacity_service.active_booking_count(db, trip_id)
            if booked > 0:
                logger.warning(f"[TRIP] Delete of trip {trip_id} refused: {booked} active bookings")
                return Decision.reject(RejectReason.HAS_ACTIVE_BOOKINGS,
                                       "Cannot delete trip with active bookings")
            db.query(Booking).filter(Booking.trip_id == trip_id).delete(synchronize_session=False)
            db.delete(trip)
        logger.info(f"[TRIP] Deleted trip {trip_id}")
        return Decision.accept(trip_id, "Trip deleted")

    # ── Bookings ──────────────────────────────────────────────────────────

    def create_booking(self, db: Session, trip_id: int, passenger: str,
                       status: str = BookingStatus.CONFIRMED.value, social_id: str = None,
                       phone_number: str = None, date_of_birth: str = None) -> Decision:
        if not trip_id or not passenger or not status:
            return _invalid("Trip, passenger name, and status are required")
        parsed_status = BookingStatus.parse(status)
        if parsed_status is None:
            return _invalid(f"Unknown booking status {status!r}")

        with self.locks.hold(_trip_key(trip_id)), self._unit_of_work(db):
            db.query(Trip).filter(Trip.id == trip_id).with_for_update().first()
            admission = capacity_service.admit_booking(db, trip_id)
            if not admission:
                return admission
            booking = Booking(trip_id=trip_id, passenger=passenger, social_id=social_id,
                              phone_number=phone_number, date_of_birth=date_of_birth,
                              status=parsed_status.value, booked_at=datetime.utcnow())
            db.add(booking)
            db.flush()
        logger.info(f"[BOOKING] Created booking {booking.id} on trip {trip_id} ({parsed_status.value})")
        return Decision.accept(booking.id, "Booking created")

    def change_booking_status(self, db: Session, booking_id: int, new_status: str) -> Decision:
        """Re-activating a cancelled booking must win a seat again; every other transition is allowed."""
        if not new_status:
            return _invalid("Status is required")
        parsed_status = BookingStatus.parse(new_status)
        if parsed_status is None:
            return _invalid(f"Unknown booking status {new_status!r}")
        found = db.query(Booking.trip_id).filter(Booking.id == booking_id).first()
        if not found:
            return _not_found("Booking", booking_id)
        trip_id = found.trip_id

        with self.locks.hold(_trip_key(trip_id)), self._unit_of_work(db):
            db.query(Trip).filter(Trip.id == trip_id).with_for_update().first()
            booking = db.query(Booking).filter(Booking.id == booking_id).populate_existing().first()
            if not booking:
                return _not_found("Booking", booking_id)
            old_status = booking.status
            was_active = capacity_service.is_active_status(old_status)
            becomes_active = capacity_service.is_active_status(parsed_status.value)

            if not was_active and becomes_active:
                admission = capacity_service.admit_booking(db, trip_id)
                if not admission:
                    logger.warning(f"[BOOKING] Re-activation of booking {booking_id} refused: {admission.message}")
                    return admission
            booking.status = parsed_status.value
            db.flush()
            if was_active != becomes_active:
                capacity_service.log_capacity(
                    db, trip_id, f"Booking {booking_id} status changed from {old_status} to {parsed_status.value}")
            else:
                logger.info(f"[BOOKING] Booking {booking_id} status {old_status} → {parsed_status.value}")
        return Decision.accept(booking_id, "Booking status updated")

    def delete_booking(self, db: Session, booking_id: int) -> Decision:
        found = db.query(Booking.trip_id).filter(Booking.id == booking_id).first()
        if not found:
            return _not_found("Booking", booking_id)
        trip_id = found.trip_id

        with self.locks.hold(_trip_key(trip_id)), self._unit_of_work(db):
            booking = db.query(Booking).filter(Booking.id == booking_id).populate_existing().first()
            if not booking:
                return _not_found("Booking", booking_id)
            freed = capacity_service.is_active_status(booking.status)
            db.delete(booking)
            db.flush()
            if freed:
                capacity_service.log_capacity(db, trip_id, f"Booking {booking_id} deleted")
            else:
                logger.info(f"[BOOKING] Deleted cancelled booking {booking_id}")
        return Decision.accept(booking_id, "Booking deleted")
