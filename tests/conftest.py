# tests/conftest.py
"""Shared fixtures: a fresh in-memory database per test plus row factories."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from datetime import datetime
from sqlalchemy.orm import sessionmaker
from app.database import build_engine, create_tables
from app.models.booking import Booking
from app.models.trip import Trip
from app.models.vehicle import Vehicle
from app.services.reservation_service import ReservationCoordinator


@pytest.fixture
def engine():
    eng = build_engine("sqlite://")
    create_tables(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def file_session_factory(tmp_path):
    """File-backed database, for tests that need several sessions on separate connections."""
    eng = build_engine(f"sqlite:///{tmp_path / 'reservations.db'}")
    create_tables(bind=eng)
    yield sessionmaker(autocommit=False, autoflush=False, bind=eng)
    eng.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def coordinator():
    return ReservationCoordinator()


@pytest.fixture
def make_vehicle(db):
    counter = {"n": 0}

    def _make(capacity=2, status="Active", next_maintenance_date=None, vehicle_type="Bus"):
        counter["n"] += 1
        vehicle = Vehicle(vehicle_number=f"BUS-{counter['n']:03d}", vehicle_type=vehicle_type,
                          capacity=capacity, status=status,
                          next_maintenance_date=next_maintenance_date,
                          created_at=datetime.utcnow())
        db.add(vehicle)
        db.commit()
        return vehicle
    return _make


@pytest.fixture
def make_trip(db):
    def _make(vehicle_id, departure, arrival, origin="Riyadh", destination="Jeddah"):
        trip = Trip(origin=origin, destination=destination, vehicle_id=vehicle_id,
                    departure_time=departure, arrival_time=arrival, created_at=datetime.utcnow())
        db.add(trip)
        db.commit()
        return trip
    return _make


@pytest.fixture
def make_booking(db):
    def _make(trip_id, status="Confirmed", passenger="Sara Ali"):
        booking = Booking(trip_id=trip_id, passenger=passenger, status=status,
                          booked_at=datetime.utcnow())
        db.add(booking)
        db.commit()
        return booking
    return _make
