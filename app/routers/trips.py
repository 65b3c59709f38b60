# app/routers/trips.py
"""Trip scheduling: create/edit/delete with vehicle availability checks, plus seat summary."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from app.database import get_db
from app.dependencies import decision_response, get_coordinator, require
from app.models.trip import Trip
from app.schemas.decision import DecisionOut
from app.schemas.trip import SeatSummaryOut, TripCreate, TripOut, TripUpdate
from app.services.capacity_service import seat_summary
from app.services.permissions import MANAGE_SCHEDULE, VIEW
from app.services.reservation_service import ReservationCoordinator

router = APIRouter()


@router.get("/trips", response_model=list[TripOut], summary="List trips",
            dependencies=[require(VIEW)])
def list_trips(vehicle_id: int = None, db: Session = Depends(get_db)):
    q = db.query(Trip)
    if vehicle_id is not None:
        q = q.filter(Trip.vehicle_id == vehicle_id)
    return q.order_by(Trip.departure_time.desc()).all()


@router.post("/trips", response_model=DecisionOut, summary="Schedule a new trip",
             dependencies=[require(MANAGE_SCHEDULE)])
def create_trip(body: TripCreate, db: Session = Depends(get_db),
                coordinator: ReservationCoordinator = Depends(get_coordinator)):
    return decision_response(coordinator.propose_trip(
        db, body.origin, body.destination, body.vehicle_id, body.departure_time, body.arrival_time))


@router.put("/trips/{trip_id}", response_model=DecisionOut, summary="Edit a trip",
            dependencies=[require(MANAGE_SCHEDULE)])
def update_trip(trip_id: int, body: TripUpdate, db: Session = Depends(get_db),
                coordinator: ReservationCoordinator = Depends(get_coordinator)):
    return decision_response(coordinator.edit_trip(
        db, trip_id, origin=body.origin, destination=body.destination, vehicle_id=body.vehicle_id,
        departure=body.departure_time, arrival=body.arrival_time))


@router.delete("/trips/{trip_id}", response_model=DecisionOut, summary="Delete a trip",
               dependencies=[require(MANAGE_SCHEDULE)])
def delete_trip(trip_id: int, db: Session = Depends(get_db),
                coordinator: ReservationCoordinator = Depends(get_coordinator)):
    return decision_response(coordinator.delete_trip(db, trip_id))


@router.get("/trips/{trip_id}/capacity", response_model=SeatSummaryOut,
            summary="Seats booked vs available", dependencies=[require(VIEW)])
def trip_capacity(trip_id: int, db: Session = Depends(get_db)):
    summary = seat_summary(db, trip_id)
    if summary is None:
        raise HTTPException(status_code=404, detail=f"Trip {trip_id} not found")
    return summary
