# app/routers/vehicles.py
"""Fleet vehicles: registration, updates, and availability lookup for a trip window."""

from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from app.database import get_db
from app.dependencies import decision_response, get_coordinator, require
from app.models.vehicle import Vehicle
from app.schemas.decision import DecisionOut
from app.schemas.vehicle import VehicleCreate, VehicleOut, VehicleUpdate
from app.services.availability_service import list_available_vehicles
from app.services.interval_overlap import as_utc
from app.services.permissions import MANAGE_FLEET, VIEW
from app.services.reservation_service import ReservationCoordinator

router = APIRouter()


@router.get("/vehicles", response_model=list[VehicleOut], summary="List vehicles",
            dependencies=[require(VIEW)])
def list_vehicles(vehicle_type: str = None, db: Session = Depends(get_db)):
    q = db.query(Vehicle)
    if vehicle_type:
        q = q.filter(Vehicle.vehicle_type == vehicle_type)
    return q.order_by(Vehicle.vehicle_number).all()


@router.get("/vehicles/available", response_model=list[VehicleOut],
            summary="Vehicles free for a proposed trip window", dependencies=[require(VIEW)])
def available_vehicles(departure: datetime, arrival: datetime, db: Session = Depends(get_db)):
    departure, arrival = as_utc(departure), as_utc(arrival)
    if departure >= arrival:
        raise HTTPException(status_code=400, detail="Departure time must be before arrival time")
    return list_available_vehicles(db, departure, arrival)


@router.post("/vehicles", response_model=DecisionOut, summary="Register a new vehicle",
             dependencies=[require(MANAGE_FLEET)])
def register_vehicle(body: VehicleCreate, db: Session = Depends(get_db),
                     coordinator: ReservationCoordinator = Depends(get_coordinator)):
    return decision_response(coordinator.register_vehicle(db, **body.model_dump()))


@router.put("/vehicles/{vehicle_id}", response_model=DecisionOut, summary="Update a vehicle",
            dependencies=[require(MANAGE_FLEET)])
def update_vehicle(vehicle_id: int, body: VehicleUpdate, db: Session = Depends(get_db),
                   coordinator: ReservationCoordinator = Depends(get_coordinator)):
    fields = body.model_dump(exclude_unset=True)
    return decision_response(coordinator.update_vehicle(db, vehicle_id, **fields))


@router.delete("/vehicles/{vehicle_id}", response_model=DecisionOut, summary="Remove a vehicle",
               dependencies=[require(MANAGE_FLEET)])
def remove_vehicle(vehicle_id: int, db: Session = Depends(get_db),
                   coordinator: ReservationCoordinator = Depends(get_coordinator)):
    return decision_response(coordinator.delete_vehicle(db, vehicle_id))
