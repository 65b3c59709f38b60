# app/routers/bookings.py
"""Passenger bookings: seat admission on create and on re-activation of cancelled bookings."""

from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.database import get_db
from app.dependencies import decision_response, get_coordinator, require
from app.models.booking import Booking
from app.schemas.booking import BookingCreate, BookingOut, BookingStatusUpdate
from app.schemas.decision import DecisionOut
from app.services.permissions import MANAGE_BOOKINGS, VIEW
from app.services.reservation_service import ReservationCoordinator

router = APIRouter()


@router.get("/bookings", response_model=list[BookingOut], summary="List bookings",
            dependencies=[require(VIEW)])
def list_bookings(trip_id: Optional[int] = None, status: Optional[str] = None,
                  limit: int = 50, db: Session = Depends(get_db)):
    q = db.query(Booking)
    if trip_id is not None:
        q = q.filter(Booking.trip_id == trip_id)
    if status:
        q = q.filter(Booking.status == status)
    return q.order_by(Booking.booked_at.desc()).limit(limit).all()


@router.post("/bookings", response_model=DecisionOut, summary="Book a seat on a trip",
             dependencies=[require(MANAGE_BOOKINGS)])
def create_booking(body: BookingCreate, db: Session = Depends(get_db),
                   coordinator: ReservationCoordinator = Depends(get_coordinator)):
    return decision_response(coordinator.create_booking(db, **body.model_dump()))


@router.put("/bookings/{booking_id}/status", response_model=DecisionOut,
            summary="Change booking status", dependencies=[require(MANAGE_BOOKINGS)])
def change_status(booking_id: int, body: BookingStatusUpdate, db: Session = Depends(get_db),
                  coordinator: ReservationCoordinator = Depends(get_coordinator)):
    return decision_response(coordinator.change_booking_status(db, booking_id, body.status))


@router.delete("/bookings/{booking_id}", response_model=DecisionOut, summary="Delete a booking",
               dependencies=[require(MANAGE_BOOKINGS)])
def delete_booking(booking_id: int, db: Session = Depends(get_db),
                   coordinator: ReservationCoordinator = Depends(get_coordinator)):
    return decision_response(coordinator.delete_booking(db, booking_id))
