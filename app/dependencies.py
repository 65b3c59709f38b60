# app/dependencies.py
"""
Shared FastAPI dependencies: the process-wide coordinator and credential store
(created once in main.py and kept on app.state), role checks, and the mapping
from admission decisions to HTTP responses.
"""

from fastapi import Depends, Header, HTTPException, Request, status
from app.schemas.decision import DecisionOut
from app.services.credential_store import EphemeralCredentialStore
from app.services.decisions import Decision, RejectReason
from app.services.permissions import has_capability
from app.services.reservation_service import ReservationCoordinator

REJECTION_STATUS = {
    RejectReason.ORIGIN_EQUALS_DESTINATION: status.HTTP_400_BAD_REQUEST,
    RejectReason.INVALID_TIME_WINDOW: status.HTTP_400_BAD_REQUEST,
    RejectReason.INVALID_INPUT: status.HTTP_400_BAD_REQUEST,
    RejectReason.HAS_ACTIVE_BOOKINGS: status.HTTP_400_BAD_REQUEST,
    RejectReason.DUPLICATE_VEHICLE: status.HTTP_400_BAD_REQUEST,
    RejectReason.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    RejectReason.VEHICLE_UNAVAILABLE: status.HTTP_409_CONFLICT,
    RejectReason.NO_SEATS_AVAILABLE: status.HTTP_409_CONFLICT,
}


def get_coordinator(request: Request) -> ReservationCoordinator:
    return request.app.state.coordinator


def get_credential_store(request: Request) -> EphemeralCredentialStore:
    return request.app.state.credentials


def require(capability: str):
    """Dependency factory: the caller's X-User-Role must grant `capability`."""
    def _check(x_user_role: str = Header(default="")):
        if not x_user_role:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="You must be logged in")
        if not has_capability(x_user_role, capability):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Permission denied")
        return x_user_role
    return Depends(_check)


def decision_response(decision: Decision) -> DecisionOut:
    if not decision.accepted:
        raise HTTPException(
            status_code=REJECTION_STATUS.get(decision.reason, status.HTTP_400_BAD_REQUEST),
            detail={"reason": decision.reason.value, "message": decision.message},
        )
    return DecisionOut(accepted=True, id=decision.id, message=decision.message)
