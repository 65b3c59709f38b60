# app/services/decisions.py
"""
Admission outcomes returned by the scheduling and booking services.
Rejections are ordinary values, never exceptions; routers map them to HTTP codes.
"""

import enum
from dataclasses import dataclass
from typing import Optional


class RejectReason(str, enum.Enum):
    ORIGIN_EQUALS_DESTINATION = "OriginEqualsDestination"
    INVALID_TIME_WINDOW = "InvalidTimeWindow"
    VEHICLE_UNAVAILABLE = "VehicleUnavailable"
    NO_SEATS_AVAILABLE = "NoSeatsAvailable"
    HAS_ACTIVE_BOOKINGS = "HasActiveBookings"
    NOT_FOUND = "NotFound"
    INVALID_INPUT = "InvalidInput"
    DUPLICATE_VEHICLE = "DuplicateVehicle"


@dataclass(frozen=True)
class Decision:
    accepted: bool
    id: Optional[int] = None
    reason: Optional[RejectReason] = None
    message: str = ""

    @classmethod
    def accept(cls, id: Optional[int] = None, message: str = "") -> "Decision":
        return cls(accepted=True, id=id, message=message)

    @classmethod
    def reject(cls, reason: RejectReason, message: str = "") -> "Decision":
        return cls(accepted=False, reason=reason, message=message)

    def __bool__(self):
        return self.accepted
