# app/services/permissions.py
"""
Role → capability mapping checked once at the edge of each admission operation.
Session handling lives outside this service; callers pass the resolved role.
"""

import enum


class Role(str, enum.Enum):
    ADMIN = "Admin"
    MANAGER = "Manager"
    OPERATOR = "Operator"


VIEW = "view"
MANAGE_SCHEDULE = "manage_schedule"
MANAGE_BOOKINGS = "manage_bookings"
MANAGE_FLEET = "manage_fleet"
MANAGE_CREDENTIALS = "manage_credentials"     # mint and redeem password-reset credentials

CAPABILITIES = {
    Role.ADMIN: {VIEW, MANAGE_SCHEDULE, MANAGE_BOOKINGS, MANAGE_FLEET, MANAGE_CREDENTIALS},
    Role.MANAGER: {VIEW, MANAGE_SCHEDULE, MANAGE_BOOKINGS, MANAGE_FLEET},
    Role.OPERATOR: {VIEW},
}


def has_capability(role: str, capability: str) -> bool:
    try:
        return capability in CAPABILITIES[Role(role)]
    except ValueError:
        return False
