# Transit Reservations: database models
# Import all models here for SQLAlchemy discovery

from app.models.vehicle import Vehicle, VehicleStatus   # noqa
from app.models.trip import Trip                        # noqa
from app.models.booking import Booking, BookingStatus   # noqa
