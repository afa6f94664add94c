from garage_api.db.models.garage import Garage
from garage_api.db.models.repair_bay import RepairBay
from garage_api.db.models.reservation import Reservation, ReservationStatus
from garage_api.db.models.service import Service, ServiceType
from garage_api.db.models.user import User, UserRole

__all__ = [
    "User",
    "UserRole",
    "Garage",
    "Service",
    "ServiceType",
    "RepairBay",
    "Reservation",
    "ReservationStatus",
]
