from datetime import datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy import DateTime, ForeignKey, Numeric, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from garage_api.db.base import Base


class ServiceType(str, Enum):
    OIL_CHANGE = "oil_change"
    TECHNICAL_INSPECTION = "technical_inspection"
    TIRE_REPAIR = "tire_repair"
    TIRE_REPLACEMENT = "tire_replacement"
    BRAKES = "brakes"
    BATTERY = "battery"
    AIR_CONDITIONING = "air_conditioning"
    EXHAUST = "exhaust"
    FULL_SERVICE = "full_service"
    ELECTRONIC_DIAGNOSTICS = "electronic_diagnostics"
    BODYWORK = "bodywork"
    PAINTING = "painting"
    WINDSHIELD = "windshield"
    SUSPENSION = "suspension"
    CLUTCH = "clutch"
    TRANSMISSION = "transmission"
    FUEL_INJECTION = "fuel_injection"
    COOLING = "cooling"
    STARTER = "starter"
    CAR_WASH = "car_wash"
    WHEEL_BALANCING = "wheel_balancing"
    WHEEL_ALIGNMENT = "wheel_alignment"
    ELECTRICAL_SYSTEM = "electrical_system"
    AIR_FILTER = "air_filter"
    OIL_FILTER = "oil_filter"
    BRAKE_PADS = "brake_pads"


class Service(Base):
    __tablename__ = "services"
    __table_args__ = (
        UniqueConstraint("garage_id", "type", name="uq_services_garage_type"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    garage_id: Mapped[int] = mapped_column(
        ForeignKey("garages.id", ondelete="CASCADE"), nullable=False, index=True
    )
    type: Mapped[str] = mapped_column(String(40), nullable=False)
    average_cost: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    estimated_duration_minutes: Mapped[int] = mapped_column(nullable=False)
    created_by_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    garage = relationship("Garage", back_populates="services")
    created_by = relationship("User")
