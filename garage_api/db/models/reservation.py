from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy import JSON, Boolean, Date, DateTime, ForeignKey, Index, Numeric, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from garage_api.db.base import Base


class ReservationStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


ALLOWED_STATUS_TRANSITIONS: dict[ReservationStatus, frozenset[ReservationStatus]] = {
    ReservationStatus.PENDING: frozenset({ReservationStatus.CONFIRMED, ReservationStatus.CANCELLED}),
    ReservationStatus.CONFIRMED: frozenset({ReservationStatus.IN_PROGRESS, ReservationStatus.CANCELLED}),
    ReservationStatus.IN_PROGRESS: frozenset({ReservationStatus.COMPLETED}),
    ReservationStatus.COMPLETED: frozenset(),
    ReservationStatus.CANCELLED: frozenset(),
}

# statuses that hold a bay for their time window
BLOCKING_STATUSES = (
    ReservationStatus.CONFIRMED.value,
    ReservationStatus.IN_PROGRESS.value,
    ReservationStatus.COMPLETED.value,
)
# statuses a confirmation must not overlap on the same bay
CONFIRMATION_CONFLICT_STATUSES = (
    ReservationStatus.CONFIRMED.value,
    ReservationStatus.IN_PROGRESS.value,
)

AUTO_CANCEL_COMMENT = "Automatically cancelled: the repair bay was confirmed for another reservation"


def can_transition(current: ReservationStatus | str, target: ReservationStatus | str) -> bool:
    return ReservationStatus(target) in ALLOWED_STATUS_TRANSITIONS[ReservationStatus(current)]


class Reservation(Base):
    __tablename__ = "reservations"
    __table_args__ = (
        Index("ix_reservations_garage_date", "garage_id", "reservation_date"),
        Index("ix_reservations_bay_date", "repair_bay_id", "reservation_date"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    garage_id: Mapped[int] = mapped_column(ForeignKey("garages.id", ondelete="CASCADE"), nullable=False)
    repair_bay_id: Mapped[int] = mapped_column(ForeignKey("repair_bays.id", ondelete="RESTRICT"), nullable=False)
    reservation_date: Mapped[date] = mapped_column(Date, nullable=False)
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)
    services: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ReservationStatus.PENDING.value, index=True
    )
    comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_paid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    updated_by_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, onupdate=func.now()
    )

    user = relationship("User", back_populates="reservations", foreign_keys=[user_id])
    updated_by = relationship("User", foreign_keys=[updated_by_id])
    garage = relationship("Garage")
    repair_bay = relationship("RepairBay", back_populates="reservations")

    @property
    def is_terminal(self) -> bool:
        return not ALLOWED_STATUS_TRANSITIONS[ReservationStatus(self.status)]
