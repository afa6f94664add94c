from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from garage_api.db.base import Base


class RepairBay(Base):
    __tablename__ = "repair_bays"
    __table_args__ = (
        UniqueConstraint("garage_id", "bay_number", name="uq_repair_bays_garage_bay_number"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    garage_id: Mapped[int] = mapped_column(
        ForeignKey("garages.id", ondelete="CASCADE"), nullable=False, index=True
    )
    bay_number: Mapped[int] = mapped_column(Integer, nullable=False)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    # copied from the garage at creation, not kept in sync afterwards
    opening_time: Mapped[str] = mapped_column(String(5), nullable=False)
    closing_time: Mapped[str] = mapped_column(String(5), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    garage = relationship("Garage", back_populates="repair_bays")
    reservations = relationship("Reservation", back_populates="repair_bay")
