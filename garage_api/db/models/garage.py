from datetime import datetime

from sqlalchemy import DateTime, Float, ForeignKey, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from garage_api.db.base import Base


class Garage(Base):
    __tablename__ = "garages"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    owner_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    address: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str] = mapped_column(String(30), nullable=False)
    user_rating: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    opening_time: Mapped[str] = mapped_column(String(5), nullable=False)
    closing_time: Mapped[str] = mapped_column(String(5), nullable=False)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    number_of_bays: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    owner = relationship("User", back_populates="garages")
    repair_bays = relationship(
        "RepairBay", back_populates="garage", order_by="RepairBay.bay_number", passive_deletes=True
    )
    services = relationship("Service", back_populates="garage", passive_deletes=True)
