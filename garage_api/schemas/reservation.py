import datetime as dt
from decimal import Decimal
from typing import Annotated

from pydantic import AliasChoices, BaseModel, BeforeValidator, Field

from garage_api.core.config import settings
from garage_api.db.models.service import ServiceType
from garage_api.schemas.garage import GarageSummary
from garage_api.schemas.repair_bay import RepairBaySummary
from garage_api.schemas.user import UserSummary


def _to_day(value):
    # full ISO timestamps are accepted; only the calendar day is kept
    if isinstance(value, str) and "T" in value:
        return dt.datetime.fromisoformat(value).date()
    if isinstance(value, dt.datetime):
        return value.date()
    return value


ReservationDay = Annotated[dt.date, BeforeValidator(_to_day)]


class ReservationCreateRequest(BaseModel):
    garage_id: int
    date: ReservationDay
    start_time: str = Field(max_length=5, examples=["09:00"])
    end_time: str = Field(max_length=5, examples=["10:30"])
    services: list[ServiceType] | None = Field(default=None, max_length=settings.reservation_max_services)
    comment: str | None = Field(default=None, max_length=1000)


class ReservationUpdateRequest(BaseModel):
    start_time: str | None = Field(default=None, max_length=5)
    end_time: str | None = Field(default=None, max_length=5)
    services: list[ServiceType] | None = Field(default=None, max_length=settings.reservation_max_services)
    comment: str | None = Field(default=None, max_length=1000)
    status: str | None = None


class ReservationStatusRequest(BaseModel):
    status: str


class ReservationResponse(BaseModel):
    id: int
    user_id: int
    garage_id: int
    repair_bay_id: int
    date: dt.date = Field(validation_alias=AliasChoices("reservation_date", "date"))
    start_time: str
    end_time: str
    services: list[str]
    status: str
    comment: str | None
    is_paid: bool
    total_amount: Decimal
    updated_by_id: int | None
    created_at: dt.datetime
    updated_at: dt.datetime | None
    user: UserSummary
    garage: GarageSummary
    repair_bay: RepairBaySummary

    model_config = {"from_attributes": True}


class ReservationPageResponse(BaseModel):
    items: list[ReservationResponse]
    total: int
    page: int
    limit: int
    total_pages: int


class ReservationCancelResponse(BaseModel):
    message: str
    reservation: ReservationResponse
