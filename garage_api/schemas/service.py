from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from garage_api.db.models.service import ServiceType


class ServiceCreateRequest(BaseModel):
    garage_id: int
    type: ServiceType
    average_cost: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    estimated_duration_minutes: int = Field(ge=1, le=1440)


class ServiceUpdateRequest(BaseModel):
    type: ServiceType | None = None
    average_cost: Decimal | None = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    estimated_duration_minutes: int | None = Field(default=None, ge=1, le=1440)


class ServiceResponse(BaseModel):
    id: int
    garage_id: int
    type: ServiceType
    average_cost: Decimal
    estimated_duration_minutes: int
    created_by_id: int | None
    created_at: datetime

    model_config = {"from_attributes": True}


class ServicePageResponse(BaseModel):
    items: list[ServiceResponse]
    total: int
    page: int
    limit: int
    total_pages: int
