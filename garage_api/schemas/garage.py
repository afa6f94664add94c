from datetime import datetime

from pydantic import BaseModel, Field

from garage_api.core.config import settings
from garage_api.schemas.repair_bay import RepairBayResponse


class GarageCreateRequest(BaseModel):
    name: str = Field(min_length=2, max_length=120)
    address: str = Field(min_length=2, max_length=255)
    phone: str = Field(min_length=3, max_length=30)
    user_rating: float = Field(default=0, ge=0, le=5)
    opening_time: str = Field(max_length=5, examples=["08:00"])
    closing_time: str = Field(max_length=5, examples=["18:00"])
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    number_of_bays: int = Field(default=1, ge=1, le=settings.garage_max_bays)


class GarageUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=2, max_length=120)
    address: str | None = Field(default=None, min_length=2, max_length=255)
    phone: str | None = Field(default=None, min_length=3, max_length=30)
    user_rating: float | None = Field(default=None, ge=0, le=5)
    opening_time: str | None = Field(default=None, max_length=5)
    closing_time: str | None = Field(default=None, max_length=5)
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)


class GarageResponse(BaseModel):
    id: int
    owner_id: int | None
    name: str
    address: str
    phone: str
    user_rating: float
    opening_time: str
    closing_time: str
    latitude: float | None
    longitude: float | None
    number_of_bays: int
    created_at: datetime

    model_config = {"from_attributes": True}


class GarageSummary(BaseModel):
    id: int
    name: str
    address: str
    phone: str

    model_config = {"from_attributes": True}


class GarageCreatedResponse(BaseModel):
    garage: GarageResponse
    repair_bays: list[RepairBayResponse]


class MessageResponse(BaseModel):
    message: str
