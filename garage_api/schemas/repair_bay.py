from datetime import datetime

from pydantic import BaseModel, Field


class RepairBayCreateRequest(BaseModel):
    garage_id: int
    bay_number: int = Field(ge=1)
    name: str = Field(min_length=1, max_length=120)
    opening_time: str = Field(max_length=5, examples=["08:00"])
    closing_time: str = Field(max_length=5, examples=["18:00"])
    is_active: bool = True


class RepairBayUpdateRequest(BaseModel):
    bay_number: int | None = Field(default=None, ge=1)
    name: str | None = Field(default=None, min_length=1, max_length=120)
    opening_time: str | None = Field(default=None, max_length=5)
    closing_time: str | None = Field(default=None, max_length=5)
    is_active: bool | None = None


class RepairBayResponse(BaseModel):
    id: int
    garage_id: int
    bay_number: int
    name: str
    opening_time: str
    closing_time: str
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class RepairBaySummary(BaseModel):
    id: int
    bay_number: int
    name: str
    opening_time: str
    closing_time: str

    model_config = {"from_attributes": True}


class RepairBayCountResponse(BaseModel):
    garage_id: int
    count: int
