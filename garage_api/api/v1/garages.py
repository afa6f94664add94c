from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from garage_api.api.deps import get_current_user, require_operator
from garage_api.api.pagination import LimitParam, OffsetParam
from garage_api.db.models import User
from garage_api.db.session import get_db
from garage_api.schemas.garage import (
    GarageCreatedResponse,
    GarageCreateRequest,
    GarageResponse,
    GarageUpdateRequest,
    MessageResponse,
)
from garage_api.schemas.repair_bay import RepairBayResponse
from garage_api.services.garage_service import create_garage, delete_garage, get_garage, list_garages, update_garage

router = APIRouter(prefix="/garages", tags=["garages"])


@router.post("", response_model=GarageCreatedResponse, status_code=status.HTTP_201_CREATED)
def create_new_garage(
    payload: GarageCreateRequest,
    current_user: User = Depends(require_operator),
    db: Session = Depends(get_db),
) -> GarageCreatedResponse:
    garage, bays = create_garage(db=db, payload=payload, owner=current_user)
    return GarageCreatedResponse(
        garage=GarageResponse.model_validate(garage),
        repair_bays=[RepairBayResponse.model_validate(bay) for bay in bays],
    )


@router.get("", response_model=list[GarageResponse], status_code=status.HTTP_200_OK)
def list_all_garages(
    limit: LimitParam = 20,
    offset: OffsetParam = 0,
    _: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[GarageResponse]:
    return [GarageResponse.model_validate(garage) for garage in list_garages(db=db, limit=limit, offset=offset)]


@router.get("/{garage_id}", response_model=GarageResponse, status_code=status.HTTP_200_OK)
def get_one_garage(
    garage_id: int,
    _: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> GarageResponse:
    return GarageResponse.model_validate(get_garage(db=db, garage_id=garage_id))


@router.patch("/{garage_id}", response_model=GarageResponse, status_code=status.HTTP_200_OK)
def update_existing_garage(
    garage_id: int,
    payload: GarageUpdateRequest,
    current_user: User = Depends(require_operator),
    db: Session = Depends(get_db),
) -> GarageResponse:
    garage = update_garage(db=db, garage_id=garage_id, payload=payload, user=current_user)
    return GarageResponse.model_validate(garage)


@router.delete("/{garage_id}", response_model=MessageResponse, status_code=status.HTTP_200_OK)
def delete_existing_garage(
    garage_id: int,
    current_user: User = Depends(require_operator),
    db: Session = Depends(get_db),
) -> MessageResponse:
    delete_garage(db=db, garage_id=garage_id, user=current_user)
    return MessageResponse(message="Garage deleted with its repair bays, services and reservations")
