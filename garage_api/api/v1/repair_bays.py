from datetime import date

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import Response
from sqlalchemy.orm import Session

from garage_api.api.deps import get_current_user, require_operator
from garage_api.db.models import User
from garage_api.db.session import get_db
from garage_api.schemas.repair_bay import (
    RepairBayCountResponse,
    RepairBayCreateRequest,
    RepairBayResponse,
    RepairBayUpdateRequest,
)
from garage_api.services.availability_service import get_available_bays
from garage_api.services.garage_service import get_garage, get_operated_garage
from garage_api.services.repair_bay_service import (
    count_bays_for_garage,
    create_repair_bay,
    delete_repair_bay,
    get_repair_bay,
    list_bays_by_garage,
    toggle_repair_bay,
    update_repair_bay,
)

router = APIRouter(prefix="/repair-bays", tags=["repair-bays"])


def _operated_bay(db: Session, bay_id: int, user: User):
    bay = get_repair_bay(db=db, bay_id=bay_id)
    get_operated_garage(db=db, garage_id=bay.garage_id, user=user)
    return bay


@router.post("", response_model=RepairBayResponse, status_code=status.HTTP_201_CREATED)
def create_single_bay(
    payload: RepairBayCreateRequest,
    current_user: User = Depends(require_operator),
    db: Session = Depends(get_db),
) -> RepairBayResponse:
    get_operated_garage(db=db, garage_id=payload.garage_id, user=current_user)
    bay = create_repair_bay(
        db=db,
        garage_id=payload.garage_id,
        bay_number=payload.bay_number,
        name=payload.name,
        opening_time=payload.opening_time,
        closing_time=payload.closing_time,
        is_active=payload.is_active,
    )
    return RepairBayResponse.model_validate(bay)


@router.get("/garage/{garage_id}", response_model=list[RepairBayResponse], status_code=status.HTTP_200_OK)
def list_garage_bays(
    garage_id: int,
    _: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[RepairBayResponse]:
    get_garage(db=db, garage_id=garage_id)
    return [RepairBayResponse.model_validate(bay) for bay in list_bays_by_garage(db=db, garage_id=garage_id)]


@router.get("/garage/{garage_id}/available", response_model=list[RepairBayResponse], status_code=status.HTTP_200_OK)
def list_available_bays(
    garage_id: int,
    day: date = Query(alias="date"),
    start_time: str = Query(max_length=5),
    end_time: str = Query(max_length=5),
    _: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[RepairBayResponse]:
    get_garage(db=db, garage_id=garage_id)
    bays = get_available_bays(
        db=db,
        garage_id=garage_id,
        reservation_date=day,
        start_time=start_time,
        end_time=end_time,
    )
    return [RepairBayResponse.model_validate(bay) for bay in bays]


@router.get("/garage/{garage_id}/count", response_model=RepairBayCountResponse, status_code=status.HTTP_200_OK)
def count_garage_bays(
    garage_id: int,
    _: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> RepairBayCountResponse:
    get_garage(db=db, garage_id=garage_id)
    return RepairBayCountResponse(garage_id=garage_id, count=count_bays_for_garage(db=db, garage_id=garage_id))


@router.get("/{bay_id}", response_model=RepairBayResponse, status_code=status.HTTP_200_OK)
def get_one_bay(
    bay_id: int,
    _: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> RepairBayResponse:
    return RepairBayResponse.model_validate(get_repair_bay(db=db, bay_id=bay_id))


@router.patch("/{bay_id}", response_model=RepairBayResponse, status_code=status.HTTP_200_OK)
def update_bay(
    bay_id: int,
    payload: RepairBayUpdateRequest,
    current_user: User = Depends(require_operator),
    db: Session = Depends(get_db),
) -> RepairBayResponse:
    _operated_bay(db, bay_id, current_user)
    return RepairBayResponse.model_validate(update_repair_bay(db=db, bay_id=bay_id, payload=payload))


@router.patch("/{bay_id}/toggle", response_model=RepairBayResponse, status_code=status.HTTP_200_OK)
def toggle_bay(
    bay_id: int,
    current_user: User = Depends(require_operator),
    db: Session = Depends(get_db),
) -> RepairBayResponse:
    _operated_bay(db, bay_id, current_user)
    return RepairBayResponse.model_validate(toggle_repair_bay(db=db, bay_id=bay_id))


@router.delete("/{bay_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_bay(
    bay_id: int,
    current_user: User = Depends(require_operator),
    db: Session = Depends(get_db),
) -> Response:
    _operated_bay(db, bay_id, current_user)
    delete_repair_bay(db=db, bay_id=bay_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
