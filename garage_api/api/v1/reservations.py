from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from garage_api.api.deps import get_current_user, require_operator
from garage_api.api.pagination import LimitParam, PageParam, page_count
from garage_api.db.models import Reservation, ReservationStatus, User
from garage_api.db.session import get_db
from garage_api.schemas.reservation import (
    ReservationCancelResponse,
    ReservationCreateRequest,
    ReservationPageResponse,
    ReservationResponse,
    ReservationStatusRequest,
    ReservationUpdateRequest,
)
from garage_api.services.reservation_service import (
    cancel_reservation,
    create_reservation,
    get_reservation,
    list_garage_reservations,
    list_reservations,
    list_user_reservations,
    update_reservation,
    update_reservation_status,
)

router = APIRouter(prefix="/reservations", tags=["reservations"])


def _page(items: list[Reservation], total: int, page: int, limit: int) -> ReservationPageResponse:
    return ReservationPageResponse(
        items=[ReservationResponse.model_validate(reservation) for reservation in items],
        total=total,
        page=page,
        limit=limit,
        total_pages=page_count(total, limit),
    )


@router.post("", response_model=ReservationResponse, status_code=status.HTTP_201_CREATED)
def create_new_reservation(
    payload: ReservationCreateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ReservationResponse:
    reservation = create_reservation(db=db, payload=payload, current_user=current_user)
    return ReservationResponse.model_validate(reservation)


@router.get("", response_model=ReservationPageResponse, status_code=status.HTTP_200_OK)
def list_all_reservations(
    user_id: int | None = Query(default=None),
    garage_id: int | None = Query(default=None),
    status_filter: ReservationStatus | None = Query(default=None, alias="status"),
    page: PageParam = 1,
    limit: LimitParam = 10,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ReservationPageResponse:
    items, total = list_reservations(
        db=db,
        actor=current_user,
        user_id=user_id,
        garage_id=garage_id,
        status=status_filter,
        page=page,
        limit=limit,
    )
    return _page(items, total, page, limit)


@router.get("/me", response_model=ReservationPageResponse, status_code=status.HTTP_200_OK)
def list_my_reservations(
    status_filter: ReservationStatus | None = Query(default=None, alias="status"),
    page: PageParam = 1,
    limit: LimitParam = 10,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ReservationPageResponse:
    items, total = list_user_reservations(
        db=db, user_id=current_user.id, status=status_filter, page=page, limit=limit
    )
    return _page(items, total, page, limit)


@router.get("/garage/{garage_id}", response_model=ReservationPageResponse, status_code=status.HTTP_200_OK)
def list_reservations_of_garage(
    garage_id: int,
    status_filter: ReservationStatus | None = Query(default=None, alias="status"),
    page: PageParam = 1,
    limit: LimitParam = 10,
    current_user: User = Depends(require_operator),
    db: Session = Depends(get_db),
) -> ReservationPageResponse:
    items, total = list_garage_reservations(
        db=db, garage_id=garage_id, actor=current_user, status=status_filter, page=page, limit=limit
    )
    return _page(items, total, page, limit)


@router.get("/{reservation_id}", response_model=ReservationResponse, status_code=status.HTTP_200_OK)
def get_one_reservation(
    reservation_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ReservationResponse:
    return ReservationResponse.model_validate(get_reservation(db=db, reservation_id=reservation_id, actor=current_user))


@router.patch("/{reservation_id}", response_model=ReservationResponse, status_code=status.HTTP_200_OK)
def update_existing_reservation(
    reservation_id: int,
    payload: ReservationUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ReservationResponse:
    reservation = update_reservation(db=db, reservation_id=reservation_id, payload=payload, actor=current_user)
    return ReservationResponse.model_validate(reservation)


@router.delete("/{reservation_id}", response_model=ReservationCancelResponse, status_code=status.HTTP_200_OK)
def cancel_existing_reservation(
    reservation_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ReservationCancelResponse:
    reservation = cancel_reservation(db=db, reservation_id=reservation_id, actor=current_user)
    return ReservationCancelResponse(
        message="Reservation cancelled",
        reservation=ReservationResponse.model_validate(reservation),
    )


@router.patch("/{reservation_id}/status", response_model=ReservationResponse, status_code=status.HTTP_200_OK)
def change_reservation_status(
    reservation_id: int,
    payload: ReservationStatusRequest,
    current_user: User = Depends(require_operator),
    db: Session = Depends(get_db),
) -> ReservationResponse:
    reservation = update_reservation_status(
        db=db, reservation_id=reservation_id, new_status=payload.status, actor=current_user
    )
    return ReservationResponse.model_validate(reservation)
