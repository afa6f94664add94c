import logging
from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, selectinload

from garage_api.core.config import settings
from garage_api.core.exceptions import (
    BadRequestError,
    ConflictError,
    DomainError,
    ForbiddenError,
    InvalidStatusError,
    NoAvailabilityError,
    NotFoundError,
)
from garage_api.core.metrics import record_reservation_event
from garage_api.core.time_window import days_until, today_utc, validate_reservation_window
from garage_api.db.models import Garage, RepairBay, Reservation, ReservationStatus, User, UserRole
from garage_api.db.models.reservation import (
    AUTO_CANCEL_COMMENT,
    CONFIRMATION_CONFLICT_STATUSES,
    can_transition,
)
from garage_api.schemas.reservation import ReservationCreateRequest, ReservationUpdateRequest
from garage_api.services.availability_service import get_available_bays, overlapping_reservations_query
from garage_api.services.catalog_service import price_requested_services

logger = logging.getLogger(__name__)

RESERVATION_NOT_FOUND_DETAIL = "Reservation not found"
GARAGE_NOT_FOUND_DETAIL = "Garage not found"
NO_AVAILABILITY_DETAIL = "No repair bay available for this period. All bays are booked"
MODIFICATION_WINDOW_DETAIL = "Reservation can no longer be modified. Less than {days} days remaining"
CANCELLATION_WINDOW_DETAIL = "Reservation can no longer be cancelled. Less than {days} days remaining"
CONFIRMED_CANNOT_BE_CANCELLED_DETAIL = "Confirmed reservation can only be cancelled by the garage"
STATUS_CHANGED_CONCURRENTLY_DETAIL = "Reservation status changed concurrently. Reload and retry"
BAY_LOCKED_DETAIL = "Repair bay is being confirmed by another request. Retry the request"
BAY_OCCUPIED_DETAIL = 'Repair bay "{name}" is already occupied for this period by a confirmed reservation'
PG_LOCK_NOT_AVAILABLE_SQLSTATE = "55P03"

_POPULATED = (
    selectinload(Reservation.user),
    selectinload(Reservation.garage),
    selectinload(Reservation.repair_bay),
)


def _is_postgresql_session(db: Session) -> bool:
    bind = db.get_bind()
    return bind is not None and bind.dialect.name == "postgresql"


def _is_pg_lock_not_available(exc: OperationalError) -> bool:
    original_error = getattr(exc, "orig", None)
    if original_error is None:
        return False

    sqlstate = getattr(original_error, "sqlstate", None)
    if sqlstate is None:
        sqlstate = getattr(original_error, "pgcode", None)

    return sqlstate == PG_LOCK_NOT_AVAILABLE_SQLSTATE


def is_garage_operator(user: User, garage: Garage) -> bool:
    if user.role == UserRole.ADMIN.value:
        return True
    if user.role != UserRole.GARAGE_OWNER.value:
        return False
    return garage.owner_id is None or garage.owner_id == user.id


def can_modify_reservation(reservation_date, now: datetime | None = None) -> bool:
    """Owners may change or cancel only while strictly more than the window remains."""
    return days_until(reservation_date, now=now) > settings.reservation_modification_window_days


def _get_reservation(db: Session, reservation_id: int) -> Reservation:
    reservation = db.scalar(select(Reservation).where(Reservation.id == reservation_id).options(*_POPULATED))
    if not reservation:
        raise NotFoundError(RESERVATION_NOT_FOUND_DETAIL)
    return reservation


def _populated(db: Session, reservation_id: int) -> Reservation:
    db.expire_all()
    return _get_reservation(db, reservation_id)


def _compare_and_set_status(
    db: Session,
    reservation_id: int,
    expected: ReservationStatus,
    target: ReservationStatus,
    **values: Any,
) -> bool:
    result = db.execute(
        update(Reservation)
        .where(Reservation.id == reservation_id, Reservation.status == expected.value)
        .values(status=target.value, **values)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def create_reservation(
    db: Session,
    payload: ReservationCreateRequest,
    current_user: User,
    now: datetime | None = None,
) -> Reservation:
    garage = db.get(Garage, payload.garage_id)
    if not garage:
        raise NotFoundError(GARAGE_NOT_FOUND_DETAIL)

    if payload.date < today_utc(now):
        raise BadRequestError("Cannot book a date in the past")

    start_time, end_time = validate_reservation_window(
        payload.start_time,
        payload.end_time,
        min_duration_minutes=settings.reservation_min_duration_minutes,
        opening_time=garage.opening_time,
        closing_time=garage.closing_time,
    )

    available_bays = get_available_bays(
        db=db,
        garage_id=garage.id,
        reservation_date=payload.date,
        start_time=start_time,
        end_time=end_time,
    )
    if not available_bays:
        raise NoAvailabilityError(NO_AVAILABILITY_DETAIL)
    selected_bay = available_bays[0]

    services: list[str] = []
    total_amount = Decimal("0")
    if payload.services:
        services, total_amount = price_requested_services(db, garage.id, payload.services)

    reservation = Reservation(
        user_id=current_user.id,
        garage_id=garage.id,
        repair_bay_id=selected_bay.id,
        reservation_date=payload.date,
        start_time=start_time,
        end_time=end_time,
        services=services,
        status=ReservationStatus.PENDING.value,
        comment=payload.comment,
        is_paid=False,
        total_amount=total_amount,
    )
    db.add(reservation)
    db.commit()

    record_reservation_event("created")
    logger.info(
        "reservation_created reservation_id=%s garage_id=%s bay_id=%s date=%s window=%s-%s",
        reservation.id,
        garage.id,
        selected_bay.id,
        payload.date.isoformat(),
        start_time,
        end_time,
    )
    return _populated(db, reservation.id)


def _paginate(db: Session, query, page: int, limit: int, order_by) -> tuple[list[Reservation], int]:
    total = db.scalar(select(func.count()).select_from(query.subquery())) or 0
    items = db.scalars(
        query.options(*_POPULATED).order_by(*order_by).offset((page - 1) * limit).limit(limit)
    ).all()
    return list(items), total


def list_reservations(
    db: Session,
    actor: User,
    user_id: int | None = None,
    garage_id: int | None = None,
    status: ReservationStatus | None = None,
    page: int = 1,
    limit: int = 10,
) -> tuple[list[Reservation], int]:
    query = select(Reservation)
    if actor.role == UserRole.USER.value:
        query = query.where(Reservation.user_id == actor.id)
    else:
        if garage_id is not None:
            query = query.where(Reservation.garage_id == garage_id)
        if user_id is not None:
            query = query.where(Reservation.user_id == user_id)
    if status is not None:
        query = query.where(Reservation.status == ReservationStatus(status).value)

    return _paginate(db, query, page, limit, order_by=(Reservation.reservation_date.desc(), Reservation.id.desc()))


def list_user_reservations(
    db: Session,
    user_id: int,
    status: ReservationStatus | None = None,
    page: int = 1,
    limit: int = 10,
) -> tuple[list[Reservation], int]:
    query = select(Reservation).where(Reservation.user_id == user_id)
    if status is not None:
        query = query.where(Reservation.status == ReservationStatus(status).value)
    return _paginate(db, query, page, limit, order_by=(Reservation.reservation_date.desc(), Reservation.id.desc()))


def list_garage_reservations(
    db: Session,
    garage_id: int,
    actor: User,
    status: ReservationStatus | None = None,
    page: int = 1,
    limit: int = 10,
) -> tuple[list[Reservation], int]:
    garage = db.get(Garage, garage_id)
    if not garage:
        raise NotFoundError(GARAGE_NOT_FOUND_DETAIL)
    if not is_garage_operator(actor, garage):
        raise ForbiddenError()

    query = select(Reservation).where(Reservation.garage_id == garage_id)
    if status is not None:
        query = query.where(Reservation.status == ReservationStatus(status).value)
    return _paginate(
        db,
        query,
        page,
        limit,
        order_by=(Reservation.reservation_date, Reservation.start_time, Reservation.id),
    )


def get_reservation(db: Session, reservation_id: int, actor: User) -> Reservation:
    reservation = _get_reservation(db, reservation_id)
    if actor.role == UserRole.USER.value and reservation.user_id != actor.id:
        raise ForbiddenError()
    return reservation


def _apply_field_changes(db: Session, reservation: Reservation, garage: Garage, changes: dict[str, Any]) -> None:
    if "start_time" in changes or "end_time" in changes:
        requested_start = changes.get("start_time")
        requested_end = changes.get("end_time")
        start_time, end_time = validate_reservation_window(
            reservation.start_time if requested_start is None else requested_start,
            reservation.end_time if requested_end is None else requested_end,
            min_duration_minutes=settings.reservation_min_duration_minutes,
            opening_time=garage.opening_time,
            closing_time=garage.closing_time,
        )
        available_bays = get_available_bays(
            db=db,
            garage_id=garage.id,
            reservation_date=reservation.reservation_date,
            start_time=start_time,
            end_time=end_time,
            exclude_reservation_id=reservation.id,
        )
        if not any(bay.id == reservation.repair_bay_id for bay in available_bays):
            if not available_bays:
                raise NoAvailabilityError("No repair bay available for the new time window")
            logger.info(
                "reservation_bay_reassigned reservation_id=%s from_bay_id=%s to_bay_id=%s",
                reservation.id,
                reservation.repair_bay_id,
                available_bays[0].id,
            )
            reservation.repair_bay_id = available_bays[0].id
        reservation.start_time = start_time
        reservation.end_time = end_time

    if changes.get("services") is not None:
        reservation.services, reservation.total_amount = price_requested_services(
            db, garage.id, changes["services"]
        )

    if "comment" in changes:
        reservation.comment = changes["comment"]


def update_reservation(
    db: Session,
    reservation_id: int,
    payload: ReservationUpdateRequest,
    actor: User,
    now: datetime | None = None,
) -> Reservation:
    """Apply a patch and, for operators, an optional status change.

    Field changes and the status change commit together: a rejected status
    leaves the reservation exactly as it was.
    """
    reservation = _get_reservation(db, reservation_id)
    garage = reservation.garage
    is_owner = reservation.user_id == actor.id
    is_operator = is_garage_operator(actor, garage)

    if not (is_owner or is_operator):
        raise ForbiddenError()
    if not is_operator and not can_modify_reservation(reservation.reservation_date, now=now):
        raise ForbiddenError(MODIFICATION_WINDOW_DETAIL.format(days=settings.reservation_modification_window_days))
    if reservation.is_terminal:
        raise BadRequestError(f"Reservation is {reservation.status} and can no longer be modified")

    changes = payload.model_dump(exclude_unset=True)
    requested_status = changes.pop("status", None)
    target: ReservationStatus | None = None
    # plain users never change status through an update
    if is_operator and requested_status is not None:
        current = ReservationStatus(reservation.status)
        target = _parse_status(requested_status)
        if target == current:
            target = None
        else:
            _check_transition(current, target)

    try:
        _apply_field_changes(db, reservation, garage, changes)
        if is_operator:
            reservation.updated_by_id = actor.id
        if target is None:
            db.commit()
        else:
            db.flush()
            _apply_status(db, reservation, target, actor)
    except DomainError:
        db.rollback()
        raise

    record_reservation_event("updated")
    return _populated(db, reservation_id)


def cancel_reservation(
    db: Session,
    reservation_id: int,
    actor: User,
    now: datetime | None = None,
) -> Reservation:
    reservation = _get_reservation(db, reservation_id)
    is_owner = reservation.user_id == actor.id
    is_operator = is_garage_operator(actor, reservation.garage)

    if not (is_owner or is_operator):
        raise ForbiddenError()
    if not is_operator and not can_modify_reservation(reservation.reservation_date, now=now):
        raise ForbiddenError(CANCELLATION_WINDOW_DETAIL.format(days=settings.reservation_modification_window_days))

    current = ReservationStatus(reservation.status)
    if current == ReservationStatus.CANCELLED:
        raise BadRequestError("Reservation is already cancelled")
    if not is_operator and current != ReservationStatus.PENDING:
        raise ForbiddenError(CONFIRMED_CANNOT_BE_CANCELLED_DETAIL)
    if not can_transition(current, ReservationStatus.CANCELLED):
        raise BadRequestError(f"Cannot cancel a reservation with status {current.value}")

    values: dict[str, Any] = {}
    if is_operator:
        values["updated_by_id"] = actor.id
    if not _compare_and_set_status(db, reservation.id, current, ReservationStatus.CANCELLED, **values):
        db.rollback()
        raise ConflictError(STATUS_CHANGED_CONCURRENTLY_DETAIL)
    db.commit()

    record_reservation_event("cancelled")
    logger.info("reservation_cancelled reservation_id=%s by_user_id=%s", reservation.id, actor.id)
    return _populated(db, reservation.id)


def _confirm_pending_reservation(db: Session, reservation: Reservation, actor: User) -> int:
    """Confirm a PENDING reservation and cancel the pending ones competing for its slot.

    Runs as one transaction: the bay row is locked on PostgreSQL, the status
    moves with a conditional update (only from PENDING), the confirmed-conflict
    check sees the write, and overlapping pending siblings are cancelled with a
    single bulk update. Returns how many siblings were cancelled.
    """
    reservation_id = reservation.id
    actor_id = actor.id
    bay_id = reservation.repair_bay_id
    reservation_date = reservation.reservation_date
    start_time, end_time = reservation.start_time, reservation.end_time

    try:
        bay_query = select(RepairBay).where(RepairBay.id == bay_id)
        if _is_postgresql_session(db):
            bay_query = bay_query.with_for_update(nowait=True)
        bay = db.scalar(bay_query)
        if not bay:
            raise NotFoundError("Repair bay not found")
        bay_name = bay.name

        if not _compare_and_set_status(
            db,
            reservation_id,
            ReservationStatus.PENDING,
            ReservationStatus.CONFIRMED,
            is_paid=True,
            updated_by_id=actor_id,
        ):
            db.rollback()
            raise ConflictError(STATUS_CHANGED_CONCURRENTLY_DETAIL)

        conflicting = db.scalar(
            overlapping_reservations_query(
                repair_bay_id=bay_id,
                reservation_date=reservation_date,
                start_time=start_time,
                end_time=end_time,
                statuses=CONFIRMATION_CONFLICT_STATUSES,
                exclude_reservation_id=reservation_id,
            )
            .with_only_columns(Reservation.id)
            .limit(1)
        )
        if conflicting:
            db.rollback()
            raise ConflictError(BAY_OCCUPIED_DETAIL.format(name=bay_name))

        auto_cancelled = db.execute(
            update(Reservation)
            .where(
                Reservation.id != reservation_id,
                Reservation.repair_bay_id == bay_id,
                Reservation.reservation_date == reservation_date,
                Reservation.status == ReservationStatus.PENDING.value,
                Reservation.start_time < end_time,
                Reservation.end_time > start_time,
            )
            .values(status=ReservationStatus.CANCELLED.value, comment=AUTO_CANCEL_COMMENT)
            .execution_options(synchronize_session=False)
        ).rowcount
        db.commit()
    except OperationalError as exc:
        db.rollback()
        if _is_pg_lock_not_available(exc):
            raise ConflictError(BAY_LOCKED_DETAIL) from None
        raise

    record_reservation_event("confirmed")
    record_reservation_event("auto_cancelled", auto_cancelled)
    if auto_cancelled:
        logger.info(
            "pending_reservations_auto_cancelled bay_id=%s date=%s window=%s-%s count=%s",
            bay_id,
            reservation_date.isoformat(),
            start_time,
            end_time,
            auto_cancelled,
        )
    logger.info("reservation_confirmed reservation_id=%s bay_id=%s by_user_id=%s", reservation_id, bay_id, actor_id)
    return auto_cancelled


def _parse_status(value: str) -> ReservationStatus:
    try:
        return ReservationStatus(value)
    except ValueError:
        raise InvalidStatusError(f"Invalid status '{value}'") from None


def _check_transition(current: ReservationStatus, target: ReservationStatus) -> None:
    if target == current:
        raise BadRequestError("Status unchanged")
    if not can_transition(current, target):
        raise BadRequestError(f"invalid_transition: cannot change status from {current.value} to {target.value}")


def _apply_status(db: Session, reservation: Reservation, target: ReservationStatus, actor: User) -> None:
    """Move an already checked reservation to ``target`` and commit the open transaction."""
    reservation_id = reservation.id
    actor_id = actor.id
    current = ReservationStatus(reservation.status)

    if current == ReservationStatus.PENDING and target == ReservationStatus.CONFIRMED:
        _confirm_pending_reservation(db, reservation, actor)
        return

    if not _compare_and_set_status(db, reservation_id, current, target, updated_by_id=actor_id):
        db.rollback()
        raise ConflictError(STATUS_CHANGED_CONCURRENTLY_DETAIL)
    db.commit()

    record_reservation_event("status_changed")
    logger.info(
        "reservation_status_changed reservation_id=%s from=%s to=%s by_user_id=%s",
        reservation_id,
        current.value,
        target.value,
        actor_id,
    )


def update_reservation_status(db: Session, reservation_id: int, new_status: str, actor: User) -> Reservation:
    target = _parse_status(new_status)

    reservation = _get_reservation(db, reservation_id)
    if not is_garage_operator(actor, reservation.garage):
        raise ForbiddenError("Only the garage operator can change the reservation status")

    _check_transition(ReservationStatus(reservation.status), target)
    _apply_status(db, reservation, target, actor)
    return _populated(db, reservation_id)


def delete_all_reservations_for_garage(db: Session, garage_id: int, commit: bool = True) -> int:
    deleted = db.execute(delete(Reservation).where(Reservation.garage_id == garage_id)).rowcount
    if commit:
        db.commit()
    logger.info("reservations_deleted garage_id=%s count=%s", garage_id, deleted)
    return deleted
