from datetime import date

from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from garage_api.core.time_window import normalize_time
from garage_api.db.models import RepairBay, Reservation
from garage_api.db.models.reservation import BLOCKING_STATUSES


def overlapping_reservations_query(
    repair_bay_id: int | None,
    reservation_date: date,
    start_time: str,
    end_time: str,
    statuses: tuple[str, ...] | list[str],
    garage_id: int | None = None,
    exclude_reservation_id: int | None = None,
) -> Select:
    """Reservations on the same day whose [start, end) window overlaps the given one.

    Times must already be normalized to zero-padded ``HH:MM`` so the string
    comparison follows the clock.
    """
    query = select(Reservation).where(
        Reservation.reservation_date == reservation_date,
        Reservation.status.in_(statuses),
        Reservation.start_time < end_time,
        Reservation.end_time > start_time,
    )
    if repair_bay_id is not None:
        query = query.where(Reservation.repair_bay_id == repair_bay_id)
    if garage_id is not None:
        query = query.where(Reservation.garage_id == garage_id)
    if exclude_reservation_id is not None:
        query = query.where(Reservation.id != exclude_reservation_id)
    return query


def get_blocked_bay_ids(
    db: Session,
    garage_id: int,
    reservation_date: date,
    start_time: str,
    end_time: str,
    exclude_reservation_id: int | None = None,
) -> set[int]:
    query = overlapping_reservations_query(
        repair_bay_id=None,
        garage_id=garage_id,
        reservation_date=reservation_date,
        start_time=start_time,
        end_time=end_time,
        statuses=BLOCKING_STATUSES,
        exclude_reservation_id=exclude_reservation_id,
    )
    blocked = db.scalars(query.with_only_columns(Reservation.repair_bay_id).distinct()).all()
    return set(blocked)


def get_available_bays(
    db: Session,
    garage_id: int,
    reservation_date: date,
    start_time: str,
    end_time: str,
    exclude_reservation_id: int | None = None,
) -> list[RepairBay]:
    """Active bays of the garage not held by a confirmed-or-later reservation.

    Pending and cancelled reservations never block a bay. The result keeps
    bay-number order, so the first item is the bay a new reservation gets.
    """
    start_time = normalize_time(start_time)
    end_time = normalize_time(end_time)

    active_bays = db.scalars(
        select(RepairBay)
        .where(RepairBay.garage_id == garage_id, RepairBay.is_active.is_(True))
        .order_by(RepairBay.bay_number)
    ).all()
    if not active_bays:
        return []

    blocked_ids = get_blocked_bay_ids(
        db=db,
        garage_id=garage_id,
        reservation_date=reservation_date,
        start_time=start_time,
        end_time=end_time,
        exclude_reservation_id=exclude_reservation_id,
    )
    return [bay for bay in active_bays if bay.id not in blocked_ids]
