import logging

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from garage_api.core.exceptions import BadRequestError, ConflictError, NotFoundError
from garage_api.core.time_window import validate_opening_hours
from garage_api.db.models import Garage, RepairBay, Reservation
from garage_api.schemas.repair_bay import RepairBayUpdateRequest

logger = logging.getLogger(__name__)

BAY_NOT_FOUND_DETAIL = "Repair bay not found"
GARAGE_NOT_FOUND_DETAIL = "Garage not found"
DUPLICATE_BAY_NUMBER_DETAIL = "Bay number already exists for this garage"
BAY_HAS_RESERVATIONS_DETAIL = "Repair bay has reservations. Deactivate it instead"


def _default_bay_name(bay_number: int) -> str:
    return f"Bay {bay_number}"


def create_bays_for_garage(
    db: Session,
    garage_id: int,
    count: int,
    opening_time: str,
    closing_time: str,
    commit: bool = True,
) -> list[RepairBay]:
    if count < 1:
        raise BadRequestError("A garage needs at least one repair bay")
    opening_time, closing_time = validate_opening_hours(opening_time, closing_time)

    bays = [
        RepairBay(
            garage_id=garage_id,
            bay_number=number,
            name=_default_bay_name(number),
            opening_time=opening_time,
            closing_time=closing_time,
            is_active=True,
        )
        for number in range(1, count + 1)
    ]
    db.add_all(bays)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        raise ConflictError(DUPLICATE_BAY_NUMBER_DETAIL) from None

    if commit:
        db.commit()
        for bay in bays:
            db.refresh(bay)
    return bays


def create_repair_bay(
    db: Session,
    garage_id: int,
    bay_number: int,
    name: str,
    opening_time: str,
    closing_time: str,
    is_active: bool = True,
) -> RepairBay:
    opening_time, closing_time = validate_opening_hours(opening_time, closing_time)

    if not db.scalar(select(Garage.id).where(Garage.id == garage_id)):
        raise NotFoundError(GARAGE_NOT_FOUND_DETAIL)

    existing = db.scalar(
        select(RepairBay.id).where(RepairBay.garage_id == garage_id, RepairBay.bay_number == bay_number)
    )
    if existing:
        raise ConflictError(DUPLICATE_BAY_NUMBER_DETAIL)

    bay = RepairBay(
        garage_id=garage_id,
        bay_number=bay_number,
        name=name,
        opening_time=opening_time,
        closing_time=closing_time,
        is_active=is_active,
    )
    db.add(bay)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError(DUPLICATE_BAY_NUMBER_DETAIL) from None
    db.refresh(bay)
    return bay


def list_bays_by_garage(db: Session, garage_id: int) -> list[RepairBay]:
    return list(
        db.scalars(select(RepairBay).where(RepairBay.garage_id == garage_id).order_by(RepairBay.bay_number)).all()
    )


def get_repair_bay(db: Session, bay_id: int) -> RepairBay:
    bay = db.get(RepairBay, bay_id)
    if not bay:
        raise NotFoundError(BAY_NOT_FOUND_DETAIL)
    return bay


def update_repair_bay(db: Session, bay_id: int, payload: RepairBayUpdateRequest) -> RepairBay:
    bay = get_repair_bay(db, bay_id)
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)

    if "opening_time" in changes or "closing_time" in changes:
        bay.opening_time, bay.closing_time = validate_opening_hours(
            changes.pop("opening_time", bay.opening_time),
            changes.pop("closing_time", bay.closing_time),
        )

    new_number = changes.pop("bay_number", None)
    if new_number is not None and new_number != bay.bay_number:
        taken = db.scalar(
            select(RepairBay.id).where(
                RepairBay.garage_id == bay.garage_id,
                RepairBay.bay_number == new_number,
                RepairBay.id != bay.id,
            )
        )
        if taken:
            raise ConflictError(DUPLICATE_BAY_NUMBER_DETAIL)
        bay.bay_number = new_number

    for field, value in changes.items():
        setattr(bay, field, value)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError(DUPLICATE_BAY_NUMBER_DETAIL) from None
    db.refresh(bay)
    return bay


def toggle_repair_bay(db: Session, bay_id: int) -> RepairBay:
    bay = get_repair_bay(db, bay_id)
    bay.is_active = not bay.is_active
    db.commit()
    db.refresh(bay)
    logger.info("repair_bay_toggled bay_id=%s is_active=%s", bay.id, bay.is_active)
    return bay


def delete_repair_bay(db: Session, bay_id: int) -> None:
    bay = get_repair_bay(db, bay_id)
    referenced = db.scalar(select(Reservation.id).where(Reservation.repair_bay_id == bay.id).limit(1))
    if referenced:
        raise ConflictError(BAY_HAS_RESERVATIONS_DETAIL)

    db.delete(bay)
    db.commit()


def delete_all_bays_for_garage(db: Session, garage_id: int, commit: bool = True) -> int:
    deleted = db.execute(delete(RepairBay).where(RepairBay.garage_id == garage_id)).rowcount
    if commit:
        db.commit()
    logger.info("repair_bays_deleted garage_id=%s count=%s", garage_id, deleted)
    return deleted


def count_bays_for_garage(db: Session, garage_id: int) -> int:
    return db.scalar(select(func.count()).select_from(RepairBay).where(RepairBay.garage_id == garage_id)) or 0
