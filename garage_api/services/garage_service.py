import logging

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from garage_api.core.exceptions import ForbiddenError, NotFoundError
from garage_api.core.time_window import validate_opening_hours
from garage_api.db.models import Garage, RepairBay, User
from garage_api.schemas.garage import GarageCreateRequest, GarageUpdateRequest
from garage_api.services.catalog_service import delete_all_services_for_garage
from garage_api.services.repair_bay_service import create_bays_for_garage, delete_all_bays_for_garage
from garage_api.services.reservation_service import delete_all_reservations_for_garage, is_garage_operator

logger = logging.getLogger(__name__)

GARAGE_NOT_FOUND_DETAIL = "Garage not found"


def create_garage(db: Session, payload: GarageCreateRequest, owner: User) -> tuple[Garage, list[RepairBay]]:
    opening_time, closing_time = validate_opening_hours(payload.opening_time, payload.closing_time)

    garage = Garage(
        owner_id=owner.id,
        name=payload.name,
        address=payload.address,
        phone=payload.phone,
        user_rating=payload.user_rating,
        opening_time=opening_time,
        closing_time=closing_time,
        latitude=payload.latitude,
        longitude=payload.longitude,
        number_of_bays=payload.number_of_bays,
    )
    db.add(garage)
    db.flush()

    bays = create_bays_for_garage(
        db=db,
        garage_id=garage.id,
        count=payload.number_of_bays,
        opening_time=opening_time,
        closing_time=closing_time,
        commit=False,
    )
    db.commit()
    db.refresh(garage)
    for bay in bays:
        db.refresh(bay)

    logger.info("garage_created garage_id=%s owner_id=%s bays=%s", garage.id, owner.id, len(bays))
    return garage, bays


def list_garages(db: Session, limit: int = 20, offset: int = 0) -> list[Garage]:
    return list(db.scalars(select(Garage).order_by(Garage.id).limit(limit).offset(offset)).all())


def get_garage(db: Session, garage_id: int) -> Garage:
    garage = db.get(Garage, garage_id)
    if not garage:
        raise NotFoundError(GARAGE_NOT_FOUND_DETAIL)
    return garage


def get_operated_garage(db: Session, garage_id: int, user: User) -> Garage:
    garage = get_garage(db, garage_id)
    if not is_garage_operator(user, garage):
        raise ForbiddenError("Only the garage owner or an admin can manage this garage")
    return garage


def update_garage(db: Session, garage_id: int, payload: GarageUpdateRequest, user: User) -> Garage:
    garage = get_operated_garage(db, garage_id, user)
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)

    # bays keep the hours they were created with
    if "opening_time" in changes or "closing_time" in changes:
        garage.opening_time, garage.closing_time = validate_opening_hours(
            changes.pop("opening_time", garage.opening_time),
            changes.pop("closing_time", garage.closing_time),
        )

    for field, value in changes.items():
        setattr(garage, field, value)
    db.commit()
    db.refresh(garage)
    return garage


def delete_garage(db: Session, garage_id: int, user: User) -> None:
    """Remove the garage with its reservations, services and bays.

    Children go first and everything is committed once, so a failure part way
    through rolls the whole cascade back.
    """
    garage = get_operated_garage(db, garage_id, user)
    try:
        reservations = delete_all_reservations_for_garage(db, garage.id, commit=False)
        services = delete_all_services_for_garage(db, garage.id, commit=False)
        bays = delete_all_bays_for_garage(db, garage.id, commit=False)
        db.execute(delete(Garage).where(Garage.id == garage.id))
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("garage_delete_failed garage_id=%s", garage_id)
        raise

    db.expire_all()
    logger.info(
        "garage_deleted garage_id=%s reservations=%s services=%s bays=%s",
        garage_id,
        reservations,
        services,
        bays,
    )
