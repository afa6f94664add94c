from collections.abc import Sequence
from decimal import Decimal

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from garage_api.core.exceptions import ConflictError, ForbiddenError, InvalidServiceError, NotFoundError
from garage_api.db.models import Garage, Service, ServiceType, User
from garage_api.schemas.service import ServiceCreateRequest, ServiceUpdateRequest

SERVICE_NOT_FOUND_DETAIL = "Service not found"
DUPLICATE_SERVICE_DETAIL = "Service '{type}' already exists for this garage"


def _type_value(service_type: ServiceType | str) -> str:
    return service_type.value if isinstance(service_type, ServiceType) else service_type


def _ensure_garage_exists(db: Session, garage_id: int) -> None:
    if not db.scalar(select(Garage.id).where(Garage.id == garage_id)):
        raise NotFoundError("Garage not found")


def _ensure_can_manage(service: Service, user: User) -> None:
    if user.is_admin:
        return
    if service.created_by_id is not None and service.created_by_id != user.id:
        raise ForbiddenError("Only the creator can change this service")


def create_service(db: Session, payload: ServiceCreateRequest, created_by: User) -> Service:
    _ensure_garage_exists(db, payload.garage_id)
    service_type = _type_value(payload.type)

    duplicate = db.scalar(
        select(Service.id).where(Service.garage_id == payload.garage_id, Service.type == service_type)
    )
    if duplicate:
        raise ConflictError(DUPLICATE_SERVICE_DETAIL.format(type=service_type))

    service = Service(
        garage_id=payload.garage_id,
        type=service_type,
        average_cost=payload.average_cost,
        estimated_duration_minutes=payload.estimated_duration_minutes,
        created_by_id=created_by.id,
    )
    db.add(service)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError(DUPLICATE_SERVICE_DETAIL.format(type=service_type)) from None
    db.refresh(service)
    return service


def list_services_by_garage(db: Session, garage_id: int) -> list[Service]:
    _ensure_garage_exists(db, garage_id)
    return list(db.scalars(select(Service).where(Service.garage_id == garage_id).order_by(Service.type)).all())


def get_service(db: Session, service_id: int) -> Service:
    service = db.get(Service, service_id)
    if not service:
        raise NotFoundError(SERVICE_NOT_FOUND_DETAIL)
    return service


def update_service(db: Session, service_id: int, payload: ServiceUpdateRequest, user: User) -> Service:
    service = get_service(db, service_id)
    _ensure_can_manage(service, user)

    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    if "type" in changes:
        new_type = _type_value(changes["type"])
        duplicate = db.scalar(
            select(Service.id).where(
                Service.garage_id == service.garage_id,
                Service.type == new_type,
                Service.id != service.id,
            )
        )
        if duplicate:
            raise ConflictError(DUPLICATE_SERVICE_DETAIL.format(type=new_type))
        changes["type"] = new_type

    for field, value in changes.items():
        setattr(service, field, value)
    db.commit()
    db.refresh(service)
    return service


def delete_service(db: Session, service_id: int, user: User) -> None:
    service = get_service(db, service_id)
    _ensure_can_manage(service, user)
    db.delete(service)
    db.commit()


def delete_all_services_for_garage(db: Session, garage_id: int, commit: bool = True) -> int:
    deleted = db.execute(delete(Service).where(Service.garage_id == garage_id)).rowcount
    if commit:
        db.commit()
    return deleted


def search_services(
    db: Session,
    service_type: ServiceType | str,
    garage_id: int | None = None,
    page: int = 1,
    limit: int = 10,
) -> tuple[list[Service], int]:
    query = select(Service).where(Service.type == _type_value(service_type))
    if garage_id is not None:
        query = query.where(Service.garage_id == garage_id)

    total = db.scalar(select(func.count()).select_from(query.subquery())) or 0
    services = db.scalars(
        query.order_by(Service.created_at.desc(), Service.id.desc()).offset((page - 1) * limit).limit(limit)
    ).all()
    return list(services), total


def find_services_by_garage_and_types(
    db: Session,
    garage_id: int,
    service_types: Sequence[ServiceType | str],
) -> list[Service]:
    types = [_type_value(service_type) for service_type in service_types]
    if not types:
        return []
    return list(db.scalars(select(Service).where(Service.garage_id == garage_id, Service.type.in_(types))).all())


def price_requested_services(
    db: Session,
    garage_id: int,
    service_types: Sequence[ServiceType | str],
) -> tuple[list[str], Decimal]:
    """Check every requested type against the garage catalog and sum their average cost.

    Duplicates in the request collapse to one entry, keeping first-seen order.
    """
    requested = list(dict.fromkeys(_type_value(service_type) for service_type in service_types))
    if not requested:
        return [], Decimal("0")

    offered = {service.type: service for service in find_services_by_garage_and_types(db, garage_id, requested)}
    missing = [service_type for service_type in requested if service_type not in offered]
    if missing:
        raise InvalidServiceError(f"Service not available in this garage: {', '.join(missing)}")

    total_amount = sum((Decimal(offered[service_type].average_cost) for service_type in requested), Decimal("0"))
    return requested, total_amount
