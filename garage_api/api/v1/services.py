from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import Response
from sqlalchemy.orm import Session

from garage_api.api.deps import get_current_user, require_operator
from garage_api.api.pagination import LimitParam, PageParam, page_count
from garage_api.db.models import ServiceType, User
from garage_api.db.session import get_db
from garage_api.schemas.service import (
    ServiceCreateRequest,
    ServicePageResponse,
    ServiceResponse,
    ServiceUpdateRequest,
)
from garage_api.services.catalog_service import (
    create_service,
    delete_service,
    get_service,
    list_services_by_garage,
    search_services,
    update_service,
)
from garage_api.services.garage_service import get_operated_garage

router = APIRouter(prefix="/services", tags=["services"])


@router.post("", response_model=ServiceResponse, status_code=status.HTTP_201_CREATED)
def create_garage_service(
    payload: ServiceCreateRequest,
    current_user: User = Depends(require_operator),
    db: Session = Depends(get_db),
) -> ServiceResponse:
    get_operated_garage(db=db, garage_id=payload.garage_id, user=current_user)
    service = create_service(db=db, payload=payload, created_by=current_user)
    return ServiceResponse.model_validate(service)


@router.get("/search", response_model=ServicePageResponse, status_code=status.HTTP_200_OK)
def search_garage_services(
    service_type: ServiceType = Query(alias="type"),
    garage_id: int | None = Query(default=None),
    page: PageParam = 1,
    limit: LimitParam = 10,
    _: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ServicePageResponse:
    services, total = search_services(db=db, service_type=service_type, garage_id=garage_id, page=page, limit=limit)
    return ServicePageResponse(
        items=[ServiceResponse.model_validate(service) for service in services],
        total=total,
        page=page,
        limit=limit,
        total_pages=page_count(total, limit),
    )


@router.get("/garage/{garage_id}", response_model=list[ServiceResponse], status_code=status.HTTP_200_OK)
def list_garage_services(
    garage_id: int,
    _: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[ServiceResponse]:
    return [ServiceResponse.model_validate(service) for service in list_services_by_garage(db=db, garage_id=garage_id)]


@router.get("/{service_id}", response_model=ServiceResponse, status_code=status.HTTP_200_OK)
def get_garage_service(
    service_id: int,
    _: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ServiceResponse:
    return ServiceResponse.model_validate(get_service(db=db, service_id=service_id))


@router.patch("/{service_id}", response_model=ServiceResponse, status_code=status.HTTP_200_OK)
def update_garage_service(
    service_id: int,
    payload: ServiceUpdateRequest,
    current_user: User = Depends(require_operator),
    db: Session = Depends(get_db),
) -> ServiceResponse:
    service = update_service(db=db, service_id=service_id, payload=payload, user=current_user)
    return ServiceResponse.model_validate(service)


@router.delete("/{service_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_garage_service(
    service_id: int,
    current_user: User = Depends(require_operator),
    db: Session = Depends(get_db),
) -> Response:
    delete_service(db=db, service_id=service_id, user=current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
