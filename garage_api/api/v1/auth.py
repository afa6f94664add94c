import logging
from typing import Callable

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from garage_api.core.rate_limiter import rate_limiter
from garage_api.db.session import get_db
from garage_api.schemas.auth import LoginRequest, RegisterRequest, TokenResponse
from garage_api.schemas.user import UserResponse
from garage_api.services.auth_service import login_user, register_user

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger(__name__)


def rate_limited(scope: str) -> Callable[[Request], None]:
    def check(request: Request) -> None:
        client_ip = request.client.host if request.client else "unknown"
        decision = rate_limiter.hit(scope=scope, client_id=client_ip)
        if not decision.allowed:
            logger.warning(
                "auth_rate_limited scope=%s client_ip=%s retry_after=%s", scope, client_ip, decision.retry_after
            )
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Too many requests. Please try again later.",
                headers={"Retry-After": str(decision.retry_after)},
            )

    return check


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limited("auth:register"))],
)
def register(payload: RegisterRequest, db: Session = Depends(get_db)) -> UserResponse:
    user = register_user(payload=payload, db=db)
    return UserResponse.model_validate(user)


@router.post(
    "/login",
    response_model=TokenResponse,
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(rate_limited("auth:login"))],
)
def login(payload: LoginRequest, db: Session = Depends(get_db)) -> TokenResponse:
    return login_user(payload=payload, db=db)
