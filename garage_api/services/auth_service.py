import logging

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from garage_api.core.exceptions import ConflictError
from garage_api.core.security import create_access_token, hash_password, verify_password
from garage_api.db.models.user import User, UserRole
from garage_api.schemas.auth import LoginRequest, RegisterRequest, TokenResponse

logger = logging.getLogger(__name__)

DUPLICATE_EMAIL_DETAIL = "User with this email already exists"


def register_user(payload: RegisterRequest, db: Session) -> User:
    email = payload.email.lower()
    if db.scalar(select(User.id).where(User.email == email)):
        raise ConflictError(DUPLICATE_EMAIL_DETAIL)

    user = User(
        email=email,
        hashed_password=hash_password(payload.password),
        role=payload.role.value if isinstance(payload.role, UserRole) else payload.role,
        first_name=payload.first_name,
        last_name=payload.last_name,
        phone=payload.phone,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError(DUPLICATE_EMAIL_DETAIL) from None
    db.refresh(user)
    logger.info("user_registered user_id=%s role=%s", user.id, user.role)
    return user


def login_user(payload: LoginRequest, db: Session) -> TokenResponse:
    email = payload.email.lower()
    user = db.scalar(select(User).where(User.email == email))
    if not user or not verify_password(payload.password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User is inactive",
        )

    token = create_access_token(user_id=user.id, role=user.role)
    return TokenResponse(access_token=token)
