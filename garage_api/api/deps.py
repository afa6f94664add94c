from typing import Callable

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.orm import Session

from garage_api.core.exceptions import ForbiddenError
from garage_api.core.security import InvalidTokenError, decode_access_token
from garage_api.db.models.user import User, UserRole
from garage_api.db.session import get_db

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    unauthorized_exc = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        claims = decode_access_token(token)
    except InvalidTokenError:
        raise unauthorized_exc

    user = db.scalar(select(User).where(User.id == claims.user_id))
    # a token issued before a role change no longer matches the account
    if not user or not user.is_active or user.role != claims.role:
        raise unauthorized_exc
    return user


def require_roles(*roles: UserRole | str) -> Callable[[User], User]:
    allowed_roles = {role.value if isinstance(role, UserRole) else role for role in roles}

    def checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed_roles:
            raise ForbiddenError()
        return current_user

    return checker


require_operator = require_roles(UserRole.GARAGE_OWNER, UserRole.ADMIN)
