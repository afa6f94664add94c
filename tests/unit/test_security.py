from datetime import timedelta

import pytest
from jose import jwt

from garage_api.core.config import settings
from garage_api.core.security import (
    InvalidTokenError,
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)


def test_password_hash_and_verify():
    plain = "StrongPass123"
    hashed = hash_password(plain)

    assert hashed != plain
    assert verify_password(plain, hashed) is True
    assert verify_password("WrongPass123", hashed) is False


def test_access_token_carries_user_and_role():
    claims = decode_access_token(create_access_token(user_id=42, role="garage_owner"))

    assert claims.user_id == 42
    assert claims.role == "garage_owner"


def test_expired_or_tampered_token_is_rejected():
    expired = create_access_token(user_id=1, role="user", expires_delta=timedelta(seconds=-10))

    with pytest.raises(InvalidTokenError):
        decode_access_token(expired)
    with pytest.raises(InvalidTokenError):
        decode_access_token(create_access_token(user_id=1, role="user") + "x")


def test_token_without_numeric_subject_is_rejected():
    token = jwt.encode({"sub": "admin", "role": "admin"}, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)

    with pytest.raises(InvalidTokenError):
        decode_access_token(token)
