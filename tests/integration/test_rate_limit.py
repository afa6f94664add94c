import pytest
import redis

from garage_api.core.config import settings
from garage_api.core.rate_limiter import MemoryWindowCounter, RateLimiter, WindowCounter, rate_limiter


@pytest.fixture()
def tight_auth_limits(monkeypatch):
    monkeypatch.setattr(settings, "auth_register_max_attempts", 2)
    monkeypatch.setattr(settings, "auth_login_max_attempts", 2)
    monkeypatch.setattr(settings, "auth_rate_limit_window_seconds", 60)
    rate_limiter.reset()
    yield
    rate_limiter.reset()


def test_register_rate_limit_returns_429(client, tight_auth_limits):
    responses = [
        client.post("/auth/register", json={"email": f"limit{index}@example.com", "password": "StrongPass123"})
        for index in range(3)
    ]

    assert [response.status_code for response in responses] == [201, 201, 429]
    assert responses[2].json()["error"]["code"] == "http_429"
    assert responses[2].headers.get("Retry-After")


def test_login_rate_limit_returns_429(client, tight_auth_limits):
    client.post("/auth/register", json={"email": "loglimit@example.com", "password": "StrongPass123"})
    wrong = {"email": "loglimit@example.com", "password": "WrongPass123"}

    statuses = [client.post("/auth/login", json=wrong).status_code for _ in range(3)]

    assert statuses == [401, 401, 429]


def test_limits_are_counted_per_scope_and_client(tight_auth_limits):
    limiter = RateLimiter(MemoryWindowCounter())

    first = limiter.hit(scope="auth:login", client_id="10.0.0.1")
    second = limiter.hit(scope="auth:login", client_id="10.0.0.1")
    third = limiter.hit(scope="auth:login", client_id="10.0.0.1")

    assert (first.allowed, first.remaining) == (True, 1)
    assert (second.allowed, second.remaining) == (True, 0)
    assert third.allowed is False
    assert 1 <= third.retry_after <= 60
    assert limiter.hit(scope="auth:login", client_id="10.0.0.2").allowed is True
    assert limiter.hit(scope="auth:register", client_id="10.0.0.1").allowed is True


class UnreachableCounter(WindowCounter):
    def increment(self, key: str, window_seconds: int) -> tuple[int, int]:
        raise redis.ConnectionError("redis is down")

    def clear(self) -> None:
        raise redis.ConnectionError("redis is down")


def test_redis_outage_falls_back_to_memory_counting(tight_auth_limits):
    limiter = RateLimiter(UnreachableCounter(), fallback=MemoryWindowCounter())

    decisions = [limiter.hit(scope="auth:register", client_id="10.0.0.9").allowed for _ in range(3)]
    limiter.reset()

    assert decisions == [True, True, False]
    assert limiter.hit(scope="auth:register", client_id="10.0.0.9").allowed is True
