# tests/unit/test_rate_limit.py

import pytest
from httpx import AsyncClient
from limits.storage import MemoryStorage
from limits.strategies import MovingWindowRateLimiter
from starlette.requests import Request

from storefront.core.limiter import key_func, limiter
from storefront.schemas.user import CurrentUser


def _request(headers: dict | None = None, client=("10.0.0.1", 5000)) -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/api/orders",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "client": client,
    }
    return Request(scope)


@pytest.fixture
def rate_limiting(monkeypatch):
    """Включает лимитер на чистом in-memory хранилище."""
    monkeypatch.setattr(limiter, "enabled", True)
    monkeypatch.setattr(limiter, "_limiter", MovingWindowRateLimiter(MemoryStorage()))


def test_key_prefers_authenticated_user():
    request = _request({"X-Forwarded-For": "1.2.3.4"})
    request.state.user = CurrentUser(id="user_42")

    assert key_func(request) == "user:user_42"


@pytest.mark.parametrize(
    "headers, client, expected",
    [
        ({"X-Forwarded-For": "1.2.3.4, 5.6.7.8", "X-Real-IP": "9.9.9.9"}, ("10.0.0.1", 5000), "ip:1.2.3.4"),
        ({"X-Real-IP": " 9.9.9.9 "}, ("10.0.0.1", 5000), "ip:9.9.9.9"),
        ({}, ("10.0.0.1", 5000), "ip:10.0.0.1"),
        ({}, None, "ip:127.0.0.1"),
    ],
)
def test_key_falls_back_through_ip_sources(headers, client, expected):
    assert key_func(_request(headers, client)) == expected


async def test_decorated_route_returns_429_envelope(client: AsyncClient, rate_limiting):
    # Лимит оформления заказа - 5 запросов в минуту
    for _ in range(5):
        response = await client.post("/api/checkout")
        assert response.status_code == 400

    blocked = await client.post("/api/checkout")

    assert blocked.status_code == 429
    assert blocked.json() == {"error": "Too many requests. Please try again later.", "retryAfter": 60}
    assert blocked.headers["X-RateLimit-Limit"] == "5"
    assert blocked.headers["X-RateLimit-Remaining"] == "0"
    assert blocked.headers["Retry-After"] == "60"
    assert int(blocked.headers["X-RateLimit-Reset"]) > 0


async def test_guest_order_lookup_uses_guest_limit(client: AsyncClient, rate_limiting):
    headers = {"X-Forwarded-For": "1.1.1.1"}
    for _ in range(10):
        response = await client.get("/api/orders", params={"guestToken": "unknown"}, headers=headers)
        assert response.status_code == 404

    blocked = await client.get("/api/orders", params={"email": "a@example.com", "orderId": "x"}, headers=headers)
    assert blocked.status_code == 429
    assert blocked.json()["retryAfter"] == 60
    assert blocked.headers["X-RateLimit-Limit"] == "10"

    # Другой IP считается отдельно
    other = await client.get("/api/orders", params={"guestToken": "unknown"}, headers={"X-Forwarded-For": "2.2.2.2"})
    assert other.status_code == 404


async def test_own_orders_use_general_api_limit(client: AsyncClient, auth_headers: dict, test_user, rate_limiting):
    for _ in range(11):
        response = await client.get("/api/orders", headers=auth_headers)
        assert response.status_code == 200
