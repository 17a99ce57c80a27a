# storefront/core/limiter.py

import logging
import math
import time

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from limits import parse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded

from storefront.core.config import settings
from storefront.core import locales

logger = logging.getLogger(__name__)

# Именованные лимиты (скользящее окно в одну минуту)
RATE_LIMITS = {
    "api": "60/minute",
    "auth": "10/minute",
    "cart": "30/minute",
    "checkout": "5/minute",
    "admin": "100/minute",
    "guest_lookup": "10/minute",
}


def get_client_ip(request: Request) -> str:
    """IP клиента с учетом прокси: X-Forwarded-For -> X-Real-IP -> адрес сокета."""
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first

    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()

    if request.client and request.client.host:
        return request.client.host
    return "127.0.0.1"


def key_func(request: Request) -> str:
    """
    Определяет, как идентифицировать запрос для применения лимита.
    Приоритет: ID пользователя (если авторизован) -> IP-адрес.
    """
    # Пользователь уже мог быть извлечен в зависимостях
    user = getattr(request.state, "user", None)

    if user and user.id:
        return f"user:{user.id}"

    return f"ip:{get_client_ip(request)}"


# Без Redis лимитер выключен и декораторы ничего не делают
limiter = Limiter(
    key_func=key_func,
    storage_uri=settings.REDIS_URL or "memory://",
    strategy="moving-window",
    enabled=bool(settings.REDIS_URL),
)


def _limit_headers(limit_item) -> dict:
    retry_after = limit_item.get_expiry()
    return {
        "X-RateLimit-Limit": str(limit_item.amount),
        "X-RateLimit-Remaining": "0",
        "X-RateLimit-Reset": str(math.ceil(time.time()) + retry_after),
        "Retry-After": str(retry_after),
    }


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Ответ 429 с заголовками X-RateLimit-* и Retry-After."""
    limit_item = exc.limit.limit
    logger.warning(f"Rate limit exceeded for {key_func(request)} on {request.method} {request.url.path} ({limit_item})")

    return JSONResponse(
        status_code=429,
        content={"error": locales.ERROR_TOO_MANY_REQUESTS, "retryAfter": limit_item.get_expiry()},
        headers=_limit_headers(limit_item),
    )


def enforce_limit(request: Request, name: str) -> None:
    """
    Ручная проверка именованного лимита.
    Нужна там, где лимит зависит от параметров запроса и декоратор не подходит.
    """
    if not limiter.enabled:
        return

    limit_item = parse(RATE_LIMITS[name])
    key = key_func(request)
    if not limiter.limiter.hit(limit_item, name, key):
        logger.warning(f"Rate limit '{name}' exceeded for {key} on {request.method} {request.url.path}")
        raise HTTPException(
            status_code=429,
            detail={"error": locales.ERROR_TOO_MANY_REQUESTS, "retryAfter": limit_item.get_expiry()},
            headers=_limit_headers(limit_item),
        )

