# storefront/main.py

import logging
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

# Конфигурация и ядро
from storefront.core import locales
from storefront.core.config import settings as config
from storefront.core.limiter import limiter, rate_limit_exceeded_handler
from storefront.core.logging_config import setup_logging
from storefront.core.redis import redis_client
import storefront.db.base  # noqa: F401  регистрирует все модели

# Роутеры FastAPI
from storefront.routers import (
    cart, categories, checkout, favorites, orders, products, sales, webhooks
)
from storefront.routers import admin as admin_router

# --- Инициализация ---
logger = logging.getLogger(__name__)


# --- Обработчики ошибок ---
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Единый формат ошибок: {"error": "..."} или словарь из detail с доп. полями."""
    content = exc.detail if isinstance(exc.detail, dict) else {"error": exc.detail}
    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Ошибки валидации тела запроса: 400 с первым сообщением и полным списком в details."""
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        first = errors[0]
        ctx_error = (first.get("ctx") or {}).get("error")
        message = str(ctx_error) if isinstance(ctx_error, ValueError) else first.get("msg", message)
        message = message.removeprefix("Value error, ")

    details = [
        {"loc": list(error.get("loc", [])), "msg": error.get("msg"), "type": error.get("type")}
        for error in errors
    ]
    return JSONResponse(status_code=400, content={"error": message, "details": details})


async def unhandled_exception_handler(request: Request, exc: Exception):
    """
    Глобальный обработчик для всех необработанных исключений.
    Логирует ошибку с трейсбеком, клиенту детали не раскрываются.
    """
    logger.critical(f"Unhandled exception for request: {request.method} {request.url}", exc_info=True)
    return JSONResponse(status_code=500, content={"error": locales.ERROR_INTERNAL})


# --- Lifespan Manager (запуск и остановка приложения) ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info("Application lifespan startup...")
    if redis_client is None:
        logger.warning("Redis is not configured: rate limiting and webhook deduplication are disabled.")

    yield

    if redis_client is not None:
        await redis_client.aclose()
        logger.info("Redis connection closed.")
    logger.info("Application shutdown complete.")


# --- Создание FastAPI приложения ---
app = FastAPI(
    title=f"{config.STORE_NAME} Storefront API",
    description="Backend for the storefront: catalog, cart, checkout and order fulfilment",
    version="0.1.0",
    lifespan=lifespan,
)

app.state.limiter = limiter

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Регистрация обработчиков исключений ---
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

# --- Подключение роутеров FastAPI ---
api_router = APIRouter(prefix="/api")

# Публичные и пользовательские эндпоинты
api_router.include_router(products.router, tags=["Products"])
api_router.include_router(categories.router, tags=["Categories"])
api_router.include_router(sales.router, tags=["Sales"])
api_router.include_router(cart.router, tags=["Cart"])
api_router.include_router(favorites.router, tags=["Favorites & Recently Viewed"])
api_router.include_router(checkout.router, tags=["Checkout"])
api_router.include_router(orders.router, tags=["Orders"])
api_router.include_router(webhooks.router, tags=["Webhooks"])

# Админские эндпоинты
api_router.include_router(admin_router.router, prefix="/admin")

app.include_router(api_router)


@app.get("/health", tags=["Health"])
async def health_check():
    return {"status": "ok"}
