# storefront/dependencies.py

import logging
from typing import Optional, Iterator

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from jose import JWTError, jwt

from storefront.core.config import settings
from storefront.core import locales
from storefront.db.session import SessionLocal
from storefront.schemas.user import CurrentUser

# --- Инициализация логгера ---
logger = logging.getLogger(__name__)

# --- Схемы аутентификации ---
# auto_error=False: отсутствие токена превращаем в наш собственный 401
strict_bearer_scheme = HTTPBearer(auto_error=False)
optional_bearer_scheme = HTTPBearer(auto_error=False)

# --- Управление сессией БД ---
def get_db_session_instance() -> Session:
    """Создает и возвращает экземпляр сессии БД."""
    return SessionLocal()

def get_db() -> Iterator[Session]:
    """
    Основная зависимость FastAPI для получения сессии БД.
    Это генератор, который корректно работает с `Depends`.
    """
    db = get_db_session_instance()
    try:
        yield db
    finally:
        db.close()

# --- Разбор токена ---

def decode_identity(token: str) -> CurrentUser:
    """
    Проверяет подпись JWT и собирает из claims личность пользователя.
    Выбрасывает JWTError, если токен невалиден или в нем нет 'sub'.
    """
    payload = jwt.decode(
        token,
        settings.AUTH_JWT_KEY,
        algorithms=[settings.AUTH_JWT_ALGORITHM],
        audience=settings.AUTH_JWT_AUDIENCE,
        issuer=settings.AUTH_JWT_ISSUER,
        options={"verify_aud": bool(settings.AUTH_JWT_AUDIENCE)},
    )
    user_id = payload.get("sub")
    if not user_id:
        raise JWTError("Token payload is missing 'sub'")

    name = payload.get("name")
    if not name:
        name = " ".join(
            part for part in (payload.get("given_name"), payload.get("family_name")) if part
        ) or None

    metadata = payload.get("public_metadata") or payload.get("metadata") or {}
    role = metadata.get("role") if isinstance(metadata, dict) else None

    return CurrentUser(
        id=str(user_id),
        email=payload.get("email"),
        name=name,
        role=role,
        is_admin=role == "admin" or str(user_id) in settings.ADMIN_USER_IDS,
    )

# --- Зависимости аутентификации и авторизации ---

def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(strict_bearer_scheme),
) -> CurrentUser:
    """
    ОБЯЗАТЕЛЬНАЯ зависимость.
    Требует валидный токен. Если его нет или он невалиден - вызывает ошибку 401.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=locales.ERROR_UNAUTHORIZED,
        headers={"WWW-Authenticate": "Bearer"},
    )

    if not credentials:
        raise credentials_exception

    try:
        user = decode_identity(credentials.credentials)
    except JWTError as e:
        logger.warning(f"JWT Error during token decoding: {e}")
        raise credentials_exception

    request.state.user = user
    logger.debug(f"Authenticated user ID: {user.id}")
    return user


def get_optional_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_bearer_scheme),
) -> Optional[CurrentUser]:
    """
    ОПЦИОНАЛЬНАЯ зависимость.
    Если токен предоставлен и валиден - возвращает пользователя, иначе None.
    """
    if not credentials:
        return None

    try:
        user = decode_identity(credentials.credentials)
    except JWTError:
        logger.warning("Optional token is invalid.")
        return None

    request.state.user = user
    return user


def get_admin_user(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    """
    Зависимость для защиты админских эндпоинтов.
    Администратор - это роль 'admin' в метаданных токена или ID из ADMIN_USER_IDS.
    """
    if not current_user.is_admin:
        logger.warning(f"Permission denied for user {current_user.id}: not an admin.")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=locales.ERROR_FORBIDDEN_ADMIN,
        )

    logger.info(f"Admin access granted for user {current_user.id}.")
    return current_user
