# storefront/core/config.py

from decimal import Decimal
from typing import List
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Настройки базы данных
    DATABASE_USER: str
    DATABASE_PASSWORD: str
    DATABASE_HOST: str
    DATABASE_PORT: int = 5432
    DATABASE_NAME: str

    # Redis опционален: без него лимиты и идемпотентность вебхуков отключены
    REDIS_HOST: str | None = None
    REDIS_PORT: int = 6379

    # Токены провайдера аутентификации
    AUTH_JWT_KEY: str
    AUTH_JWT_ALGORITHM: str = "HS256"
    AUTH_JWT_AUDIENCE: str | None = None
    AUTH_JWT_ISSUER: str | None = None
    ADMIN_USER_IDS_STR: str = Field(default="", alias="ADMIN_USER_IDS")

    # Stripe
    STRIPE_SECRET_KEY: str = ""
    STRIPE_WEBHOOK_SECRET: str = ""

    # Shippo и адрес отправителя
    SHIPPO_API_KEY: str = ""
    SHIPPO_API_URL: str = "https://api.goshippo.com"
    BUSINESS_NAME: str = ""
    BUSINESS_ADDRESS_LINE1: str = ""
    BUSINESS_ADDRESS_LINE2: str = ""
    BUSINESS_CITY: str = ""
    BUSINESS_STATE: str = ""
    BUSINESS_ZIP: str = ""
    BUSINESS_COUNTRY: str = "US"
    BUSINESS_PHONE: str = ""
    BUSINESS_EMAIL: str = ""

    # Почта
    RESEND_API_KEY: str = ""
    FROM_EMAIL: str = "orders@yourdomain.com"

    # Магазин
    STORE_NAME: str = "LuxeMarket"
    APP_URL: str = "http://localhost:3000"
    CORS_ORIGINS_STR: str = Field(default="", alias="CORS_ORIGINS")

    # Цены и доставка
    TAX_RATE: Decimal = Decimal("0.08")
    FREE_SHIPPING_THRESHOLD: Decimal = Decimal("50.00")
    FLAT_RATE_SHIPPING: Decimal = Decimal("5.99")

    @property
    def ADMIN_USER_IDS(self) -> List[str]:
        return [admin_id.strip() for admin_id in self.ADMIN_USER_IDS_STR.split(',') if admin_id.strip()]

    @property
    def CORS_ORIGINS(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS_STR.split(',') if origin.strip()]

    @property
    def REDIS_URL(self) -> str | None:
        if not self.REDIS_HOST:
            return None
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}"

    @property
    def DATABASE_URL(self) -> str:
        return f"postgresql+psycopg2://{self.DATABASE_USER}:{self.DATABASE_PASSWORD}@{self.DATABASE_HOST}:{self.DATABASE_PORT}/{self.DATABASE_NAME}"

    model_config = SettingsConfigDict(env_file=".env", populate_by_name=True)

settings = Settings()
