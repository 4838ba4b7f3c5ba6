from decimal import Decimal
from functools import lru_cache
from typing import Literal, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global application settings."""

    # Application
    ENVIRONMENT: Literal["local", "development", "production"] = "local"
    LOG_LEVEL: str = "INFO"
    TIMEZONE: str = "Africa/Johannesburg"
    BRAND_NAME: str = "Kasi Flavors"
    BASE_URL: str = "http://localhost:3000"

    # Database
    DATABASE_URL: str
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 10
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 1800

    # Auth
    # Placeholder defaults keep local/test runs from failing. Real deployments
    # should override via env.
    AUTH_JWT_SECRET: str = "test-jwt-secret"
    AUTH_JWT_ALGORITHM: str = "HS256"

    # Redis (ARQ notification queue, rate limiting)
    REDIS_URL: str = "redis://localhost:6379/0"
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_STORAGE_URL: str = "memory://"
    CODE_CONFIRM_RATE_LIMIT: str = "10/minute"

    # Ordering rules
    CURRENCY: str = "ZAR"
    MIN_ITEM_QUANTITY: int = 1
    MAX_ITEM_QUANTITY: int = 5
    MAX_ITEMS_PER_ORDER: int = 10
    DEFAULT_PREP_TIME_MINUTES: int = 25

    # Billing
    PLATFORM_FEE_RATE: Decimal = Decimal("0.10")
    MIN_TOPUP_CENTS: int = 5000  # R50

    # Yoco payment gateway
    YOCO_API_URL: str = "https://payments.yoco.com/api"
    YOCO_SECRET_KEY: Optional[str] = None
    YOCO_WEBHOOK_SECRET: Optional[str] = None  # whsec_<base64>
    WEBHOOK_TOLERANCE_SECONDS: int = 180

    # Email (SMTP)
    SMTP_HOST: str = "smtp-relay.brevo.com"
    SMTP_PORT: int = 587
    SMTP_USERNAME: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    DEFAULT_FROM_EMAIL: str = "no-reply@kasiflavors.co.za"
    DEFAULT_FROM_NAME: str = "Kasi Flavors"
    EMAIL_REPLY_TO: Optional[str] = None

    # WhatsApp (Twilio)
    TWILIO_ACCOUNT_SID: Optional[str] = None
    TWILIO_AUTH_TOKEN: Optional[str] = None
    TWILIO_WHATSAPP_FROM: Optional[str] = None  # e.g. whatsapp:+14155238886

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    @field_validator("DATABASE_URL")
    @classmethod
    def assemble_db_connection(cls, v: Optional[str]) -> str:
        if isinstance(v, str):
            if v.startswith("postgresql://"):
                return v.replace("postgresql://", "postgresql+psycopg://", 1)
        return v


@lru_cache
def get_settings() -> Settings:
    """
    Return the global settings instance, cached.
    """
    return Settings()
