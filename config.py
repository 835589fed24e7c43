"""Application settings, read from environment variables or a .env file"""
from decimal import Decimal

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Front desk settings"""

    # Application
    APP_NAME: str = "Hotel Front Desk API"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Billing
    CURRENCY: str = "PHP"
    ADVANCE_PAYMENT_FRACTION: Decimal = Decimal("0.30")

    # Concurrency
    LOCK_TIMEOUT_SECONDS: float = 5.0

    # JWT
    SECRET_KEY: str = "change-me-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # Front desk login
    STAFF_USERNAME: str = "frontdesk"
    STAFF_PASSWORD: str = "password"

    model_config = ConfigDict(env_file=".env", case_sensitive=True)


settings = Settings()
