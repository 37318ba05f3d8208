# happytails/core/config.py
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized application settings loaded from environment.

    Required env vars (.env):
      - JWT_SECRET (HS256 signing secret for access and checkout tokens)

    Optional:
      - DATABASE_URL (defaults to a local SQLite file)
      - LOG_DIR (enables the daily rotating error log)
      - API_BASE_URL (used by the async clients in happytails.clients)
    """

    PROJECT_NAME: str = "Happy Tails API"
    API_PREFIX: str = "/api"

    DATABASE_URL: str = "sqlite:///./happytails.db"

    # JWT (access tokens + checkout session tokens)
    JWT_SECRET: str
    JWT_ALG: str = "HS256"
    ACCESS_TOKEN_MINUTES: int = 60 * 24
    CHECKOUT_TOKEN_MINUTES: int = 15

    CORS_ORIGINS: list[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:3000",
    ]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str | None = None

    # Booking flow
    BOOKING_TIMEOUT_SECONDS: int = 10 * 60
    BOOKING_REDIRECT_DELAY_SECONDS: float = 3.0

    # Simulated payment gateway
    PAYMENT_SUCCESS_RATE: float = 0.9
    PAYMENT_LATENCY_SECONDS: float = 2.0

    # Async clients
    API_BASE_URL: str = "http://localhost:8000/api"
    HTTP_TIMEOUT_SECONDS: float = 10.0

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings loader.
    Ensures we don't re-parse .env on every import / request.
    """
    return Settings()
