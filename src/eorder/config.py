"""Runtime configuration via environment variables.

Provides type-safe settings loading using pydantic-settings.
Environment variables can be loaded from a .env file.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Settings for the electronic order service boundary and logging.

    Environment Variables:
        SERVICE_BASE_URL: Base URL of the electronic order backend
        SERVICE_TIMEOUT_SECONDS: Per-request timeout for backend calls
        LOG_LEVEL: Logging level (default INFO)
        LOG_JSON: Emit JSON log lines (default True)
        DRAFT_STATUS: Order status sent on save (default "D")
        SUBMIT_STATUS: Order status sent on explicit submission (default "O")
        NOT_USED_LABEL: Placeholder sent for unselected order/transaction types
    """

    # Backend
    SERVICE_BASE_URL: str = "http://localhost:8080/api/electronic-order"
    SERVICE_TIMEOUT_SECONDS: float = 30.0

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    # Wire markers
    DRAFT_STATUS: str = "D"
    SUBMIT_STATUS: str = "O"
    NOT_USED_LABEL: str = "Not Used"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance.

    Call get_settings.cache_clear() to reload settings.
    """
    return Settings()
