"""Application configuration."""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Runtime settings, read from environment variables or ``.env``."""

    # Service
    APP_NAME: str = "Workflow Automation Runtime"
    APP_VERSION: str = "1.0.0"
    API_V1_PREFIX: str = "/api/v1"
    ENVIRONMENT: str = "development"  # development, testing, production
    DEBUG: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Storage
    DATABASE_URL: str = "sqlite+aiosqlite:///./workflows.db"
    SQLALCHEMY_ECHO: bool = False
    DB_POOL_SIZE: int = Field(default=10, ge=1)
    DB_MAX_OVERFLOW: int = Field(default=10, ge=0)

    # Browser clients of the management API
    ALLOWED_ORIGINS: str = "http://localhost:3000"
    ALLOW_CREDENTIALS: bool = True

    # Workflow runtime
    # Failed executions store an empty log list unless this is enabled.
    PRESERVE_LOGS_ON_FAILURE: bool = False
    WEBHOOK_STEP_TIMEOUT_SECONDS: float = Field(default=30.0, gt=0)
    MAX_STEP_DEPTH: int = Field(default=200, ge=1)

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"

    @field_validator("LOG_FORMAT")
    @classmethod
    def _known_log_format(cls, value: str) -> str:
        value = value.lower()
        if value not in ("json", "text"):
            raise ValueError("LOG_FORMAT must be 'json' or 'text'")
        return value

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def cors_origins_list(self) -> list[str]:
        """ALLOWED_ORIGINS split on commas."""
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Process-wide settings, loaded once."""
    return Settings()
