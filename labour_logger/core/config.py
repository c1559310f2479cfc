import os
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    env: str = Field(default="dev", description="Deployment environment")
    app_name: str = "Factory Labour Logger"
    data_path: Path = Field(default=Path("data/labour_store.json"), description="Local state file")
    api_base: str = Field(
        default="https://factory-labour-logger-backend.onrender.com",
        description="Remote entries API used until a base URL is saved in the store",
    )
    request_timeout: float = Field(default=10.0, description="Seconds before a remote call is abandoned")
    default_rounding_increment: int = 15
    default_daily_overtime_threshold: float = 8.0
    log_level: str = "WARNING"
    sentry_dsn: str | None = Field(default=None, description="Sentry DSN for error monitoring")

    model_config = SettingsConfigDict(env_prefix="LABOUR_", extra="ignore")

    @field_validator("api_base")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("default_rounding_increment")
    @classmethod
    def clamp_increment(cls, value: int) -> int:
        return max(1, value)


@lru_cache
def get_settings() -> Settings:
    return Settings(_env_file=get_settings_env_file())


def get_settings_env_file() -> str | None:
    """Resolve environment-specific env file if it exists."""
    env = os.getenv("LABOUR_ENV", "dev")
    env_file = BASE_DIR / f".env.{env}"
    default_file = BASE_DIR / ".env"
    if env_file.exists():
        return str(env_file)
    if default_file.exists():
        return str(default_file)
    return None
