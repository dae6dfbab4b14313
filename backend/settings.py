from __future__ import annotations

import os

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    database_url: str = Field(..., alias="DATABASE_URL")
    session_secret: str = Field(..., alias="SESSION_SECRET")

    session_max_age_days: int = Field(30, alias="SESSION_MAX_AGE_DAYS")
    jwt_algorithm: str = Field("HS256", alias="JWT_ALGORITHM")
    password_hash_rounds: int = Field(12, alias="PASSWORD_HASH_ROUNDS")

    default_task_color: str = Field("#0ea5e9", alias="DEFAULT_TASK_COLOR")
    log_level: str = Field("INFO", alias="BACKEND_LOG_LEVEL")

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def session_max_age_seconds(self) -> int:
        return int(self.session_max_age_days) * 24 * 60 * 60


_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    global _settings
    _settings = None


# For local dev convenience only.
if os.getenv("BACKEND_DEBUG_SETTINGS"):
    print(get_settings())
