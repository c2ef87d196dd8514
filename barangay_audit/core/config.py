from __future__ import annotations

from datetime import timedelta
from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", extra="ignore", populate_by_name=True
    )

    app_name: str = "Barangay Audit Trail"
    env: str = "dev"
    mongo_uri: str = Field("mongodb://localhost:27017", alias="MONGO_URI")
    mongo_db: str = Field("barangay", alias="MONGO_DB")

    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(True, alias="LOG_JSON")

    audit_cleanup_enabled: bool = Field(True, alias="AUDIT_CLEANUP_ENABLED")
    audit_cleanup_interval_hours: int = Field(
        24, alias="AUDIT_CLEANUP_INTERVAL_HOURS"
    )
    audit_retention_days: int = Field(90, alias="AUDIT_RETENTION_DAYS")
    audit_cleanup_startup_delay_seconds: float = Field(
        10, alias="AUDIT_CLEANUP_STARTUP_DELAY_SECONDS"
    )

    activity_feed_limit: int = Field(40, alias="ACTIVITY_FEED_LIMIT")
    activity_feed_size: int = Field(10, alias="ACTIVITY_FEED_SIZE")

    cors_origins: List[str] = Field(
        default_factory=lambda: [
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ],
        alias="CORS_ORIGINS",
    )

    @property
    def cleanup_interval(self) -> timedelta:
        # at least one hour between sweeps
        return timedelta(hours=max(1, self.audit_cleanup_interval_hours))

    @property
    def retention(self) -> timedelta:
        # at least one day of history
        return timedelta(days=max(1, self.audit_retention_days))


@lru_cache
def get_settings() -> Settings:
    return Settings()
