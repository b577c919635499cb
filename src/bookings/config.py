"""Runtime configuration read from environment variables."""

import os
from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in _TRUE_VALUES


class BookingSettings(BaseModel):
    """Settings for the booking core and its adapters."""

    model_config = ConfigDict(frozen=True)

    environment: str = "dev"
    table_prefix: str = Field(default="booking-dev", description="DynamoDB table name prefix")
    storage: Literal["dynamodb", "memory"] = "dynamodb"
    pending_expiry_hours: float = Field(default=24, gt=0)
    sweep_interval_seconds: float = Field(default=3600, gt=0)
    sweep_enabled: bool = False
    auto_complete_stays: bool = True
    max_stay_nights: int = Field(default=90, ge=1)
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "BookingSettings":
        """Build settings from the process environment.

        Environment variables:
            ENVIRONMENT, DYNAMODB_TABLE_PREFIX, BOOKINGS_STORAGE,
            PENDING_EXPIRY_HOURS, EXPIRY_SWEEP_INTERVAL_SECONDS,
            EXPIRY_SWEEP_ENABLED, AUTO_COMPLETE_STAYS, MAX_STAY_NIGHTS, LOG_LEVEL
        """
        environment = os.getenv("ENVIRONMENT", "dev")
        return cls(
            environment=environment,
            table_prefix=os.getenv("DYNAMODB_TABLE_PREFIX", f"booking-{environment}"),
            storage=os.getenv("BOOKINGS_STORAGE", "dynamodb"),
            pending_expiry_hours=float(os.getenv("PENDING_EXPIRY_HOURS", "24")),
            sweep_interval_seconds=float(os.getenv("EXPIRY_SWEEP_INTERVAL_SECONDS", "3600")),
            sweep_enabled=_env_bool("EXPIRY_SWEEP_ENABLED", False),
            auto_complete_stays=_env_bool("AUTO_COMPLETE_STAYS", True),
            max_stay_nights=int(os.getenv("MAX_STAY_NIGHTS", "90")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )


@lru_cache
def get_settings() -> BookingSettings:
    """Get cached settings built from the environment."""
    return BookingSettings.from_env()


def reset_settings() -> None:
    """Drop cached settings (for testing only)."""
    get_settings.cache_clear()
