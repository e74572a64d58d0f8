"""Reconciler scheduling configuration."""

from typing import Optional

from croniter import croniter
from pydantic import BaseModel, Field, field_validator


class ReconcilerConfig(BaseModel):
    """Configuration for the periodic right-sizing sync."""

    heartbeat_interval_seconds: int = Field(ge=1, default=60)
    sync_schedule: Optional[str] = None     # Cron expression; overrides the heartbeat when set

    @field_validator("sync_schedule")
    @classmethod
    def _valid_cron(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not croniter.is_valid(value):
            raise ValueError(f"invalid cron expression: {value!r}")
        return value
