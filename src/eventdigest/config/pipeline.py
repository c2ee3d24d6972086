"""Defaults for extraction and digest generation runs."""

from __future__ import annotations

import os
from dataclasses import dataclass
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .env import env_bool, env_int
from .errors import ConfigurationError

DEFAULT_WINDOW_DAYS = 14
DEFAULT_HORIZON_DAYS = 14
DEFAULT_RUN_BUDGET_SECONDS = 840
DEFAULT_TIMEZONE = "UTC"
DEFAULT_GENERATE_IF_NOTHING_NEW = False


@dataclass(frozen=True, slots=True)
class PipelineConfig:
    window_days: int = DEFAULT_WINDOW_DAYS
    horizon_days: int = DEFAULT_HORIZON_DAYS
    run_budget_seconds: int = DEFAULT_RUN_BUDGET_SECONDS
    timezone: str = DEFAULT_TIMEZONE
    generate_if_nothing_new: bool = DEFAULT_GENERATE_IF_NOTHING_NEW

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


def get_pipeline_config() -> PipelineConfig:
    timezone = os.getenv("EVENTDIGEST_TIMEZONE") or DEFAULT_TIMEZONE
    try:
        ZoneInfo(timezone)
    except ZoneInfoNotFoundError as exc:
        raise ConfigurationError(f"Unknown timezone: {timezone}") from exc
    return PipelineConfig(
        window_days=env_int("EVENTDIGEST_WINDOW_DAYS", DEFAULT_WINDOW_DAYS, minimum=1),
        horizon_days=env_int("EVENTDIGEST_HORIZON_DAYS", DEFAULT_HORIZON_DAYS, minimum=1),
        run_budget_seconds=env_int(
            "EVENTDIGEST_RUN_BUDGET_SECONDS", DEFAULT_RUN_BUDGET_SECONDS, minimum=1
        ),
        timezone=timezone,
        generate_if_nothing_new=env_bool(
            "EVENTDIGEST_GENERATE_IF_NOTHING_NEW", default=DEFAULT_GENERATE_IF_NOTHING_NEW
        ),
    )
