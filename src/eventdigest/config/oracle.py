"""Text-generation oracle configuration values."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from .env import env_int, env_list, require_env_vars
from .http_resilience import RateLimit, ResilienceConfig

ORACLE_BASE_URL = "https://api.anthropic.com"
ORACLE_MODEL_ID = "claude-3-5-sonnet-latest"
ORACLE_API_VERSION = "2023-06-01"
ORACLE_TIMEOUT_SECONDS = 60.0
ORACLE_MAX_TOKENS = 4096


@dataclass(frozen=True, slots=True)
class Personalization:
    """Names the prompts use to give the oracle household context."""

    child_name: str | None = None
    parent_names: tuple[str, ...] = ()
    family_names_to_flag: tuple[str, ...] = ()


@dataclass(frozen=True)
class OracleConfig:
    """Holds the oracle API configuration values."""

    api_key: str
    model_id: str
    resilience: ResilienceConfig
    api_version: str = ORACLE_API_VERSION
    max_tokens: int = ORACLE_MAX_TOKENS
    personalization: Personalization = field(default_factory=Personalization)


def get_personalization() -> Personalization:
    child_name = os.getenv("CHILD_NAME")
    return Personalization(
        child_name=child_name.strip() if child_name and child_name.strip() else None,
        parent_names=env_list("PARENT_NAMES"),
        family_names_to_flag=env_list("MESSAGE_FAMILY_NAMES_TO_FLAG"),
    )


def get_oracle_config(*, resilience: ResilienceConfig | None = None) -> OracleConfig:
    values = require_env_vars(("ORACLE_API_KEY",))
    base_url = os.getenv("ORACLE_BASE_URL") or ORACLE_BASE_URL
    return OracleConfig(
        api_key=values["ORACLE_API_KEY"],
        model_id=os.getenv("ORACLE_MODEL_ID") or ORACLE_MODEL_ID,
        max_tokens=env_int("ORACLE_MAX_TOKENS", ORACLE_MAX_TOKENS, minimum=1),
        personalization=get_personalization(),
        resilience=resilience
        or ResilienceConfig(
            name="oracle",
            base_url=base_url,
            timeout_seconds=ORACLE_TIMEOUT_SECONDS,
            ratelimit=RateLimit(max_calls=5, per_seconds=1.0),
        ),
    )
