"""
Engine Configuration

Reads tunables from the environment (.env supported via python-dotenv).
"""

import os
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from .constants import (
    MIN_ACCURACY_THRESHOLD,
    MODEL_FETCH_TIMEOUT_SECONDS,
    WEIGHT_CACHE_TTL_SECONDS,
)

# Load env vars (if not already loaded)
load_dotenv()


class EngineSettings(BaseModel):
    """Runtime settings for the eligibility engine."""
    weight_cache_ttl_seconds: float = Field(default=WEIGHT_CACHE_TTL_SECONDS, gt=0)
    min_model_accuracy: float = Field(default=MIN_ACCURACY_THRESHOLD, ge=0.0, le=1.0)
    model_fetch_timeout_seconds: float = Field(default=MODEL_FETCH_TIMEOUT_SECONDS, gt=0)
    log_level: str = "INFO"


def _env(name: str, default):
    value = os.getenv(name)
    return default if value in (None, "") else value


@lru_cache()
def get_settings() -> EngineSettings:
    """Settings built once per process from environment variables."""
    return EngineSettings(
        weight_cache_ttl_seconds=_env("WEIGHT_CACHE_TTL_SECONDS", WEIGHT_CACHE_TTL_SECONDS),
        min_model_accuracy=_env("MIN_MODEL_ACCURACY", MIN_ACCURACY_THRESHOLD),
        model_fetch_timeout_seconds=_env("MODEL_FETCH_TIMEOUT_SECONDS", MODEL_FETCH_TIMEOUT_SECONDS),
        log_level=_env("LOG_LEVEL", "INFO").upper(),
    )
