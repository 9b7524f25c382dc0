"""Environment driven settings for the almanac engine and its HTTP service."""

from __future__ import annotations

import os
from typing import List, Optional

DEFAULT_CALCULATOR = "MEEUS"
DEFAULT_CORS_ORIGINS = ("http://localhost:3000",)


def default_calculator_name() -> str:
    """Return the calculator used when callers do not name one.

    ``ALMANAC_CALCULATOR`` overrides the built-in default.
    """

    override = os.environ.get("ALMANAC_CALCULATOR", "").strip()
    return override.upper() if override else DEFAULT_CALCULATOR


def parallel_jobs() -> Optional[int]:
    """Return the worker count for year tables or ``None`` for the joblib default."""

    raw = os.environ.get("ALMANAC_JOBS")
    if not raw:
        return None
    try:
        jobs = int(raw)
    except ValueError as exc:
        raise ValueError(f"ALMANAC_JOBS must be an integer: {raw!r}") from exc
    if jobs == 0:
        raise ValueError("ALMANAC_JOBS must not be zero")
    return jobs


def cors_origins() -> List[str]:
    raw = os.environ.get("ALMANAC_CORS_ORIGINS")
    if not raw:
        return list(DEFAULT_CORS_ORIGINS)
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


def log_level() -> str:
    return os.environ.get("ALMANAC_LOG_LEVEL", "INFO").upper()
