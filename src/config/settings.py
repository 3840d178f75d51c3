"""Global configuration and constants for the tournament ingestion pipeline."""

from __future__ import annotations

import os
from typing import Final, Optional


def env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() not in {"0", "false", "no", "off"}


def _env_int(name: str, default: Optional[int]) -> Optional[int]:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


DEFAULT_USER_AGENT: Final = "tournament-finder/1.0 (+https://github.com/tournament-finder)"
DEFAULT_TIMEOUT: Final = 15  # seconds
DEFAULT_RETRIES: Final = _env_int("TTF_FETCH_RETRIES", 0) or 0
DEFAULT_BACKOFF_FACTOR: Final = 0.6

DATA_DIR: Final = os.environ.get("TTF_DATA_DIR", "data")
CACHE_PATH: Final = os.environ.get("TTF_CACHE_PATH", os.path.join(DATA_DIR, "geocache.sqlite3"))
CACHE_MEMORY: Final = env_flag("TTF_CACHE_MEMORY", True)

LOG_LEVEL: Final = os.environ.get("TTF_LOG_LEVEL", "INFO")
LOG_FILE: Final = os.environ.get("TTF_LOG_FILE") or None

# None means one task per source
MAX_CONCURRENT_SOURCES: Final = _env_int("TTF_MAX_CONCURRENT_SOURCES", None)

GEOCODER_URL: Final = "https://nominatim.openstreetmap.org/search"
GEOCODER_LIMIT: Final = 3
GEOCODER_LANGUAGE: Final = "de"

DATE_FORMAT: Final = "%d.%m.%Y"
DEFAULT_WINDOW_DAYS: Final = 14

AUTO_CLEANUP_MIN_TOTAL: Final = 1000
AUTO_CLEANUP_MIN_PERMANENT: Final = 100

# Legacy form-post request constants (0=No-LK-Status, 1=LK-Status, 2=DTB-Status)
LEGACY_VALUATION_STATE: Final = "1"
LEGACY_REGION: Final = "DE"

# Modern query-parameter request constants
MODERN_FED_RANK_VALUATION: Final = "true"
MODERN_FIRST_RESULT: Final = "0"
MODERN_MAX_RESULTS: Final = "100"
