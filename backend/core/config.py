"""
Environment-driven settings for the chart service.

Only the HTTP layer reads these; the pure builders keep their own literal
defaults so they behave the same with or without a `.env` file.
"""

from __future__ import annotations

import os
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()


def _env(key: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(key)
    if value is None:
        return default
    return value.strip() or default


def _env_bool(key: str, default: bool = False) -> bool:
    value = _env(key)
    if value is None:
        return default
    return value.lower() in ("1", "true", "yes", "on")


def _env_list(key: str, default: str) -> List[str]:
    raw = _env(key, default) or default
    return [part.strip() for part in raw.split(",") if part.strip()]


DEFAULT_METRIC_KEY: str = _env("CHARTS_DEFAULT_METRIC", "purchases") or "purchases"
DEFAULT_SORT: str = (_env("CHARTS_DEFAULT_SORT", "none") or "none").lower()
RECORDS_KEY: str = _env("CHARTS_RECORDS_KEY", "passengers") or "passengers"
CATEGORY_FIELD: str = _env("CHARTS_CATEGORY_FIELD", "type") or "type"
CORS_ORIGINS: List[str] = _env_list("CHARTS_CORS_ORIGINS", "*")
LOG_PAYLOADS: bool = _env_bool("CHARTS_LOG_PAYLOADS", False)
