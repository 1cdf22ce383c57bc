"""
Environment Configuration

Reads every option the catalogue engine recognizes from environment variables
(optionally loaded from a .env file) into a single settings object that is
built once at startup and handed to the components that need it.
"""

import logging
import math
import os
from dataclasses import dataclass, field
from typing import Any, List, Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

PAGINATION_MODES = ("auto", "item", "page")
DEFAULT_SEARCH_CACHE_TTL_MS = 60_000


def to_positive_int(value: Any, fallback: int) -> int:
    """Return value floored to an int when it is a finite number > 0, else fallback."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return fallback
    if not math.isfinite(number) or number <= 0:
        return fallback
    return max(1, math.floor(number))


def clamp_int(value: Any, default: int, minimum: int = 1, maximum: Optional[int] = None) -> int:
    """
    Clamp a user supplied numeric value for the HTTP surface.

    Non-numeric input falls back to default; numbers are floored and bounded.
    """
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(number):
        return default
    result = max(minimum, math.floor(number))
    if maximum is not None:
        result = min(maximum, result)
    return result


def parse_boolean(value: Any) -> bool:
    """Accept 1/true/yes/y (case-insensitive) as true."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "y")


def _env(name: str, default: str = "") -> str:
    return (os.getenv(name) or default).strip()


def _parse_cache_ttl_ms(raw: str) -> int:
    try:
        parsed = float(raw)
    except (TypeError, ValueError):
        return DEFAULT_SEARCH_CACHE_TTL_MS
    if math.isfinite(parsed) and parsed >= 0:
        return int(parsed)
    return DEFAULT_SEARCH_CACHE_TTL_MS


@dataclass
class FarnellSettings:
    """Upstream (Farnell product search API) connection settings"""
    base_url: str = ""
    api_key: str = ""
    store_id: str = ""
    version: str = "1.4"
    result_filter: str = ""
    timeout_seconds: int = 30


@dataclass
class CatalogSyncSettings:
    """All configuration consumed by the catalogue engine."""
    database_url: str = "sqlite:///catalog_sync.db"
    farnell: FarnellSettings = field(default_factory=FarnellSettings)

    # Bulk sync
    sync_term: str = "any:raspberry pi"
    batch_size: int = 50
    page_size: int = 50
    page_delay_ms: int = 250
    batch_delay_ms: int = 100
    target_total: int = 150
    max_pages: int = 10
    max_total: int = 150
    pagination_mode: str = "auto"
    sync_interval_minutes: int = 360
    sync_enabled: bool = True

    # Search cache
    search_cache_ttl_ms: int = DEFAULT_SEARCH_CACHE_TTL_MS
    search_cache_max_size: int = 500

    cors_origins: List[str] = field(default_factory=list)

    @property
    def page_delay_seconds(self) -> float:
        return self.page_delay_ms / 1000.0

    @property
    def batch_delay_seconds(self) -> float:
        return self.batch_delay_ms / 1000.0

    @classmethod
    def from_env(cls, load_dotenv_file: bool = True) -> "CatalogSyncSettings":
        """Build settings from the process environment."""
        if load_dotenv_file:
            load_dotenv()

        farnell = FarnellSettings(
            base_url=_env("SUPPLIER_FARNELL_BASE_URL"),
            api_key=_env("SUPPLIER_FARNELL_API_KEY"),
            store_id=_env("SUPPLIER_FARNELL_STORE_ID"),
            version=_env("SUPPLIER_FARNELL_VERSION", "1.4"),
            result_filter=_env("SUPPLIER_FARNELL_FILTER"),
            timeout_seconds=to_positive_int(os.getenv("SUPPLIER_FARNELL_TIMEOUT_SECONDS"), 30),
        )

        target_total = to_positive_int(os.getenv("CATALOG_SYNC_TARGET_TOTAL"), 150)

        pagination_mode = _env("CATALOG_SYNC_PAGINATION_MODE", "auto").lower()
        if pagination_mode not in PAGINATION_MODES:
            logger.warning(f"Unknown CATALOG_SYNC_PAGINATION_MODE={pagination_mode!r}, using 'auto'")
            pagination_mode = "auto"

        cors_origins = [origin.strip() for origin in _env("CORS_ORIGIN").split(",") if origin.strip()]

        return cls(
            database_url=_env("DATABASE_URL", "sqlite:///catalog_sync.db"),
            farnell=farnell,
            sync_term=_env("CATALOG_SYNC_FARNELL_TERM", "any:raspberry pi"),
            batch_size=to_positive_int(os.getenv("CATALOG_SYNC_BATCH_SIZE"), 50),
            page_size=to_positive_int(os.getenv("CATALOG_SYNC_PAGE_SIZE"), 50),
            page_delay_ms=to_positive_int(os.getenv("CATALOG_SYNC_PAGE_DELAY_MS"), 250),
            batch_delay_ms=to_positive_int(os.getenv("CATALOG_SYNC_BATCH_DELAY_MS"), 100),
            target_total=target_total,
            max_pages=to_positive_int(os.getenv("CATALOG_SYNC_MAX_PAGES"), 10),
            max_total=to_positive_int(os.getenv("CATALOG_SYNC_MAX_TOTAL"), target_total),
            pagination_mode=pagination_mode,
            sync_interval_minutes=to_positive_int(os.getenv("CATALOG_SYNC_INTERVAL_MINUTES"), 360),
            sync_enabled=parse_boolean(_env("CATALOG_SYNC_ENABLED", "true")),
            search_cache_ttl_ms=_parse_cache_ttl_ms(_env("SEARCH_CACHE_TTL_MS", str(DEFAULT_SEARCH_CACHE_TTL_MS))),
            search_cache_max_size=to_positive_int(os.getenv("SEARCH_CACHE_MAX_SIZE"), 500),
            cors_origins=cors_origins,
        )
