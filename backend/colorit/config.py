"""
Colorit Configuration
Manages environment variables and defaults for the catalog engine and API.
"""
import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()

_DEFAULT_RESOURCE_DIR = str(Path(__file__).resolve().parent / "resources")


def _split_ids(raw: str) -> List[str]:
    return [part.strip() for part in raw.split(",") if part.strip()]


class Config:
    """Configuration class for Colorit services."""

    # Logging
    LOG_LEVEL: str = os.environ.get("COLORIT_LOG_LEVEL", "INFO")

    # Catalog resources
    RESOURCE_DIR: str = os.environ.get("COLORIT_RESOURCE_DIR", _DEFAULT_RESOURCE_DIR)
    PRELOAD_CATALOGS: List[str] = _split_ids(os.environ.get("COLORIT_PRELOAD_CATALOGS", "generic"))
    ACTIVE_CATALOGS: List[str] = _split_ids(os.environ.get("COLORIT_ACTIVE_CATALOGS", "generic"))
    LOADER_MAX_WORKERS: int = int(os.environ.get("COLORIT_LOADER_MAX_WORKERS", "4"))

    # Caches
    COLOR_CACHE_SIZE: int = int(os.environ.get("COLORIT_COLOR_CACHE_SIZE", "50000"))
    MATCH_MEMO_SIZE: int = int(os.environ.get("COLORIT_MATCH_MEMO_SIZE", "4096"))

    # Search (milliseconds)
    SEARCH_DEBOUNCE_MS: int = int(os.environ.get("COLORIT_SEARCH_DEBOUNCE_MS", "120"))
    SEARCH_TIMEOUT_MS: int = int(os.environ.get("COLORIT_SEARCH_TIMEOUT_MS", "2000"))
    SEARCH_MAX_LIMIT: int = int(os.environ.get("COLORIT_SEARCH_MAX_LIMIT", "500"))

    # Observability
    METRICS_ENABLED: bool = bool(int(os.environ.get("COLORIT_METRICS_ENABLED", "1")))

    # Precision scale used by camera sampling and palette rows
    MAX_RGB_DISTANCE: float = 441.7

    @classmethod
    def validate_limit(cls, limit: Optional[int]) -> bool:
        """Validate a search result limit."""
        return limit is None or 1 <= limit <= cls.SEARCH_MAX_LIMIT

    @classmethod
    def validate_channel(cls, value: int) -> bool:
        """Validate an 8-bit color channel."""
        return 0 <= value <= 255


# Global config instance
config = Config()
