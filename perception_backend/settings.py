"""
Settings: Environment-Driven Configuration

Values are read from the process environment (and a `.env` file at the
project root, if present). Nothing here is persisted.

Environment variables:
- PERCEPTION_ORIGIN: origin this service runs under (default fetch policy)
- PERCEPTION_HOST_URL: host page whose embedded artifacts are loaded on init
- PERCEPTION_FETCH_TIMEOUT_S: HTTP timeout for document fetches
- PERCEPTION_USER_AGENT: User-Agent sent with every fetch
- PERCEPTION_CACHE_MAX_ENTRIES: page metadata cache capacity (0 = unbounded)
- PERCEPTION_CACHE_TTL_S: page metadata cache TTL in seconds (0 = no expiry)
- PERCEPTION_LOG_FILE: JSON log file path (empty disables file logging)
- PERCEPTION_CORS_ORIGINS: comma separated list of allowed CORS origins
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional
import logging
import os

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Load .env from project root (parent of perception_backend/)
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(env_path)

VERSION = "0.3.0"


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"[SETTINGS] Ignoring non-integer {name}={raw!r}, using {default}")
        return default


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"[SETTINGS] Ignoring non-numeric {name}={raw!r}, using {default}")
        return default


@dataclass(frozen=True)
class Settings:
    """
    Runtime configuration for the perception backend.

    Attributes:
        origin: Origin the service is running under, e.g. "https://example.com".
                Empty means the default fetch policy allows nothing.
        host_url: Page whose embedded artifacts are loaded by MeaningMaker.init()
        fetch_timeout_s: Timeout for each document fetch
        user_agent: User-Agent header for outgoing requests
        cache_max_entries: Page metadata cache capacity, None for unbounded
        cache_ttl_s: Page metadata cache TTL, None for no expiry
        log_file: Path of the rotating JSON log, None to disable
        cors_origins: Origins allowed by the CORS middleware
    """
    origin: str = ""
    host_url: str = ""
    fetch_timeout_s: float = 10.0
    user_agent: str = f"perception-backend/{VERSION}"
    cache_max_entries: Optional[int] = None
    cache_ttl_s: Optional[float] = None
    log_file: Optional[str] = "perception_backend.log"
    cors_origins: List[str] = field(
        default_factory=lambda: ["http://localhost:3000", "http://localhost:5173"]
    )

    @staticmethod
    def from_env() -> "Settings":
        """Build Settings from environment variables."""
        max_entries = _int_env("PERCEPTION_CACHE_MAX_ENTRIES", 0)
        ttl = _float_env("PERCEPTION_CACHE_TTL_S", 0)
        cors_raw = os.getenv("PERCEPTION_CORS_ORIGINS", "http://localhost:3000,http://localhost:5173")

        return Settings(
            origin=os.getenv("PERCEPTION_ORIGIN", "").rstrip("/"),
            host_url=os.getenv("PERCEPTION_HOST_URL", ""),
            fetch_timeout_s=_float_env("PERCEPTION_FETCH_TIMEOUT_S", 10.0),
            user_agent=os.getenv("PERCEPTION_USER_AGENT", f"perception-backend/{VERSION}"),
            cache_max_entries=max_entries if max_entries > 0 else None,
            cache_ttl_s=ttl if ttl > 0 else None,
            log_file=os.getenv("PERCEPTION_LOG_FILE", "perception_backend.log") or None,
            cors_origins=[o.strip() for o in cors_raw.split(",") if o.strip()],
        )


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def reset_settings() -> None:
    """Forget cached settings so the next get_settings() re-reads the environment."""
    global _settings
    _settings = None
