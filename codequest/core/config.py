"""
Configuration helpers for the CodeQuest session core.

Settings are read from environment variables once and cached, so services and
repositories never fetch os.environ directly. Call ``get_settings.cache_clear()``
to force a re-read (tests do this after monkeypatching the environment).
"""

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
import os

DEFAULT_DATA_FILE = Path(__file__).resolve().parents[1] / "data.json"


@dataclass(frozen=True)
class Settings:
    """Typed view of environment variables."""

    app_env: str
    log_level: str
    storage_backend: str
    data_file: Path
    database_url: str
    simulated_latency_seconds: float


@lru_cache
def get_settings() -> Settings:
    """Read the current environment and build a Settings instance."""
    def _float(value: str | None, default: float = 0.0) -> float:
        try:
            return max(0.0, float(value))
        except (TypeError, ValueError):
            return default

    backend = (os.getenv("STORAGE_BACKEND") or "json").strip().lower()
    data_file = (os.getenv("DATA_FILE") or "").strip()

    return Settings(
        app_env=(os.getenv("APP_ENV") or "dev").lower(),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
        storage_backend=backend if backend in {"json", "sql"} else "json",
        data_file=Path(data_file) if data_file else DEFAULT_DATA_FILE,
        database_url=os.getenv("DATABASE_URL", ""),
        simulated_latency_seconds=_float(os.getenv("SIMULATED_LATENCY_SECONDS"), 1.0),
    )
