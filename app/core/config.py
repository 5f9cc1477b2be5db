"""Application configuration helpers."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
import os

DEFAULT_ERROR_METRIC_NAME = "api_errors"
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_METRICS_PATH = "/metrics"

_TRUTHY = frozenset({"1", "true", "yes", "y", "on"})


def _get_bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUTHY


def _get_optional_env(name: str) -> str | None:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    return raw.strip()


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the error translation layer."""

    server_id: str | None
    error_metric_name: str
    log_level: str
    log_json: bool
    metrics_path: str

    def safe_for_logging(self) -> dict[str, str | bool | None]:
        """Return settings suitable for a startup log line."""
        return {
            "server_id": self.server_id,
            "error_metric_name": self.error_metric_name,
            "log_level": self.log_level,
            "log_json": self.log_json,
            "metrics_path": self.metrics_path,
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from the environment."""
    return Settings(
        server_id=_get_optional_env("APP_SERVER_ID"),
        error_metric_name=os.getenv("APP_ERROR_METRIC_NAME", DEFAULT_ERROR_METRIC_NAME),
        log_level=os.getenv("APP_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper(),
        log_json=_get_bool_env("APP_LOG_JSON", False),
        metrics_path=os.getenv("APP_METRICS_PATH", DEFAULT_METRICS_PATH),
    )
