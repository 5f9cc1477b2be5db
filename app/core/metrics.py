"""Prometheus counter for translated request failures."""

from __future__ import annotations

from functools import lru_cache

from prometheus_client import REGISTRY
from prometheus_client import CollectorRegistry
from prometheus_client import Counter

from app.core.config import DEFAULT_ERROR_METRIC_NAME
from app.core.config import get_settings

STATUS_LABEL = "status"


class ErrorMetrics:
    """Single emission point for the error counter.

    Every increment carries the resolved HTTP status, as a string, as its only
    label.
    """

    def __init__(
        self,
        *,
        name: str = DEFAULT_ERROR_METRIC_NAME,
        registry: CollectorRegistry = REGISTRY,
    ) -> None:
        self.name = name.removesuffix("_total")
        self.registry = registry
        self._counter = Counter(
            self.name,
            "Request failures translated into error responses, by HTTP status",
            [STATUS_LABEL],
            registry=registry,
        )

    def error(self, status_code: int) -> None:
        self._counter.labels(**{STATUS_LABEL: str(status_code)}).inc()

    def count(self, status_code: int) -> float:
        """Return the current counter value for ``status_code``."""
        value = self.registry.get_sample_value(
            f"{self.name}_total",
            {STATUS_LABEL: str(status_code)},
        )
        return value or 0.0


@lru_cache(maxsize=1)
def get_error_metrics() -> ErrorMetrics:
    """Return the process-wide counter registered on the default registry."""
    return ErrorMetrics(name=get_settings().error_metric_name)
