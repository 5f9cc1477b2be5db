"""Shared pytest fixtures for the error translation test suites."""

from collections.abc import Generator
from pathlib import Path
import sys

import pytest
from fastapi.testclient import TestClient
from prometheus_client import CollectorRegistry

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.core.metrics import ErrorMetrics  # noqa: E402
from app.core.status_mapping import StatusMapping  # noqa: E402
from app.core.status_mapping import build_default_status_mapping  # noqa: E402


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """Provide a test client for the application entrypoint."""
    from app.main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def error_metrics() -> ErrorMetrics:
    """Error counter bound to a private registry."""
    return ErrorMetrics(registry=CollectorRegistry())


@pytest.fixture
def status_mapping() -> StatusMapping:
    return build_default_status_mapping()
