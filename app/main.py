"""FastAPI application entrypoint."""

import logging

from fastapi import FastAPI
from prometheus_client import make_asgi_app

from app.core.config import get_settings
from app.core.exception_mapper import register_error_handlers
from app.core.identity import get_server_id
from app.core.logging import configure_logging

logger = logging.getLogger(__name__)

settings = get_settings()
configure_logging(settings.log_level, use_json=settings.log_json)

app = FastAPI(title="API error translation")
register_error_handlers(app)
app.mount(settings.metrics_path, make_asgi_app())

logger.info("Serving as %s with settings %s", get_server_id(), settings.safe_for_logging())


@app.get("/health")
def health() -> dict[str, str]:
    """Health check stub endpoint for service readiness."""
    return {"status": "ok", "instance": get_server_id()}
