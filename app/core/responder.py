"""Build error responses for failures that can still be answered."""

from __future__ import annotations

from collections.abc import Sequence
import logging

from fastapi import Request
from fastapi import status
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.errors import ApplicationError
from app.core.metrics import ErrorMetrics
from app.core.status_mapping import StatusMapping
from app.schemas.error import ErrorResponse
from app.schemas.error import ValidationErrorDetail

logger = logging.getLogger(__name__)


def failure_message(exc: BaseException) -> str | None:
    """Return the human-readable message carried by ``exc``, if any."""
    if isinstance(exc, ApplicationError):
        return exc.message
    if isinstance(exc, StarletteHTTPException):
        return exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    if not exc.args:
        return None
    try:
        return str(exc)
    except Exception:
        return None


class Responder:
    """Log, count and render a failure as an ``ErrorResponse``."""

    def __init__(
        self,
        *,
        status_mapping: StatusMapping,
        metrics: ErrorMetrics,
        instance: str,
    ) -> None:
        self.status_mapping = status_mapping
        self.metrics = metrics
        self.instance = instance

    def log_failure(self, request: Request, exc: BaseException) -> None:
        logger.error(
            "Error %s url: '%s'",
            type(exc).__name__,
            request.url.path,
            exc_info=(type(exc), exc, exc.__traceback__),
        )

    def respond(
        self,
        request: Request,
        exc: BaseException,
        *,
        status_code: int | None = None,
        message: str | None = None,
        validation_errors: Sequence[ValidationErrorDetail] | None = None,
    ) -> JSONResponse:
        """Handle a responsive failure.

        ``status_code`` and ``message`` override the values resolved from the
        status mapping and the exception; the retry hint always comes from the
        failure kind.
        """
        self.log_failure(request, exc)

        resolution = self.status_mapping.resolve(exc)
        resolved_status = resolution.status if status_code is None else status_code
        payload = ErrorResponse(
            instance=self.instance,
            status=resolved_status,
            message=failure_message(exc) if message is None else message,
            retryable=resolution.retryable,
            validation_errors=list(validation_errors) if validation_errors is not None else None,
        )

        response = JSONResponse(status_code=resolved_status, content=payload.to_wire())
        self.metrics.error(resolved_status)
        return response

    def fallback(self) -> JSONResponse:
        """Render a plain internal server error when handling itself failed."""
        payload = ErrorResponse(instance=self.instance, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
        response = JSONResponse(status_code=payload.status, content=payload.to_wire())
        self.metrics.error(payload.status)
        return response
