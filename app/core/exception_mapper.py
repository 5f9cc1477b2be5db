"""Ordered exception handler chain and its FastAPI registration."""

from __future__ import annotations

from bisect import insort
from collections.abc import Callable
from dataclasses import dataclass
from dataclasses import field
from typing import Any
import logging

from fastapi import FastAPI
from fastapi import Request
from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response
from starlette.types import ASGIApp
from starlette.types import Message
from starlette.types import Receive
from starlette.types import Scope
from starlette.types import Send

from app.core.classifier import find_client_abort
from app.core.classifier import is_any_failure
from app.core.classifier import is_channel_closed
from app.core.classifier import is_client_abort
from app.core.errors import NoResourceFoundError
from app.core.identity import get_server_id
from app.core.metrics import ErrorMetrics
from app.core.metrics import get_error_metrics
from app.core.responder import Responder
from app.core.status_mapping import StatusMapping
from app.core.status_mapping import build_default_status_mapping
from app.schemas.error import ValidationErrorDetail

logger = logging.getLogger(__name__)

VALIDATION_ORDER = 100
HTTP_EXCEPTION_ORDER = VALIDATION_ORDER - 1
CHANNEL_CLOSED_ORDER = VALIDATION_ORDER + 1
CLIENT_ABORT_ORDER = VALIDATION_ORDER + 2
GENERIC_ORDER = VALIDATION_ORDER + 3

VALIDATION_MESSAGE = "Validation failed, check below errors for detail."

FailurePredicate = Callable[[BaseException], bool]
FailureHandler = Callable[[Request, BaseException], "Response | None"]


@dataclass(frozen=True, order=True)
class HandlerEntry:
    """One link of the chain: ``handler`` runs when ``predicate`` matches."""

    order: int
    name: str = field(compare=False)
    predicate: FailurePredicate = field(compare=False)
    handler: FailureHandler = field(compare=False)


class ExceptionMapper:
    """Dispatch failures through handlers in ascending ``order``.

    The first entry whose predicate matches handles the failure. A handler
    returns the response to send, or ``None`` when the connection is gone and
    nothing can be written.
    """

    def __init__(self, responder: Responder) -> None:
        self.responder = responder
        self._entries: list[HandlerEntry] = []
        self.add_handler(HTTP_EXCEPTION_ORDER, _is_http_exception, self.handle_http_exception, name="http_exception")
        self.add_handler(VALIDATION_ORDER, _is_request_validation, self.handle_validation, name="request_validation")
        self.add_handler(CHANNEL_CLOSED_ORDER, is_channel_closed, self.handle_closed_channel, name="channel_closed")
        self.add_handler(CLIENT_ABORT_ORDER, is_client_abort, self.handle_client_abort, name="client_abort")
        self.add_handler(GENERIC_ORDER, is_any_failure, self.handle_all, name="generic")

    @property
    def entries(self) -> tuple[HandlerEntry, ...]:
        return tuple(self._entries)

    def add_handler(
        self,
        order: int,
        predicate: FailurePredicate,
        handler: FailureHandler,
        *,
        name: str,
    ) -> None:
        """Insert a handler; entries sharing an order keep insertion order."""
        insort(self._entries, HandlerEntry(order=order, name=name, predicate=predicate, handler=handler))

    def handle(self, request: Request, exc: BaseException) -> Response | None:
        for entry in self._entries:
            try:
                matched = entry.predicate(exc)
            except Exception:
                logger.debug("Handler predicate %s failed; using generic handler", entry.name, exc_info=True)
                break
            if matched:
                return entry.handler(request, exc)
        return self.handle_all(request, exc)

    def handle_closed_channel(self, request: Request, exc: BaseException) -> Response | None:
        root_cause = find_client_abort(exc)
        if root_cause is not None:
            return self.handle_client_abort(request, root_cause)
        return self.handle_all(request, exc)

    def handle_client_abort(self, request: Request, exc: BaseException) -> None:
        # Socket is closed; no error response can reach the client.
        self.responder.log_failure(request, exc)

    def handle_all(self, request: Request, exc: BaseException) -> Response:
        return self.responder.respond(request, exc)

    def handle_validation(self, request: Request, exc: RequestValidationError) -> Response:
        return self.responder.respond(
            request,
            exc,
            status_code=status.HTTP_400_BAD_REQUEST,
            message=VALIDATION_MESSAGE,
            validation_errors=_validation_details(exc),
        )

    def handle_http_exception(self, request: Request, exc: StarletteHTTPException) -> Response:
        if exc.status_code == status.HTTP_404_NOT_FOUND and "endpoint" not in request.scope:
            return self.handle_all(request, NoResourceFoundError(request.url.path))

        response = self.responder.respond(request, exc, status_code=exc.status_code)
        if exc.headers:
            response.headers.update(exc.headers)
        return response

    async def exception_handler(self, request: Request, exc: Exception) -> Response:
        """Entry point for failures Starlette routes to registered handlers."""
        response = self.handle(request, exc)
        # A handler inserted ahead of these entries may report an unresponsive failure.
        if response is None:
            return Response(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)
        return response


def _is_http_exception(exc: BaseException) -> bool:
    return isinstance(exc, StarletteHTTPException)


def _is_request_validation(exc: BaseException) -> bool:
    return isinstance(exc, RequestValidationError)


def _validation_details(exc: RequestValidationError) -> list[ValidationErrorDetail]:
    details: list[ValidationErrorDetail] = []
    for issue in exc.errors():
        details.append(
            ValidationErrorDetail(
                path=_format_location(issue.get("loc", ())),
                message=str(issue.get("msg", "Invalid value")),
                invalid_value=jsonable_encoder(issue.get("input")),
            )
        )
    return details


def _format_location(location: tuple[Any, ...] | list[Any] | Any) -> str:
    if not isinstance(location, (tuple, list)):
        return str(location)

    prefixes = {"body", "query", "path", "header", "cookie"}
    filtered = [str(part) for part in location if part not in prefixes]
    if filtered:
        return ".".join(filtered)

    if not location:
        return "request"

    return str(location[0])


class ErrorTranslationMiddleware:
    """ASGI middleware translating every failure that escapes the app.

    Failures never propagate to the server. When the response has already
    started, the failure is still handled but nothing more is sent.
    """

    def __init__(self, app: ASGIApp, *, mapper: ExceptionMapper) -> None:
        self.app = app
        self.mapper = mapper

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def send_wrapper(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception as exc:
            request = Request(scope, receive=receive)
            try:
                response = self.mapper.handle(request, exc)
            except Exception:
                logger.exception("Error handler failed for url: '%s'", request.url.path)
                response = self.mapper.responder.fallback()
            if response is None or response_started:
                return
            await response(scope, receive, send)


def build_exception_mapper(
    *,
    status_mapping: StatusMapping | None = None,
    metrics: ErrorMetrics | None = None,
    instance: str | None = None,
) -> ExceptionMapper:
    """Build the handler chain with the default collaborators where omitted."""
    responder = Responder(
        status_mapping=status_mapping if status_mapping is not None else build_default_status_mapping(),
        metrics=metrics if metrics is not None else get_error_metrics(),
        instance=instance if instance is not None else get_server_id(),
    )
    return ExceptionMapper(responder)


def register_error_handlers(
    app: FastAPI,
    *,
    status_mapping: StatusMapping | None = None,
    metrics: ErrorMetrics | None = None,
    instance: str | None = None,
) -> ExceptionMapper:
    """Attach the error translation layer to a FastAPI app instance."""
    mapper = build_exception_mapper(status_mapping=status_mapping, metrics=metrics, instance=instance)
    app.add_exception_handler(RequestValidationError, mapper.exception_handler)
    app.add_exception_handler(StarletteHTTPException, mapper.exception_handler)
    app.add_middleware(ErrorTranslationMiddleware, mapper=mapper)
    app.state.exception_mapper = mapper
    return mapper
