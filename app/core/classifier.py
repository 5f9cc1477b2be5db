"""Predicates deciding whether a failed request can still receive a response."""

from __future__ import annotations

import anyio
from starlette.requests import ClientDisconnect

CHANNEL_CLOSED_KINDS: tuple[type[BaseException], ...] = (
    anyio.ClosedResourceError,
    anyio.BrokenResourceError,
    BrokenPipeError,
    ConnectionResetError,
)
CLIENT_ABORT_KINDS: tuple[type[BaseException], ...] = (ClientDisconnect,)

MAX_CAUSE_DEPTH = 32


def is_channel_closed(exc: BaseException) -> bool:
    """Return whether ``exc`` signals that the transport channel was closed."""
    return isinstance(exc, CHANNEL_CLOSED_KINDS)


def is_client_abort(exc: BaseException) -> bool:
    """Return whether ``exc`` signals that the client went away mid-request."""
    return isinstance(exc, CLIENT_ABORT_KINDS)


def is_any_failure(_: BaseException) -> bool:
    """Match every failure; used by the catch-all handler."""
    return True


def next_cause(exc: BaseException) -> BaseException | None:
    """Return the exception ``exc`` was raised from, following ``traceback`` rules."""
    if exc.__cause__ is not None:
        return exc.__cause__
    if exc.__suppress_context__:
        return None
    return exc.__context__


def find_client_abort(exc: BaseException, *, max_depth: int = MAX_CAUSE_DEPTH) -> BaseException | None:
    """Return the first client abort in the causal chain of ``exc``.

    The walk starts at the direct cause of ``exc``, stops at the first match,
    and gives up after ``max_depth`` links or when a cause repeats.
    """
    seen = {id(exc)}
    cause = next_cause(exc)
    depth = 0
    while cause is not None and depth < max_depth and id(cause) not in seen:
        if is_client_abort(cause):
            return cause
        seen.add(id(cause))
        cause = next_cause(cause)
        depth += 1
    return None
