"""Unit tests for failure classification predicates and cause unwrapping."""

from __future__ import annotations

import anyio
from starlette.requests import ClientDisconnect

from app.core.classifier import find_client_abort
from app.core.classifier import is_channel_closed
from app.core.classifier import is_client_abort
from app.core.classifier import next_cause


def _raise_from(exc: BaseException, cause: BaseException) -> BaseException:
    try:
        raise exc from cause
    except BaseException as raised:
        return raised


def test_channel_closure_kinds_are_recognized() -> None:
    assert is_channel_closed(anyio.ClosedResourceError())
    assert is_channel_closed(anyio.BrokenResourceError())
    assert is_channel_closed(BrokenPipeError())
    assert not is_channel_closed(ClientDisconnect())
    assert not is_channel_closed(RuntimeError("boom"))


def test_client_abort_is_recognized() -> None:
    assert is_client_abort(ClientDisconnect())
    assert not is_client_abort(anyio.ClosedResourceError())


def test_next_cause_prefers_explicit_cause() -> None:
    cause = ClientDisconnect()
    failure = _raise_from(anyio.ClosedResourceError(), cause)

    assert next_cause(failure) is cause


def test_next_cause_follows_implicit_context() -> None:
    try:
        try:
            raise ClientDisconnect()
        except ClientDisconnect:
            raise anyio.ClosedResourceError()
    except anyio.ClosedResourceError as failure:
        assert isinstance(next_cause(failure), ClientDisconnect)


def test_next_cause_respects_suppressed_context() -> None:
    try:
        try:
            raise ClientDisconnect()
        except ClientDisconnect:
            raise anyio.ClosedResourceError() from None
    except anyio.ClosedResourceError as failure:
        assert next_cause(failure) is None


def test_find_client_abort_walks_nested_causes() -> None:
    abort = ClientDisconnect()
    middle = _raise_from(OSError("socket write failed"), abort)
    failure = _raise_from(anyio.ClosedResourceError(), middle)

    assert find_client_abort(failure) is abort


def test_find_client_abort_stops_at_first_match() -> None:
    deepest = ClientDisconnect()
    first = _raise_from(ClientDisconnect(), deepest)
    failure = _raise_from(anyio.ClosedResourceError(), first)

    assert find_client_abort(failure) is first


def test_find_client_abort_returns_none_when_chain_is_exhausted() -> None:
    failure = _raise_from(anyio.ClosedResourceError(), OSError("reset"))

    assert find_client_abort(failure) is None
    assert find_client_abort(anyio.ClosedResourceError()) is None


def test_find_client_abort_ignores_the_failure_itself() -> None:
    assert find_client_abort(ClientDisconnect()) is None


def test_find_client_abort_survives_cycles() -> None:
    first = OSError("first")
    second = OSError("second")
    first.__cause__ = second
    second.__cause__ = first

    assert find_client_abort(first) is None


def test_find_client_abort_is_bounded() -> None:
    failure = anyio.ClosedResourceError()
    link: BaseException = failure
    for index in range(5):
        cause = OSError(f"link {index}")
        link.__cause__ = cause
        link = cause
    link.__cause__ = ClientDisconnect()

    assert find_client_abort(failure, max_depth=3) is None
    assert isinstance(find_client_abort(failure), ClientDisconnect)
