"""Exact-type mapping from failure kinds to HTTP status codes."""

from __future__ import annotations

from collections.abc import Iterator
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

from fastapi import status
from pydantic import ValidationError

from app.core.errors import ConflictError
from app.core.errors import NoResourceFoundError
from app.core.errors import NotFoundError
from app.core.errors import TransientError

DEFAULT_STATUS = status.HTTP_500_INTERNAL_SERVER_ERROR


@dataclass(frozen=True)
class StatusResolution:
    """HTTP status and retry hint resolved for one failure."""

    status: int
    retryable: bool


class StatusMapping(Mapping[type[BaseException], int]):
    """Read-only table of failure kinds to statuses.

    Lookups match ``type(exc)`` exactly. A subclass of a registered kind that is
    not registered itself resolves to the default status.
    """

    def __init__(
        self,
        table: Mapping[type[BaseException], int],
        *,
        default_status: int = DEFAULT_STATUS,
    ) -> None:
        for kind, code in table.items():
            _check_status(code, kind.__name__)
        _check_status(default_status, "default")
        self._table = MappingProxyType(dict(table))
        self._default_status = default_status

    def __getitem__(self, kind: type[BaseException]) -> int:
        return self._table[kind]

    def __iter__(self) -> Iterator[type[BaseException]]:
        return iter(self._table)

    def __len__(self) -> int:
        return len(self._table)

    @property
    def default_status(self) -> int:
        return self._default_status

    def status_for(self, exc: BaseException) -> int:
        return self._table.get(type(exc), self._default_status)

    def resolve(self, exc: BaseException) -> StatusResolution:
        """Return the status for ``exc`` and whether the caller may retry it."""
        return StatusResolution(status=self.status_for(exc), retryable=is_retryable(exc))

    def extended(self, entries: Mapping[type[BaseException], int]) -> StatusMapping:
        """Return a new mapping with ``entries`` added on top of this one."""
        return StatusMapping({**self._table, **entries}, default_status=self._default_status)


def is_retryable(exc: BaseException) -> bool:
    # Only the failure itself is inspected, never its causes.
    return isinstance(exc, TransientError)


def _check_status(code: int, label: str) -> None:
    if not 100 <= code <= 599:
        raise ValueError(f"Invalid HTTP status {code} for {label}")


def build_default_status_mapping() -> StatusMapping:
    """Build the status table used by the application at startup."""
    return StatusMapping(
        {
            NotFoundError: status.HTTP_404_NOT_FOUND,
            ConflictError: status.HTTP_409_CONFLICT,
            ValueError: status.HTTP_400_BAD_REQUEST,
            ValidationError: status.HTTP_500_INTERNAL_SERVER_ERROR,
            NoResourceFoundError: status.HTTP_404_NOT_FOUND,
        }
    )
