"""
Typed outcomes for best-effort catalog calls.

A pipeline step that may legitimately contribute nothing (genre search,
batch artist lookup, second page of top artists) returns ``Fetched`` or
``Skipped`` instead of swallowing the exception, so "no data" is a value
that callers and tests can inspect.
"""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Generic, Optional, TypeVar, Union

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CatalogError(Exception):
    """A catalog request failed (network error or 4xx/5xx response)."""

    def __init__(self, operation: str, message: str, status: Optional[int] = None):
        super().__init__(f"{operation}: {message}")
        self.operation = operation
        self.status = status


@dataclass
class Fetched(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True

    def value_or(self, default: Any) -> T:
        return self.value


@dataclass
class Skipped:
    what: str
    reason: str

    @property
    def ok(self) -> bool:
        return False

    def value_or(self, default: Any) -> Any:
        return default


Outcome = Union[Fetched, Skipped]


async def attempt(call: Awaitable[T], what: str) -> Outcome:
    """
    Await a catalog call once and wrap its result.

    Only ``CatalogError`` is converted into ``Skipped``; anything else is a
    bug and propagates.
    """
    try:
        return Fetched(await call)
    except CatalogError as e:
        logger.warning("Skipping %s: %s", what, e)
        return Skipped(what=what, reason=str(e))
