"""
Result type for reporting outcomes to UI callers.

Manual refresh and correction submission report back with ``Ok``/``Err``
instead of raising, so a presentation layer can show a success or failure
acknowledgment without wrapping every call in try/except.

Usage:
    result = await reconciler.refresh()
    if result.is_ok():
        print(f"Synced {result.unwrap().records} records")
    else:
        print(f"Refresh failed: {result.error}")
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

T = TypeVar("T")
E = TypeVar("E")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Successful outcome."""

    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value

    def unwrap_or(self, default: T) -> T:
        return self.value

    @property
    def error(self) -> None:
        return None


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """Failed outcome."""

    error: E

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> None:
        """Raises. Use is_ok() to check first."""
        raise ValueError(f"Called unwrap() on Err: {self.error}")

    def unwrap_or(self, default: T) -> T:
        return default

    @property
    def value(self) -> None:
        return None


Result = Union[Ok[T], Err[E]]
