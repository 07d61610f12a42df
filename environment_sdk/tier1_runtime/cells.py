"""
environment_sdk.tier1_runtime.cells
─────────────────────────────────────
Memoizing and published cells for process-scoped facts.

  - OnceCell     : computed lazily, at most once, on first get(). A result of
                    None is a resolved value, not a reason to recompute.
  - PublishedCell: single writer, many readers. The writer replaces the value
                    with one reference store; readers never compute anything.
"""
from __future__ import annotations

import threading
from typing import Callable, Generic, TypeVar

T = TypeVar("T")

_UNRESOLVED = object()


class OnceCell(Generic[T]):
    """Lazily-initialized one-shot cell. Stampede-safe via a double-checked lock."""

    def __init__(self, factory: Callable[[], T]) -> None:
        self._factory = factory
        self._value: object = _UNRESOLVED
        self._lock = threading.Lock()

    @property
    def resolved(self) -> bool:
        return self._value is not _UNRESOLVED

    def get(self) -> T:
        value = self._value
        if value is not _UNRESOLVED:
            return value  # type: ignore[return-value]
        with self._lock:
            if self._value is _UNRESOLVED:
                self._value = self._factory()
            return self._value  # type: ignore[return-value]

    def __repr__(self) -> str:
        if not self.resolved:
            return "OnceCell(<unresolved>)"
        return f"OnceCell({self._value!r})"


class PublishedCell(Generic[T]):
    """Last-writer-wins cell. Holds None until the first publish."""

    def __init__(self) -> None:
        self._value: T | None = None
        self._version = 0

    def publish(self, value: T | None) -> None:
        self._value = value
        self._version += 1

    def get(self) -> T | None:
        return self._value

    @property
    def version(self) -> int:
        """Number of publishes so far."""
        return self._version

    def __repr__(self) -> str:
        return f"PublishedCell({self._value!r}, version={self._version})"


__all__ = ["OnceCell", "PublishedCell"]
