"""
environment_sdk.tier1_runtime.probe
─────────────────────────────────────
Per-probe result type and the single fault-isolation seam of the SDK.

Every OS, DNS, interface or registry call is a probe. A probe either yields a
value or is unavailable; it never raises past attempt(). Resolvers chain
probes and only ever see ProbeResult / Optional values.

Usage:
    name = attempt("process.name", psutil.Process().name).or_none()

    @isolated("dns.hostname")
    def hostname() -> str:
        return socket.gethostname()
"""
from __future__ import annotations

import functools
from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

from environment_sdk.tier0_core.logging import get_logger

T = TypeVar("T")

log = get_logger(__name__)


@dataclass(frozen=True)
class ProbeResult(Generic[T]):
    """Outcome of one probe: a value, or known-unavailable."""
    value: T | None = None
    available: bool = False

    @classmethod
    def of(cls, value: T | None) -> "ProbeResult[T]":
        """Wrap a value. None is treated as unavailable."""
        if value is None:
            return cls()
        return cls(value=value, available=True)

    @classmethod
    def unavailable(cls) -> "ProbeResult[T]":
        return cls()

    def or_none(self) -> T | None:
        return self.value if self.available else None

    def or_else(self, default: T) -> T:
        return self.value if self.available else default  # type: ignore[return-value]

    def __bool__(self) -> bool:
        return self.available


def attempt(name: str, fn: Callable[..., T | None], *args: Any, **kwargs: Any) -> ProbeResult[T]:
    """
    Run a single probe step. Any exception marks the probe unavailable and is
    logged at debug level; it is never re-raised.
    """
    try:
        return ProbeResult.of(fn(*args, **kwargs))
    except Exception as exc:
        log.debug(
            "probe.unavailable",
            probe=name,
            error_type=type(exc).__name__,
            error=str(exc),
        )
        return ProbeResult.unavailable()


def isolated(name: str) -> Callable[[Callable[..., T | None]], Callable[..., T | None]]:
    """Decorator form of attempt(): the wrapped function returns T | None and never raises."""
    def decorator(fn: Callable[..., T | None]) -> Callable[..., T | None]:
        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> T | None:
            return attempt(name, fn, *args, **kwargs).or_none()
        return wrapper
    return decorator


__all__ = ["ProbeResult", "attempt", "isolated"]
