"""
environment_sdk.tier2_reliability.refresh
───────────────────────────────────────────
Periodic background recomputation of a published value.

A RefreshScheduler owns exactly one daemon thread and is the only writer of
its PublishedCell. start() pays one synchronous computation so the value is
populated before the first read, then the thread republishes every
`interval` seconds. A failing cycle publishes None and the loop continues.

Usage:
    cell = PublishedCell[str]()
    scheduler = RefreshScheduler(resolve_ip, cell, interval=3.0)
    scheduler.start()
    cell.get()          # never blocks on resolve_ip
    scheduler.stop()    # tests only; the thread is a daemon
"""
from __future__ import annotations

import threading
import time
from typing import Callable, Generic, TypeVar

from environment_sdk.tier0_core.errors import ConfigurationError
from environment_sdk.tier0_core.logging import get_logger
from environment_sdk.tier0_core.metrics import counter, gauge
from environment_sdk.tier1_runtime.cells import PublishedCell

T = TypeVar("T")

DEFAULT_INTERVAL = 3.0

log = get_logger(__name__)

_refresh_total = counter(
    "envinfo_sdip_refresh_total",
    "Service-discovery IPv4 refresh cycles by outcome",
    ["outcome"],
)
_last_refresh = gauge(
    "envinfo_sdip_last_refresh_timestamp_seconds",
    "Unix time of the last service-discovery IPv4 refresh",
)


class RefreshScheduler(Generic[T]):
    def __init__(
        self,
        compute: Callable[[], T | None],
        cell: PublishedCell[T],
        interval: float = DEFAULT_INTERVAL,
        name: str = "envinfo-sdip-refresh",
    ) -> None:
        if interval <= 0:
            raise ConfigurationError(
                f"Refresh interval must be positive, got {interval!r}",
                interval=interval,
            )
        self._compute = compute
        self._cell = cell
        self._interval = interval
        self._name = name
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._start_lock = threading.Lock()

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def cell(self) -> PublishedCell[T]:
        return self._cell

    @property
    def running(self) -> bool:
        thread = self._thread
        return thread is not None and thread.is_alive()

    def _refresh_once(self) -> T | None:
        """One cycle. Called only by start() before the thread exists and by the loop."""
        try:
            value = self._compute()
        except Exception as exc:
            log.warning(
                "sdip.refresh.failed",
                scheduler=self._name,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            value = None
        previous = self._cell.get()
        self._cell.publish(value)
        _refresh_total.labels(outcome="resolved" if value is not None else "absent").inc()
        _last_refresh.set(time.time())
        if value != previous:
            log.info("sdip.refresh.published", scheduler=self._name, value=value, previous=previous)
        return value

    def start(self) -> None:
        """Compute once synchronously, then keep refreshing in the background. Idempotent."""
        with self._start_lock:
            if self._thread is not None:
                return
            self._refresh_once()
            self._thread = threading.Thread(target=self._run, name=self._name, daemon=True)
            self._thread.start()
        log.info("sdip.refresh.started", scheduler=self._name, interval=self._interval)

    def stop(self, timeout: float | None = None) -> None:
        """Cancel the loop and wait for the thread to exit."""
        self._stop.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        log.info("sdip.refresh.stopped", scheduler=self._name)

    def _run(self) -> None:
        while not self._stop.wait(self._interval):
            self._refresh_once()


__all__ = ["RefreshScheduler", "DEFAULT_INTERVAL"]
