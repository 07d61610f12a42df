"""
environment_sdk.tier0_core.metrics
────────────────────────────────────
Counters and gauges with standard naming. The refresh scheduler records one
sample per cycle; expose them through the host application's Prometheus
endpoint or start a dedicated one with start_metrics_server().

Minimal stack: prometheus-client
Configure via: ENVINFO_METRICS_PORT (default: 8001)
"""
from __future__ import annotations

import os
import threading

from prometheus_client import Counter, Gauge, start_http_server

_collectors: dict[str, Counter | Gauge] = {}
_lock = threading.Lock()


def counter(name: str, description: str, labels: list[str] | None = None) -> Counter:
    """
    Create (or retrieve) a counter.

    Usage:
        refreshes = counter("envinfo_sdip_refresh_total", "Refresh cycles", ["outcome"])
        refreshes.labels(outcome="resolved").inc()
    """
    with _lock:
        existing = _collectors.get(name)
        if existing is None:
            existing = Counter(name, description, labels or [])
            _collectors[name] = existing
        return existing  # type: ignore[return-value]


def gauge(name: str, description: str, labels: list[str] | None = None) -> Gauge:
    """
    Create (or retrieve) a gauge.

    Usage:
        last_refresh = gauge("envinfo_sdip_last_refresh_timestamp_seconds", "Last refresh")
        last_refresh.set_to_current_time()
    """
    with _lock:
        existing = _collectors.get(name)
        if existing is None:
            existing = Gauge(name, description, labels or [])
            _collectors[name] = existing
        return existing  # type: ignore[return-value]


def start_metrics_server(port: int | None = None) -> None:
    """
    Start the Prometheus HTTP metrics server on a dedicated port.
    Call once at application startup.
    """
    port = port or int(os.getenv("ENVINFO_METRICS_PORT", "8001"))
    start_http_server(port)


__all__ = ["counter", "gauge", "start_metrics_server"]
