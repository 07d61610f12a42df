"""Tests for tier2_reliability modules."""
from __future__ import annotations

import threading
import time

import pytest

from environment_sdk.tier0_core.errors import ConfigurationError
from environment_sdk.tier1_runtime.cells import PublishedCell
from environment_sdk.tier2_reliability.refresh import RefreshScheduler

FAST = 0.02


def wait_until(predicate, timeout: float = 2.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


class _Source:
    """Thread-safe value source that counts computations."""

    def __init__(self, value):
        self.value = value
        self.calls = 0
        self._lock = threading.Lock()

    def __call__(self):
        with self._lock:
            self.calls += 1
            if isinstance(self.value, BaseException):
                raise self.value
            return self.value


class TestRefreshScheduler:
    def test_start_publishes_synchronously(self):
        cell = PublishedCell()
        scheduler = RefreshScheduler(_Source("10.0.0.1"), cell, interval=60)
        try:
            scheduler.start()
            assert cell.get() == "10.0.0.1"
            assert cell.version == 1
        finally:
            scheduler.stop()

    def test_background_cycles_pick_up_changes(self):
        source = _Source("10.0.0.1")
        cell = PublishedCell()
        scheduler = RefreshScheduler(source, cell, interval=FAST)
        try:
            scheduler.start()
            source.value = "10.0.0.2"
            assert wait_until(lambda: cell.get() == "10.0.0.2")
        finally:
            scheduler.stop()

    def test_reads_never_compute(self):
        source = _Source("10.0.0.1")
        cell = PublishedCell()
        scheduler = RefreshScheduler(source, cell, interval=60)
        try:
            scheduler.start()
            for _ in range(100):
                cell.get()
            assert source.calls == 1
        finally:
            scheduler.stop()

    def test_failed_cycle_publishes_none_and_loop_continues(self):
        source = _Source(RuntimeError("dns down"))
        cell = PublishedCell()
        scheduler = RefreshScheduler(source, cell, interval=FAST)
        try:
            scheduler.start()
            assert cell.get() is None
            assert scheduler.running
            source.value = "10.0.0.3"
            assert wait_until(lambda: cell.get() == "10.0.0.3")
        finally:
            scheduler.stop()

    def test_start_is_idempotent(self):
        source = _Source("10.0.0.1")
        scheduler = RefreshScheduler(source, PublishedCell(), interval=60)
        try:
            scheduler.start()
            scheduler.start()
            assert source.calls == 1
        finally:
            scheduler.stop()

    def test_stop_ends_the_thread(self):
        source = _Source("10.0.0.1")
        scheduler = RefreshScheduler(source, PublishedCell(), interval=FAST)
        scheduler.start()
        assert scheduler.running
        scheduler.stop(timeout=2.0)
        assert not scheduler.running
        calls = source.calls
        time.sleep(FAST * 5)
        assert source.calls == calls

    def test_only_the_scheduler_publishes(self):
        source = _Source("10.0.0.9")
        cell = PublishedCell()
        scheduler = RefreshScheduler(source, cell, interval=60)
        assert not hasattr(scheduler, "refresh_now")
        assert cell.version == 0
        try:
            scheduler.start()
            scheduler.start()
            assert cell.version == 1
            assert source.calls == 1
        finally:
            scheduler.stop()

    @pytest.mark.parametrize("interval", [0, -1])
    def test_non_positive_interval_rejected(self, interval):
        with pytest.raises(ConfigurationError):
            RefreshScheduler(_Source(None), PublishedCell(), interval=interval)
