"""
Global pytest fixtures for sharedref tests.

This module provides:
- Destruction recording (a deleter that remembers what it destroyed)
- Lifecycle counter baselines (diagnostics deltas per test)
- Config and logging isolation between tests
"""

import gc
import logging
import threading
from typing import Any

import pytest

# =============================================================================
# Destruction Tracking
# =============================================================================


class DestructionRecorder:
    """Deleter that records every payload it is asked to destroy."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.destroyed: list[Any] = []

    def __call__(self, value: Any) -> None:
        with self._lock:
            self.destroyed.append(value)

    def times(self, value: Any) -> int:
        """How many times ``value`` was destroyed (identity match)."""
        return sum(1 for v in self.destroyed if v is value)

    @property
    def total(self) -> int:
        return len(self.destroyed)


@pytest.fixture
def recorder():
    """Provide a fresh destruction recorder."""
    return DestructionRecorder()


@pytest.fixture
def lifecycle():
    """Track lifecycle counters relative to the start of the test."""
    from sharedref import configure, stats

    configure(track_stats=True)

    class LifecycleTracker:
        def __init__(self):
            self._baseline = stats()

        def created(self) -> int:
            return stats().blocks_created - self._baseline.blocks_created

        def destroyed(self) -> int:
            return stats().payloads_destroyed - self._baseline.payloads_destroyed

        def freed(self) -> int:
            return stats().blocks_freed - self._baseline.blocks_freed

        def assert_balanced(self):
            """Every block created in this test has been destroyed and freed."""
            assert self.created() == self.destroyed() == self.freed(), (
                f"Lifecycle imbalance: {self.created()} created, "
                f"{self.destroyed()} payloads destroyed, {self.freed()} blocks freed"
            )

    return LifecycleTracker()


@pytest.fixture
def no_gc():
    """Disable the cyclic collector so reference cycles stay observable."""
    was_enabled = gc.isenabled()
    gc.disable()
    yield
    if was_enabled:
        gc.enable()


# =============================================================================
# Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def _restore_config():
    """Restore the active RuntimeConfig after each test."""
    from sharedref.config import configure, get_config

    saved = get_config()
    yield
    configure(saved)


@pytest.fixture
def restore_logging():
    """Restore sharedref logger handlers and level after the test."""
    from sharedref._logging import logger

    handlers = logger.handlers[:]
    level = logger.level
    yield logger
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
    for handler in handlers:
        logger.addHandler(handler)
    logger.setLevel(level)


@pytest.fixture
def debug_logs(restore_logging, caplog):
    """Capture sharedref DEBUG records."""
    restore_logging.setLevel(logging.DEBUG)
    caplog.set_level(logging.DEBUG, logger="sharedref")
    return caplog
