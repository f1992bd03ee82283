"""
Process-wide allocation counters.

Every control block reports three lifecycle events: created, payload
destroyed, block freed. The differences give the number of blocks and
payloads still alive, which is how tests observe exactly-once destruction
and the leak caused by an ownership cycle.

Counters are snapshots. Like ``count()`` and ``expired()`` they are for
tests and observability, not for control logic.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass

__all__ = ["RuntimeStats", "stats", "reset_stats"]


@dataclass(frozen=True)
class RuntimeStats:
    """Snapshot of the lifecycle counters."""

    blocks_created: int = 0
    payloads_destroyed: int = 0
    blocks_freed: int = 0

    @property
    def live_payloads(self) -> int:
        """Payloads whose strong count has not reached zero."""
        return self.blocks_created - self.payloads_destroyed

    @property
    def live_blocks(self) -> int:
        """Blocks not yet reclaimed (live payloads plus weak-only blocks)."""
        return self.blocks_created - self.blocks_freed


class _Counters:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.blocks_created = 0
        self.payloads_destroyed = 0
        self.blocks_freed = 0

    def block_created(self) -> None:
        with self._lock:
            self.blocks_created += 1

    def payload_destroyed(self) -> None:
        with self._lock:
            self.payloads_destroyed += 1

    def block_freed(self) -> None:
        with self._lock:
            self.blocks_freed += 1

    def snapshot(self) -> RuntimeStats:
        with self._lock:
            return RuntimeStats(
                blocks_created=self.blocks_created,
                payloads_destroyed=self.payloads_destroyed,
                blocks_freed=self.blocks_freed,
            )

    def reset(self) -> None:
        with self._lock:
            self.blocks_created = 0
            self.payloads_destroyed = 0
            self.blocks_freed = 0


_counters = _Counters()


def stats() -> RuntimeStats:
    """Return a snapshot of the lifecycle counters."""
    return _counters.snapshot()


def reset_stats() -> None:
    """Zero all counters."""
    _counters.reset()
