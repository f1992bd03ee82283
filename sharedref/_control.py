"""
Control block shared by SharedHandle and WeakHandle.

The block owns the payload and both reference counts. Handles never expose
it; they only call the retain/release primitives below.

Lifecycle::

    LIVE           strong >= 1, payload present
      │  strong 1 -> 0: deleter runs, payload dropped
      ▼
    PAYLOAD_FREED  weak >= 1 keeps the block itself around
      │  weak -> 0 (or already 0)
      ▼
    BLOCK_FREED    terminal

There is no way back to LIVE. The payload is always destroyed before the
block is reclaimed, whichever count reaches zero last.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from contextlib import nullcontext
from enum import Enum
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from . import diagnostics
from ._logging import scoped_logger
from .config import get_config
from .exceptions import DanglingAccessError, RefCountError

if TYPE_CHECKING:
    from .shared import SharedHandle

__all__ = ["BlockState", "ControlBlock"]

T = TypeVar("T")

_log = scoped_logger("block")

# Cooperative tier: count updates need no guard. nullcontext is reusable.
_NO_LOCK = nullcontext()


class BlockState(Enum):
    """Lifecycle state of a control block."""

    LIVE = "live"
    PAYLOAD_FREED = "payload_freed"
    BLOCK_FREED = "block_freed"


class ControlBlock(Generic[T]):
    """
    Payload storage plus strong and weak counts.

    Created with ``strong_count == 1`` on behalf of the first SharedHandle.

    With ``threadsafe=True`` every read-modify-write of the counts happens
    under a per-block lock, so the decrement-and-test-for-zero in
    :meth:`release_strong` and the test-and-increment in :meth:`try_upgrade`
    are each a single indivisible step. Payload destruction and block
    reclamation therefore run exactly once no matter how many threads race
    to drop the last reference. Callers never take the lock themselves.

    Args:
        value: The payload.
        deleter: Called with the payload once the strong count reaches zero.
        threadsafe: Lock tier. ``None`` uses ``get_config().threadsafe``.
    """

    def __init__(
        self,
        value: T,
        deleter: Callable[[T], Any] | None = None,
        threadsafe: bool | None = None,
    ) -> None:
        config = get_config()
        if threadsafe is None:
            threadsafe = config.threadsafe
        self._lock: Any = threading.Lock() if threadsafe else _NO_LOCK
        self._threadsafe = threadsafe
        self._track = config.track_stats
        self._payload: T | None = value
        self._deleter = deleter
        self._strong = 1
        self._weak = 0
        self._alive = True
        self._payload_gone = False
        self._freed = False
        if self._track:
            diagnostics._counters.block_created()

    @classmethod
    def create(
        cls,
        value: T,
        deleter: Callable[[T], Any] | None = None,
        threadsafe: bool | None = None,
    ) -> ControlBlock[T]:
        """Allocate a block holding ``value`` with one strong reference."""
        return cls(value, deleter=deleter, threadsafe=threadsafe)

    # =========================================================================
    # Snapshots
    # =========================================================================

    @property
    def strong_count(self) -> int:
        return self._strong

    @property
    def weak_count(self) -> int:
        return self._weak

    @property
    def alive(self) -> bool:
        return self._alive

    @property
    def freed(self) -> bool:
        return self._freed

    @property
    def threadsafe(self) -> bool:
        return self._threadsafe

    @property
    def state(self) -> BlockState:
        if self._freed:
            return BlockState.BLOCK_FREED
        if self._alive:
            return BlockState.LIVE
        return BlockState.PAYLOAD_FREED

    def payload(self) -> T:
        """Return the payload, or raise DanglingAccessError once destroyed."""
        with self._lock:
            if not self._alive:
                raise DanglingAccessError(
                    details={"block_id": id(self), "state": self.state.value},
                )
            return self._payload  # type: ignore[return-value]

    # =========================================================================
    # Strong count
    # =========================================================================

    def retain_strong(self) -> None:
        """Add a strong reference. The block must still be alive."""
        with self._lock:
            if not self._alive:
                _log.error("Strong retain on dead block", extra={"block_id": id(self)})
                raise DanglingAccessError(
                    "Cannot retain a strong reference: payload was already destroyed.",
                    details={"block_id": id(self), "state": self.state.value},
                )
            self._strong += 1

    def release_strong(self) -> None:
        """
        Drop a strong reference.

        On the 1 -> 0 transition the payload is destroyed immediately: the
        deleter (if any) runs, then the block drops its reference to the
        value. If no weak references remain the block is reclaimed as well.

        Raises:
            RefCountError: If the strong count is already zero.
        """
        with self._lock:
            if self._strong == 0:
                _log.error("Strong count underflow", extra={"block_id": id(self)})
                raise RefCountError(
                    "release_strong() called with strong_count == 0 (double release).",
                    details={"block_id": id(self), "weak_count": self._weak},
                )
            self._strong -= 1
            if self._strong:
                return
            self._alive = False
            value, self._payload = self._payload, None
            deleter, self._deleter = self._deleter, None

        # Deleter runs outside the lock: it may release handles, including
        # weak handles to this same block.
        try:
            if deleter is not None:
                deleter(value)  # type: ignore[arg-type]
        finally:
            del value
            self._payload_destroyed()

    def _payload_destroyed(self) -> None:
        if self._track:
            diagnostics._counters.payload_destroyed()
        _log.debug("Payload destroyed", extra={"block_id": id(self)})
        with self._lock:
            self._payload_gone = True
            reclaim = self._weak == 0 and not self._freed
            if reclaim:
                self._freed = True
        if reclaim:
            self._reclaim()

    # =========================================================================
    # Weak count
    # =========================================================================

    def retain_weak(self) -> None:
        """Add a weak reference. Allowed until the block is reclaimed."""
        with self._lock:
            if self._freed:
                _log.error("Weak retain on freed block", extra={"block_id": id(self)})
                raise DanglingAccessError(
                    "Cannot retain a weak reference: block was already reclaimed.",
                    details={"block_id": id(self)},
                )
            self._weak += 1

    def release_weak(self) -> None:
        """
        Drop a weak reference; reclaim the block if nothing else references it.

        Raises:
            RefCountError: If the weak count is already zero.
        """
        with self._lock:
            if self._weak == 0:
                _log.error("Weak count underflow", extra={"block_id": id(self)})
                raise RefCountError(
                    "release_weak() called with weak_count == 0 (double release).",
                    details={"block_id": id(self), "strong_count": self._strong},
                )
            self._weak -= 1
            # A payload still being destroyed reclaims the block itself
            # once its deleter returns.
            reclaim = self._weak == 0 and self._payload_gone and not self._freed
            if reclaim:
                self._freed = True
        if reclaim:
            self._reclaim()

    def _reclaim(self) -> None:
        if self._track:
            diagnostics._counters.block_freed()
        _log.debug("Block freed", extra={"block_id": id(self)})

    # =========================================================================
    # Upgrade
    # =========================================================================

    def try_upgrade(self) -> SharedHandle[T] | None:
        """
        Take a new strong reference if the payload is still alive.

        The liveness check and the increment happen under one lock
        acquisition, so a concurrent final ``release_strong`` can never be
        undone by an upgrade.

        Returns:
            A new SharedHandle owning the added reference, or None.
        """
        from .shared import SharedHandle

        with self._lock:
            if not self._alive:
                return None
            self._strong += 1
        return SharedHandle._adopt(self)

    def __repr__(self) -> str:
        return (
            f"ControlBlock(state={self.state.value}, strong={self._strong}, "
            f"weak={self._weak}, threadsafe={self._threadsafe})"
        )
