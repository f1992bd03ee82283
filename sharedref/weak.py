"""Non-owning observers that break ownership cycles."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Generic, TypeVar

from .exceptions import NotCopyableError

if TYPE_CHECKING:
    from ._control import ControlBlock
    from .shared import SharedHandle

__all__ = ["WeakHandle", "from_shared"]

T = TypeVar("T")


class WeakHandle(Generic[T]):
    """
    Weak reference to a payload owned by SharedHandles.

    A WeakHandle never keeps the payload alive and never exposes it. The
    only way to reach the value is :meth:`upgrade`, which returns a new
    SharedHandle while the payload lives and ``None`` afterwards, forever.

    Typical use is the back-pointer of a parent/child pair::

        class Child:
            def __init__(self, parent: SharedHandle[Parent]) -> None:
                self.parent = parent.downgrade()

            def notify(self) -> None:
                parent = self.parent.upgrade()
                if parent is None:
                    return
                with parent:
                    parent.access().on_child_event(self)
    """

    def __init__(self) -> None:
        self._block: ControlBlock[T] | None = None

    @classmethod
    def empty(cls) -> WeakHandle[Any]:
        """Create a weak handle that observes nothing (always expired)."""
        return cls()

    @classmethod
    def from_shared(cls, handle: SharedHandle[T]) -> WeakHandle[T]:
        """Observe the payload owned by ``handle``. Empty in, empty out."""
        weak = cls()
        block = handle._block
        if block is not None:
            block.retain_weak()
            weak._block = block
        return weak

    # =========================================================================
    # Observation
    # =========================================================================

    def upgrade(self) -> SharedHandle[T] | None:
        """
        Obtain a strong reference if the payload is still alive.

        Returns:
            A new SharedHandle (strong count incremented), or None once the
            payload has been destroyed. A failed upgrade is not an error.
        """
        block = self._block
        if block is None:
            return None
        return block.try_upgrade()

    def expired(self) -> bool:
        """
        True once the payload has been destroyed (or the handle is empty).

        A snapshot: on a shared block an unexpired result may be stale by the
        time it is used. Call :meth:`upgrade` and test for None instead.
        """
        block = self._block
        return block is None or not block.alive

    def count(self) -> int:
        """Strong count snapshot of the observed payload, 0 if expired."""
        block = self._block
        return block.strong_count if block is not None else 0

    def weak_count(self) -> int:
        block = self._block
        return block.weak_count if block is not None else 0

    def owner_equal(self, other: WeakHandle[Any] | SharedHandle[Any]) -> bool:
        """True if both handles share a control block (or both are empty)."""
        return self._block is getattr(other, "_block", None)

    def __bool__(self) -> bool:
        return not self.expired()

    # =========================================================================
    # Ownership of the weak count
    # =========================================================================

    def clone(self) -> WeakHandle[T]:
        """Return another weak handle observing the same block."""
        weak = WeakHandle()
        block = self._block
        if block is not None:
            block.retain_weak()
            weak._block = block
        return weak

    def reset(self) -> None:
        """Release this handle's weak reference now. Idempotent."""
        block, self._block = self._block, None
        if block is not None:
            block.release_weak()

    def close(self) -> None:
        """Alias for :meth:`reset`."""
        self.reset()

    def __copy__(self) -> WeakHandle[T]:
        return self.clone()

    def __deepcopy__(self, memo: dict[int, Any]) -> WeakHandle[T]:
        return self.clone()

    def __reduce_ex__(self, protocol: Any) -> Any:
        raise NotCopyableError(
            "WeakHandle cannot be pickled.",
            details={"handle": "WeakHandle"},
        )

    def __enter__(self) -> WeakHandle[T]:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.reset()

    def __del__(self) -> None:
        try:
            self.reset()
        except Exception:
            pass

    def __repr__(self) -> str:
        block = getattr(self, "_block", None)
        if block is None:
            return "WeakHandle(empty)"
        if not block.alive:
            return "WeakHandle(expired)"
        return f"WeakHandle(count={block.strong_count}, weak={block.weak_count})"


def from_shared(handle: SharedHandle[T]) -> WeakHandle[T]:
    """Create a WeakHandle observing the payload owned by ``handle``."""
    return WeakHandle.from_shared(handle)
