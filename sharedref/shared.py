"""Reference-counted shared ownership."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from ._control import ControlBlock
from .exceptions import EmptyHandleError, NotCopyableError

if TYPE_CHECKING:
    from .weak import WeakHandle

__all__ = ["SharedHandle", "create_shared"]

T = TypeVar("T")


class SharedHandle(Generic[T]):
    """
    Strong, owning reference to a payload.

    Every clone adds one to the strong count; every release removes one.
    The payload is destroyed the moment the last SharedHandle releases.

    A handle releases exactly once, on whichever of these happens first:

    - ``reset()`` / ``close()``
    - leaving a ``with`` block (normal exit or exception)
    - the handle object itself being finalized

    Use as a context manager::

        with create_shared(conn, deleter=lambda c: c.close()) as shared:
            worker = shared.clone()
            ...

    The counts are safe to update from several threads (on a threadsafe
    block), but a single SharedHandle object must not be reset from one
    thread while another thread uses it. Give each thread its own clone.

    Args:
        value: The payload.
        deleter: Called with the payload when the last strong reference goes.
        threadsafe: Lock tier for the new control block (default from config).
    """

    def __init__(
        self,
        value: T,
        *,
        deleter: Callable[[T], Any] | None = None,
        threadsafe: bool | None = None,
    ) -> None:
        self._block: ControlBlock[T] | None = ControlBlock.create(
            value, deleter=deleter, threadsafe=threadsafe
        )

    @classmethod
    def empty(cls) -> SharedHandle[Any]:
        """Create a null handle that owns nothing."""
        handle = cls.__new__(cls)
        handle._block = None
        return handle

    @classmethod
    def _adopt(cls, block: ControlBlock[T]) -> SharedHandle[T]:
        # The caller has already retained the strong reference this handle owns.
        handle = cls.__new__(cls)
        handle._block = block
        return handle

    # =========================================================================
    # Ownership
    # =========================================================================

    def clone(self) -> SharedHandle[T]:
        """
        Return a new handle sharing this payload.

        Cloning an empty handle returns another empty handle, not an error.
        """
        block = self._block
        if block is None:
            return SharedHandle.empty()
        block.retain_strong()
        return SharedHandle._adopt(block)

    def reset(self) -> None:
        """Release this handle's strong reference now. Idempotent."""
        block, self._block = self._block, None
        if block is not None:
            block.release_strong()

    def close(self) -> None:
        """Alias for :meth:`reset`."""
        self.reset()

    def downgrade(self) -> WeakHandle[T]:
        """Return a weak handle observing this payload."""
        from .weak import WeakHandle

        return WeakHandle.from_shared(self)

    # =========================================================================
    # Access
    # =========================================================================

    def access(self) -> T:
        """
        Return the payload.

        Raises:
            EmptyHandleError: If the handle was reset or created empty.
            DanglingAccessError: If the payload was destroyed behind this handle.
        """
        block = self._block
        if block is None:
            raise EmptyHandleError(
                "SharedHandle is empty (reset or never assigned).",
                details={"handle": "SharedHandle"},
            )
        return block.payload()

    def get(self) -> T:
        """Alias for :meth:`access`."""
        return self.access()

    # =========================================================================
    # Diagnostics
    # =========================================================================

    def count(self) -> int:
        """
        Current strong count, or 0 for an empty handle.

        A snapshot: other threads may change it right after the read.
        """
        block = self._block
        return block.strong_count if block is not None else 0

    def weak_count(self) -> int:
        """Current number of weak handles observing this payload."""
        block = self._block
        return block.weak_count if block is not None else 0

    @property
    def is_empty(self) -> bool:
        return self._block is None

    def owner_equal(self, other: SharedHandle[Any] | WeakHandle[Any]) -> bool:
        """True if both handles share a control block (or both are empty)."""
        return self._block is getattr(other, "_block", None)

    def __bool__(self) -> bool:
        return self._block is not None

    # =========================================================================
    # Copy and scope protocol
    # =========================================================================

    def __copy__(self) -> SharedHandle[T]:
        return self.clone()

    def __deepcopy__(self, memo: dict[int, Any]) -> SharedHandle[T]:
        # A deep copy of an owner is one more owner of the same payload.
        return self.clone()

    def __reduce_ex__(self, protocol: Any) -> Any:
        raise NotCopyableError(
            "SharedHandle cannot be pickled.",
            details={"handle": "SharedHandle"},
        )

    def __enter__(self) -> SharedHandle[T]:
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
            return "SharedHandle(empty)"
        if not block.alive:
            return "SharedHandle(dangling)"
        return f"SharedHandle(count={block.strong_count}, weak={block.weak_count})"


def create_shared(
    value: T,
    *,
    deleter: Callable[[T], Any] | None = None,
    threadsafe: bool | None = None,
) -> SharedHandle[T]:
    """
    Create the first SharedHandle for ``value`` (strong count 1).

    Args:
        value: The payload.
        deleter: Called with the payload once the last strong reference goes.
        threadsafe: Lock tier; ``None`` uses ``get_config().threadsafe``.

    Example:
        >>> handle = create_shared([1, 2, 3])
        >>> handle.count()
        1
    """
    return SharedHandle(value, deleter=deleter, threadsafe=threadsafe)
