"""Exclusive, move-only ownership."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from ._logging import scoped_logger
from .exceptions import EmptyHandleError, NotCopyableError

if TYPE_CHECKING:
    from .shared import SharedHandle

__all__ = ["UniqueHandle", "create_unique"]

T = TypeVar("T")

_log = scoped_logger("unique")


class UniqueHandle(Generic[T]):
    """
    Sole owner of a payload.

    No counts are involved: the handle either owns the value or is empty.
    Ownership moves with :meth:`transfer`, which empties the source. The
    payload is destroyed when the owning handle is destroyed, leaves a
    ``with`` block, or is finalized while still owning.

    Example::

        with create_unique(open_socket(), deleter=lambda s: s.close()) as sock:
            pool.adopt(sock.transfer())   # ``sock`` is now empty; exit is a no-op

    Args:
        value: The payload.
        deleter: Called with the payload when it is destroyed.
    """

    def __init__(self, value: T, *, deleter: Callable[[T], Any] | None = None) -> None:
        self._value: T | None = value
        self._deleter = deleter
        self._owning = True

    def _take(self, operation: str) -> tuple[T, Callable[[T], Any] | None]:
        if not self._owning:
            raise EmptyHandleError(
                f"Cannot {operation}: UniqueHandle is empty (transferred-from or destroyed).",
                details={"handle": "UniqueHandle", "operation": operation},
            )
        value, deleter = self._value, self._deleter
        self._value = None
        self._deleter = None
        self._owning = False
        return value, deleter  # type: ignore[return-value]

    # =========================================================================
    # Ownership transfer
    # =========================================================================

    def transfer(self) -> UniqueHandle[T]:
        """
        Move ownership into a new handle; this one becomes empty.

        Raises:
            EmptyHandleError: If this handle no longer owns a value.
        """
        value, deleter = self._take("transfer")
        return UniqueHandle(value, deleter=deleter)

    def release(self) -> T:
        """
        Give up ownership without destroying the payload.

        The deleter is discarded; the caller becomes responsible for the value.
        """
        value, _ = self._take("release")
        return value

    def into_shared(self, *, threadsafe: bool | None = None) -> SharedHandle[T]:
        """Move the payload (and its deleter) into a new SharedHandle."""
        from .shared import SharedHandle

        value, deleter = self._take("convert to shared")
        return SharedHandle(value, deleter=deleter, threadsafe=threadsafe)

    def replace(self, value: T, *, deleter: Callable[[T], Any] | None = None) -> None:
        """Destroy the current payload (if any) and take ownership of ``value``."""
        self.destroy()
        self._value = value
        self._deleter = deleter
        self._owning = True

    def destroy(self) -> None:
        """Destroy the payload now. Idempotent; an empty handle is left alone."""
        if not self._owning:
            return
        value, deleter = self._take("destroy")
        if deleter is not None:
            deleter(value)
        _log.debug("Payload destroyed", extra={"handle_id": id(self)})

    def close(self) -> None:
        """Alias for :meth:`destroy`."""
        self.destroy()

    # =========================================================================
    # Access
    # =========================================================================

    def access(self) -> T:
        """
        Return the payload.

        Raises:
            EmptyHandleError: If the handle was transferred-from, released or destroyed.
        """
        if not self._owning:
            raise EmptyHandleError(
                "UniqueHandle is empty (transferred-from or destroyed).",
                details={"handle": "UniqueHandle", "operation": "access"},
            )
        return self._value  # type: ignore[return-value]

    def get(self) -> T:
        """Alias for :meth:`access`."""
        return self.access()

    @property
    def empty(self) -> bool:
        return not self._owning

    def __bool__(self) -> bool:
        return self._owning

    # =========================================================================
    # Copy and scope protocol
    # =========================================================================

    def __copy__(self) -> UniqueHandle[T]:
        raise NotCopyableError(
            "UniqueHandle cannot be copied; use transfer() to move ownership.",
            details={"handle": "UniqueHandle"},
        )

    def __deepcopy__(self, memo: dict[int, Any]) -> UniqueHandle[T]:
        return self.__copy__()

    def __reduce_ex__(self, protocol: Any) -> Any:
        raise NotCopyableError(
            "UniqueHandle cannot be pickled.",
            details={"handle": "UniqueHandle"},
        )

    def __enter__(self) -> UniqueHandle[T]:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.destroy()

    def __del__(self) -> None:
        try:
            self.destroy()
        except Exception:
            pass

    def __repr__(self) -> str:
        if not getattr(self, "_owning", False):
            return "UniqueHandle(empty)"
        return f"UniqueHandle({type(self._value).__name__})"


def create_unique(value: T, *, deleter: Callable[[T], Any] | None = None) -> UniqueHandle[T]:
    """Create a UniqueHandle owning ``value``."""
    return UniqueHandle(value, deleter=deleter)
