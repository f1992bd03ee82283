"""
Module-level handle operations.

Free-function spelling of the handle methods, for code that prefers
``clone(h)`` over ``h.clone()``:

    >>> from sharedref import create_shared, clone, count, from_shared, upgrade
    >>> s1 = create_shared({"rows": 3})
    >>> s2 = clone(s1)
    >>> count(s1)
    2
    >>> w = from_shared(s1)
    >>> s2.reset(); s1.reset()
    >>> upgrade(w) is None
    True
"""

from __future__ import annotations

from typing import TypeVar

from .shared import SharedHandle, create_shared
from .unique import UniqueHandle, create_unique
from .weak import WeakHandle, from_shared

__all__ = [
    "create_unique",
    "create_shared",
    "transfer",
    "clone",
    "count",
    "reset",
    "access",
    "from_shared",
    "upgrade",
    "expired",
]

T = TypeVar("T")


def transfer(handle: UniqueHandle[T]) -> UniqueHandle[T]:
    """Move ownership out of ``handle`` into a new UniqueHandle."""
    return handle.transfer()


def clone(handle: SharedHandle[T]) -> SharedHandle[T]:
    """Add a strong reference; empty handles clone to empty handles."""
    return handle.clone()


def count(handle: SharedHandle[T]) -> int:
    """Strong count snapshot (diagnostic only)."""
    return handle.count()


def reset(handle: SharedHandle[T] | WeakHandle[T]) -> None:
    """Release ``handle``'s reference early. Idempotent."""
    handle.reset()


def access(handle: SharedHandle[T] | UniqueHandle[T]) -> T:
    """Return the payload owned by ``handle``."""
    return handle.access()


def upgrade(handle: WeakHandle[T]) -> SharedHandle[T] | None:
    """Strong handle to the observed payload, or None if it is gone."""
    return handle.upgrade()


def expired(handle: WeakHandle[T]) -> bool:
    """True once the observed payload has been destroyed."""
    return handle.expired()
