"""
sharedref exceptions.

This module defines the exception hierarchy for sharedref:

    SharedRefError (base)
    ├── HandleError - Errors using a handle
    │   ├── EmptyHandleError - Handle holds no value (transferred-from or reset)
    │   └── DanglingAccessError - Handle points at a payload that was destroyed
    ├── RefCountError - Count underflow (double release)
    ├── NotCopyableError - Duplicating a handle that cannot be duplicated
    └── ConfigError - Invalid runtime configuration

Usage:
    try:
        handle.access()
    except sharedref.EmptyHandleError:
        print("Handle was moved from")
    except sharedref.SharedRefError as e:
        # Catch any sharedref error with structured details
        print(f"Error {e.code}: {e}")
        print(f"Details: {e.details}")

An upgrade that finds the payload gone is not an error; ``WeakHandle.upgrade()``
returns ``None`` instead.
"""

from typing import Any

__all__ = [
    # Base
    "SharedRefError",
    # Handles
    "HandleError",
    "EmptyHandleError",
    "DanglingAccessError",
    # Counts
    "RefCountError",
    # Copy
    "NotCopyableError",
    # Config
    "ConfigError",
]


class SharedRefError(Exception):
    """
    Base exception for all sharedref errors.

    Attributes
    ----------
    message : str
        Human-readable error description.
    code : str
        Stable, string-based error code (e.g., "EMPTY_HANDLE").
        Use this for programmatic error handling.
    details : dict[str, Any]
        Structured context (e.g., {"handle": "SharedHandle", "strong_count": 0}).
    original_code : int | None
        Numeric code, grouped by category (1xx handles, 2xx counts, 3xx copy, 9xx config).

    Example
    -------
    >>> try:
    ...     create_unique(1).transfer().access()
    ... except SharedRefError as e:
    ...     print(e.code)
    """

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: dict[str, Any] | None = None,
        original_code: int | None = None,
    ):
        super().__init__(message)
        self.code = code
        self.details = details or {}
        self.original_code = original_code

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.args[0]!r}, code={self.code!r})"


# =============================================================================
# Handle Errors
# =============================================================================


class HandleError(SharedRefError, RuntimeError):
    """
    Error using a handle.

    Raised when a handle is used in a state that does not permit the operation.
    """

    def __init__(
        self,
        message: str,
        code: str = "HANDLE_ERROR",
        details: dict[str, Any] | None = None,
        original_code: int | None = None,
    ):
        super().__init__(message, code, details, original_code)


class EmptyHandleError(HandleError):
    """
    Handle holds no value.

    Raised when accessing a UniqueHandle that was transferred-from, destroyed
    or released, or a SharedHandle that was reset or created empty.
    """

    def __init__(
        self,
        message: str | None = None,
        code: str = "EMPTY_HANDLE",
        details: dict[str, Any] | None = None,
        original_code: int | None = None,
    ):
        if message is None:
            message = "Handle is empty (transferred-from or reset)."
        super().__init__(message, code, details, original_code or 100)


class DanglingAccessError(HandleError):
    """
    Handle points at a payload that was already destroyed.

    Not reachable through the handle API under correct use. Raised when the
    control block was released behind the handle's back, or when retaining a
    strong count on a block that is no longer alive.
    """

    def __init__(
        self,
        message: str | None = None,
        code: str = "DANGLING_ACCESS",
        details: dict[str, Any] | None = None,
        original_code: int | None = None,
    ):
        if message is None:
            message = "Payload was already destroyed."
        super().__init__(message, code, details, original_code or 101)


# =============================================================================
# Count Errors
# =============================================================================


class RefCountError(SharedRefError, RuntimeError):
    """
    Reference count underflow.

    Raised when a count is released more times than it was retained. This is
    always a programming error in the caller, never a race outcome.
    """

    def __init__(
        self,
        message: str,
        code: str = "REFCOUNT_UNDERFLOW",
        details: dict[str, Any] | None = None,
        original_code: int | None = None,
    ):
        super().__init__(message, code, details, original_code or 200)


# =============================================================================
# Copy Errors
# =============================================================================


class NotCopyableError(SharedRefError, TypeError):
    """
    Handle cannot be duplicated.

    UniqueHandle is move-only: use ``transfer()``. No handle can be pickled,
    because a pickled copy would own a payload without holding a count.
    """

    def __init__(
        self,
        message: str,
        code: str = "NOT_COPYABLE",
        details: dict[str, Any] | None = None,
        original_code: int | None = None,
    ):
        super().__init__(message, code, details, original_code or 300)


# =============================================================================
# Config Errors
# =============================================================================


class ConfigError(SharedRefError, ValueError):
    """
    Invalid runtime configuration.

    Raised for unknown configuration keys or unparseable environment values.
    """

    def __init__(
        self,
        message: str,
        code: str = "INVALID_CONFIG",
        details: dict[str, Any] | None = None,
        original_code: int | None = None,
    ):
        super().__init__(message, code, details, original_code or 900)
