"""
sharedref - Shared-ownership handles with deterministic destruction.

Three handle kinds over one control block:

- `UniqueHandle` - sole owner, move-only (``transfer()``)
- `SharedHandle` - strong reference; the payload dies with the last one
- `WeakHandle` - observer; ``upgrade()`` to a SharedHandle while the payload lives

Quick Start
-----------

    >>> from sharedref import create_shared
    >>>
    >>> with create_shared(open("data.bin", "rb"), deleter=lambda f: f.close()) as f:
    ...     reader = f.clone()          # count() == 2
    ...     watcher = f.downgrade()     # does not keep the file open
    ...     reader.reset()              # count() == 1
    >>> watcher.expired()               # file closed when the with block ended
    True

Exclusive ownership:

    >>> from sharedref import create_unique
    >>> owner = create_unique(buffer, deleter=release_buffer)
    >>> moved = owner.transfer()        # owner is now empty
    >>> owner.access()
    Traceback (most recent call last):
    ...
    sharedref.exceptions.exceptions.EmptyHandleError: ...

Ownership cycles
----------------

Two payloads holding SharedHandles to each other never reach a strong
count of zero; the runtime does not detect this. Hold one side of every
back-reference as a WeakHandle.

Thread safety
-------------

Count updates are guarded per block (``threadsafe=True``, the default), so
clones may be released from any thread. Synchronising access to the
payload itself is the caller's job.
"""

from sharedref._version import __version__ as __version__

# Logging
from sharedref._logging import setup_logging

# Handles
from sharedref.shared import SharedHandle, create_shared
from sharedref.unique import UniqueHandle, create_unique
from sharedref.weak import WeakHandle, from_shared

# Functional API
from sharedref.api import access, clone, count, expired, reset, transfer, upgrade

# Configuration
from sharedref.config import RuntimeConfig, configure, get_config

# Diagnostics
from sharedref.diagnostics import RuntimeStats, reset_stats, stats

# Exceptions
from sharedref.exceptions import (
    ConfigError,
    DanglingAccessError,
    EmptyHandleError,
    HandleError,
    NotCopyableError,
    RefCountError,
    SharedRefError,
)

# =============================================================================
# Public API
# =============================================================================
__all__ = [
    # Construction
    "create_unique",
    "create_shared",
    # Handles
    "UniqueHandle",
    "SharedHandle",
    "WeakHandle",
    # Operations
    "transfer",
    "clone",
    "count",
    "reset",
    "access",
    "from_shared",
    "upgrade",
    "expired",
    # Configuration
    "RuntimeConfig",
    "configure",
    "get_config",
    "setup_logging",
    # Diagnostics
    "RuntimeStats",
    "stats",
    "reset_stats",
    # Exceptions
    "SharedRefError",
    "HandleError",
    "EmptyHandleError",
    "DanglingAccessError",
    "RefCountError",
    "NotCopyableError",
    "ConfigError",
]
