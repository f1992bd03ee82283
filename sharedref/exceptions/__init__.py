"""
sharedref exceptions.

This module defines the exception hierarchy for sharedref:

    SharedRefError (base)
    ├── HandleError - Errors using a handle
    │   ├── EmptyHandleError - Handle holds no value
    │   └── DanglingAccessError - Payload already destroyed
    ├── RefCountError - Count underflow (double release)
    ├── NotCopyableError - Duplicating a move-only handle
    └── ConfigError - Invalid runtime configuration
"""

from .exceptions import (
    ConfigError,
    DanglingAccessError,
    EmptyHandleError,
    HandleError,
    NotCopyableError,
    RefCountError,
    SharedRefError,
)

# =============================================================================
# Public API - See sharedref/__init__.py
# =============================================================================
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
