"""Runtime configuration for new control blocks."""

from __future__ import annotations

import os
import threading
from dataclasses import dataclass, fields, replace
from typing import Any

from .exceptions import ConfigError

__all__ = ["RuntimeConfig", "get_config", "configure"]

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ConfigError(
        f"Invalid value for {name}: {raw!r}. Use one of 1/0, true/false, yes/no, on/off.",
        details={"variable": name, "value": raw},
    )


@dataclass(frozen=True)
class RuntimeConfig:
    """
    Defaults applied when a control block is created.

    Attributes
    ----------
        threadsafe: Guard count updates with a per-block lock so handles may
            be shared across threads. Default is True. Blocks created with
            False use plain integer updates (cooperative, single-thread tier).

        track_stats: Maintain the process-wide counters in
            :mod:`sharedref.diagnostics`. Default is True.

    Environment
    -----------
        SHAREDREF_THREADSAFE, SHAREDREF_TRACK_STATS (1/0, true/false, yes/no, on/off)
    """

    threadsafe: bool = True
    track_stats: bool = True

    @classmethod
    def from_env(cls) -> RuntimeConfig:
        """Build a config from environment variables, falling back to defaults."""
        return cls(
            threadsafe=_env_flag("SHAREDREF_THREADSAFE", True),
            track_stats=_env_flag("SHAREDREF_TRACK_STATS", True),
        )

    def override(self, **kwargs: Any) -> RuntimeConfig:
        """Return a copy with the given fields replaced."""
        known = {f.name for f in fields(self)}
        unknown = sorted(set(kwargs) - known)
        if unknown:
            raise ConfigError(
                f"Unknown config option(s): {', '.join(unknown)}",
                details={"unknown": unknown, "known": sorted(known)},
            )
        return replace(self, **kwargs)


_config_lock = threading.Lock()
_config: RuntimeConfig | None = None


def get_config() -> RuntimeConfig:
    """Return the active config, reading the environment on first use."""
    global _config
    with _config_lock:
        if _config is None:
            _config = RuntimeConfig.from_env()
        return _config


def configure(config: RuntimeConfig | None = None, **overrides: Any) -> RuntimeConfig:
    """
    Replace the active config.

    Args:
        config: Config to install. Defaults to the currently active one.
        **overrides: Fields to change on top of ``config``.

    Returns
    -------
        The config now in effect. Blocks created earlier keep their tier.

    Raises
    ------
        ConfigError: If an override names an unknown option.

    Example:
        >>> configure(threadsafe=False)
        RuntimeConfig(threadsafe=False, track_stats=True)
    """
    global _config
    base = config if config is not None else get_config()
    new = base.override(**overrides) if overrides else base
    with _config_lock:
        _config = new
    return new
