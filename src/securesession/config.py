"""Configuration for secure sessions."""

import logging
import os
from dataclasses import dataclass


ENV_PREFIX = "SECURESESSION_"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


@dataclass
class SessionConfig:
    """Tunable session settings. Protocol constants live in ``types``."""
    max_payload_size: int = 64 * 1024
    replay_protection: bool = False
    replay_window: int = 200
    log_level: int = logging.INFO

    def __post_init__(self) -> None:
        if self.max_payload_size <= 0:
            raise ValueError(f"max_payload_size must be positive, got {self.max_payload_size}")
        if self.replay_window < 0:
            raise ValueError(f"replay_window must be non-negative, got {self.replay_window}")

    @classmethod
    def from_env(cls) -> "SessionConfig":
        """Build a config from ``SECURESESSION_*`` environment variables."""
        defaults = cls()
        return cls(
            max_payload_size=_env_int("MAX_PAYLOAD_SIZE", defaults.max_payload_size),
            replay_protection=_env_bool("REPLAY_PROTECTION", defaults.replay_protection),
            replay_window=_env_int("REPLAY_WINDOW", defaults.replay_window),
            log_level=_env_log_level("LOG_LEVEL", defaults.log_level),
        )


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(ENV_PREFIX + name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{ENV_PREFIX + name} must be an integer, got {raw!r}") from e


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(ENV_PREFIX + name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"{ENV_PREFIX + name} must be a boolean, got {raw!r}")


def _env_log_level(name: str, default: int) -> int:
    raw = os.getenv(ENV_PREFIX + name)
    if raw is None:
        return default
    level = logging.getLevelName(raw.strip().upper())
    if not isinstance(level, int):
        raise ValueError(f"{ENV_PREFIX + name} is not a logging level: {raw!r}")
    return level
