"""Environment-driven engine settings."""

from __future__ import annotations

import functools
import os
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime

from rulextract.errors import InvalidContextError

ENV_DEBUG_RULES = "RULEXTRACT_DEBUG_RULES"
ENV_PROFILE_REGEX = "RULEXTRACT_PROFILE_REGEX"
ENV_REFERENCE_TIME = "RULEXTRACT_REFERENCE_TIME"
ENV_MAX_PASSES = "RULEXTRACT_MAX_PASSES"

DEFAULT_MAX_PASSES = 64

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"", "0", "false", "no", "off"})


def _env_flag(env: Mapping[str, str], name: str) -> bool:
    raw = env.get(name, "").strip().lower()
    if raw in _TRUE_VALUES:
        return True
    if raw in _FALSE_VALUES:
        return False
    raise InvalidContextError(f"{name} must be a boolean flag, got {raw!r}")


def _env_datetime(env: Mapping[str, str], name: str) -> datetime | None:
    raw = env.get(name, "").strip()
    if not raw:
        return None
    try:
        value = datetime.fromisoformat(raw)
    except ValueError as exc:
        raise InvalidContextError(f"{name} must be ISO-8601, got {raw!r}") from exc
    return value.replace(tzinfo=None)


def _env_positive_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise InvalidContextError(f"{name} must be an integer, got {raw!r}") from exc
    if value <= 0:
        raise InvalidContextError(f"{name} must be > 0, got {value}")
    return value


@dataclass(frozen=True, slots=True)
class Settings:
    """Process-level defaults read from ``RULEXTRACT_*`` variables."""

    debug_rules: bool = False
    profile_regex: bool = False
    reference_time: datetime | None = None
    max_passes: int = DEFAULT_MAX_PASSES

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> Settings:
        env = os.environ if env is None else env
        return cls(
            debug_rules=_env_flag(env, ENV_DEBUG_RULES),
            profile_regex=_env_flag(env, ENV_PROFILE_REGEX),
            reference_time=_env_datetime(env, ENV_REFERENCE_TIME),
            max_passes=_env_positive_int(env, ENV_MAX_PASSES, DEFAULT_MAX_PASSES),
        )


@functools.cache
def get_settings() -> Settings:
    """Return settings from the current environment (cached).

    Call ``get_settings.cache_clear()`` after changing the environment.
    """
    return Settings.from_env()
