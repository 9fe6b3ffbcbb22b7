"""
Configuration for binary-update

A single ``UpdateConfig`` value is built once per command and handed to each
component; nothing reads process-wide settings after that.
"""

import os
import shlex
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Mapping, Optional, Tuple

from .constants import (
    CHECK_TIMEOUT,
    CONNECT_TIMEOUT,
    DEFAULT_API_URL,
    DEFAULT_BASE_URL,
    DEFAULT_BINARY_NAME,
    DEFAULT_DIST_NAME,
    DEFAULT_DIST_PATH,
    DEFAULT_HOME_DIR,
    ENV_PREFIX,
    READ_TIMEOUT,
    STASH_DIR_NAME,
)
from .exceptions import ValidationError


def default_stash_dir() -> Path:
    return Path.home() / DEFAULT_HOME_DIR / STASH_DIR_NAME


@dataclass(frozen=True)
class UpdateConfig:
    """Where to find remote versions and where the local binary lives"""

    base_url: str = DEFAULT_BASE_URL
    dist_path: str = DEFAULT_DIST_PATH
    dist_name: str = DEFAULT_DIST_NAME
    binary_name: str = DEFAULT_BINARY_NAME
    install_path: Optional[Path] = None
    stash_dir: Path = field(default_factory=default_stash_dir)
    api_url: Optional[str] = DEFAULT_API_URL
    check_args: Tuple[str, ...] = ("version",)
    version_args: Tuple[str, ...] = ("version",)
    check_timeout: float = CHECK_TIMEOUT
    connect_timeout: float = CONNECT_TIMEOUT
    read_timeout: float = READ_TIMEOUT

    @property
    def timeout(self) -> Tuple[float, float]:
        return (self.connect_timeout, self.read_timeout)

    def with_overrides(self, **overrides) -> "UpdateConfig":
        """Return a copy with every non-None override applied"""
        values = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **_coerce(values))

    @classmethod
    def from_environment(cls, env: Optional[Mapping[str, str]] = None,
                         **overrides) -> "UpdateConfig":
        """Build a config from BINARY_UPDATE_* variables, then apply overrides"""
        if env is None:
            env = os.environ

        values = {}
        for name in cls.__dataclass_fields__:
            raw = env.get(ENV_PREFIX + name.upper())
            if raw is not None and raw != "":
                values[name] = raw

        return cls().with_overrides(**values).with_overrides(**overrides)


def _coerce(values: dict) -> dict:
    """Convert raw string settings to the field types"""
    coerced = {}
    for name, value in values.items():
        if name not in UpdateConfig.__dataclass_fields__:
            raise ValidationError(f"Unknown configuration setting: {name}")

        if name in ("install_path", "stash_dir"):
            value = Path(value).expanduser()
        elif name in ("check_args", "version_args"):
            if isinstance(value, str):
                value = shlex.split(value)
            value = tuple(value)
        elif name in ("check_timeout", "connect_timeout", "read_timeout"):
            try:
                value = float(value)
            except (TypeError, ValueError):
                raise ValidationError(f"Invalid value for {name}: {value!r}")
        elif name in ("base_url", "api_url"):
            value = str(value).rstrip("/")
        coerced[name] = value
    return coerced
