"""Container configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from typing import Mapping

from .errors import ConfigurationError

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _parse_bool(key: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ConfigurationError(f"Invalid boolean for {key}: {raw!r}")


@dataclass(frozen=True)
class ContainerConfig:
    """Settings for a ComponentContainer.

    Attributes:
        name: Container name used in log lines
        eager_prototypes: Build prototype descriptors once during initialize()
        thread_isolation: Hide the store from other threads while initializing
    """

    name: str = "arbor"
    eager_prototypes: bool = True
    thread_isolation: bool = True

    @classmethod
    def from_env(
        cls, prefix: str = "ARBOR_", environ: Mapping[str, str] | None = None
    ) -> ContainerConfig:
        """Read settings from prefixed environment variables.

        ``ARBOR_NAME``, ``ARBOR_EAGER_PROTOTYPES`` and ``ARBOR_THREAD_ISOLATION``
        override the defaults; unset variables keep them.

        Raises:
            ConfigurationError: If a boolean variable cannot be parsed
        """
        environ = os.environ if environ is None else environ
        values = {}
        for f in fields(cls):
            env_key = f"{prefix}{f.name.upper()}"
            if env_key not in environ:
                continue
            raw = environ[env_key]
            values[f.name] = _parse_bool(env_key, raw) if f.type in ("bool", bool) else raw

        if "name" in values and not values["name"].strip():
            raise ConfigurationError(f"{prefix}NAME must not be empty")
        return cls(**values)
