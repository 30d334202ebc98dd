"""Configuration exceptions: bad values in TOML, env vars, or overrides."""

from typing import Any

from .base import GraphLensError


class ConfigurationError(GraphLensError):
    """Base class for configuration-related errors."""


class InvalidConfigError(ConfigurationError):
    """A configuration field failed validation.

    ``key`` is the dotted field name (``layout.debounce_seconds``).
    """

    def __init__(self, key: str, value: Any, reason: str):
        super().__init__(f"Invalid configuration: {key}={value!r}", details={"reason": reason})
        self.key = key
        self.value = value
        self.reason = reason
