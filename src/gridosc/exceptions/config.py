"""Configuration file exceptions."""

from pathlib import Path
from typing import Union

from pydantic import ValidationError

from .base import GridOscError

# Matched against the dotted field name of each failing field
_FIELD_HINTS = {
    "port": "Ports must be in the range 0-65535 (serialosc listens on 12002).",
    "timeout": "Timeouts are in seconds and must be greater than zero.",
    "prefix": "Prefixes must start with '/', for example '/gridosc'.",
}


class ConfigurationError(GridOscError):
    """Configuration is invalid or cannot be loaded."""

    recoverable = True


class ConfigValidationError(ConfigurationError):
    """
    A config file did not parse into a valid GridOscConfig.

    A file that is not JSON at all is reported the same way; its single
    problem has an empty field name.
    """

    def __init__(self, path: Union[str, Path], error: ValidationError):
        problems = [(".".join(str(part) for part in e["loc"]), e["msg"]) for e in error.errors()]
        self.path = str(path)
        self.fields = tuple(field for field, _ in problems)

        hints = [hint for key, hint in _FIELD_HINTS.items() if any(key in f for f in self.fields)]
        hints.append(f"Fix or delete {self.path} to use the defaults.")
        summary = "; ".join(f"{field}: {msg}" if field else msg for field, msg in problems)

        super().__init__(
            f"Invalid configuration in {self.path}",
            f"{self.path}: {summary}",
            recovery_hint=" ".join(hints),
        )
