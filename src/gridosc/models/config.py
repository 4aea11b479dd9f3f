"""Client configuration model."""

import logging
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, Field, ValidationError, field_validator

from gridosc.exceptions import ConfigValidationError

from .enums import OverflowPolicy

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".gridosc" / "config.json"


def normalize_prefix(prefix: str) -> str:
    """
    Check an OSC prefix and drop any trailing slash.

    Raises:
        ValueError: If the prefix does not start with "/"
    """
    if not prefix.startswith("/"):
        raise ValueError(f"prefix must start with '/', got {prefix!r}")
    return prefix.rstrip("/") or "/"


class GridOscConfig(BaseModel):
    """
    Connection settings for the daemon and grid sessions.

    An instance is passed explicitly to `connect`, `DiscoveryClient` and
    `GridSession.dial`; there are no module-level defaults to mutate.
    """

    # Daemon
    daemon_host: str = Field(default="localhost", description="Host running serialosc")
    daemon_port: int = Field(
        default=12002, ge=0, le=65535, description="serialosc discovery port"
    )

    # Local reply endpoint
    listen_host: str = Field(
        default="127.0.0.1", description="Local address replies are sent to (port is ephemeral)"
    )
    default_prefix: str = Field(
        default="/gridosc", description="OSC prefix announced to the grid when none is given"
    )

    # Timeouts
    connect_timeout: float = Field(
        default=5.0, gt=0, description="Seconds to wait for serialosc to report a device"
    )
    handshake_timeout: float = Field(
        default=1.0, gt=0, description="Seconds to wait for the grid to announce its id"
    )

    # Key events
    event_queue_size: int = Field(
        default=256, ge=1, description="Capacity of the key event queue"
    )
    overflow_policy: OverflowPolicy = Field(
        default=OverflowPolicy.BLOCK,
        description=(
            "What happens when the key event queue is full. 'block' stalls all inbound "
            "processing for the session until the application drains the queue; "
            "'drop_oldest' discards the oldest event instead."
        ),
    )

    # Inbound validation
    ignore_malformed: bool = Field(
        default=True,
        description=(
            "Silently drop inbound messages with unexpected arguments. When False, "
            "a malformed message is recorded as an error and the session is closed."
        ),
    )

    poll_interval: float = Field(
        default=0.05, gt=0, description="Receive loop shutdown poll interval (seconds)"
    )

    @field_validator("default_prefix")
    @classmethod
    def validate_prefix(cls, value: str) -> str:
        return normalize_prefix(value)

    @classmethod
    def load(cls, path: Optional[Union[str, Path]] = None) -> "GridOscConfig":
        """
        Read settings from a JSON file; a missing file gives the defaults.

        Args:
            path: Config file (defaults to ~/.gridosc/config.json)

        Raises:
            ConfigValidationError: If the file is not JSON or a value is invalid
        """
        path = Path(path) if path is not None else DEFAULT_CONFIG_PATH
        if not path.exists():
            logger.debug(f"No config at {path}, using defaults")
            return cls()
        try:
            return cls.model_validate_json(path.read_text(encoding="utf-8"))
        except ValidationError as e:
            raise ConfigValidationError(path, e) from e

    def save(self, path: Optional[Union[str, Path]] = None) -> Path:
        """Write settings as JSON (defaults to ~/.gridosc/config.json) and return the path."""
        path = Path(path) if path is not None else DEFAULT_CONFIG_PATH
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return path
