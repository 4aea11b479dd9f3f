"""Device connection and transport exceptions.

This module defines exceptions raised while talking to the daemon or a grid:
- DeviceConnectionError: Base class for connect-time failures
- ConnectionTimeoutError: No device answered, or it never announced its id
- TransportError: A send failed on an open endpoint
- EndpointClosedError: An operation was attempted on a closed endpoint
- MalformedMessageError: An inbound message had unexpected arguments
"""

from typing import Any, Optional, Sequence

from .base import GridOscError


class DeviceConnectionError(GridOscError):
    """Establishing a session with the daemon or a device failed."""
    pass


class ConnectionTimeoutError(DeviceConnectionError):
    """The daemon or device did not answer in time."""

    recoverable = True
    recovery_hint = (
        "Check that serialosc is running and a grid is plugged in. "
        "Increase connect_timeout or handshake_timeout if the device is slow to answer."
    )

    def __init__(self, waiting_for: str, timeout: float):
        """
        Initialize connection timeout error.

        Args:
            waiting_for: What the client was waiting for (e.g. "device list")
            timeout: The budget that elapsed, in seconds
        """
        super().__init__(
            user_message="Connection timed out.",
            technical_message=f"Timed out after {timeout:.2f}s waiting for {waiting_for}",
        )
        self.waiting_for = waiting_for
        self.timeout = timeout


class TransportError(GridOscError):
    """Sending a message over an open endpoint failed."""

    def __init__(self, user_message: str, address: Optional[str] = None, **kwargs):
        """
        Initialize transport error.

        Args:
            user_message: User-friendly error message
            address: The OSC address being sent (if applicable)
        """
        super().__init__(user_message, **kwargs)
        self.address = address


class EndpointClosedError(TransportError):
    """The endpoint has been closed and can no longer send."""

    def __init__(self, address: Optional[str] = None):
        """
        Initialize endpoint closed error.

        Args:
            address: The OSC address that could not be sent
        """
        super().__init__(
            user_message="The connection is closed.",
            technical_message=f"Send to {address} on a closed endpoint",
            address=address,
        )


class MalformedMessageError(GridOscError):
    """An inbound message carried the wrong number or types of arguments."""

    def __init__(self, address: str, args: Sequence[Any], expected: str):
        """
        Initialize malformed message error.

        Args:
            address: The OSC address of the offending message
            args: The arguments that were received
            expected: Human readable description of the expected arguments
        """
        super().__init__(
            user_message=f"Received a malformed {address} message.",
            technical_message=f"{address} expected {expected}, got {list(args)!r}",
        )
        self.address = address
        self.args_received = tuple(args)
        self.expected = expected
