"""
Centralized error handling utilities.

This module converts low-level errors into gridosc exceptions and provides
a context manager for logging connect-time operations.

## Quick Reference

| Scenario | Use This |
|----------|----------|
| Socket send failed | `raise wrap_transport_error(e, address) from e` |
| Log start/finish/failure of a step | `with ErrorContext("dial grid"): ...` |
| Show an error to a user | `message, hint = format_error_for_display(e)` |
"""

import errno
import logging
from typing import Optional

from .base import GridOscError
from .device import EndpointClosedError, TransportError

logger = logging.getLogger(__name__)


class ErrorContext:
    """
    Log the start, completion or failure of an operation at debug level.

    Exceptions always propagate; the one that ended the block is kept on
    `error`.

    Example:
        ```python
        with ErrorContext("dial grid on port 14656"):
            session = GridSession.dial("localhost", 14656)
        ```
    """

    def __init__(self, operation: str, logger_instance: Optional[logging.Logger] = None):
        self.operation = operation
        self.logger = logger_instance or logger
        self.error: Optional[BaseException] = None

    def __enter__(self):
        self.logger.debug(f"Starting: {self.operation}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            self.logger.debug(f"Completed: {self.operation}")
            return False

        self.error = exc_val

        if isinstance(exc_val, GridOscError):
            self.logger.debug(f"Failed to {self.operation}: {exc_val.technical_message}")
        else:
            self.logger.debug(f"Failed to {self.operation}: {exc_val}", exc_info=True)

        return False


def wrap_transport_error(error: OSError, address: Optional[str] = None) -> TransportError:
    """
    Convert a socket error into a gridosc transport exception.

    A closed socket reports EBADF (or ENOTSOCK on some platforms); that maps to
    EndpointClosedError so callers see the same error as for a closed session.

    Args:
        error: The OSError raised by the socket
        address: The OSC address being sent

    Returns:
        A TransportError describing the failure
    """
    if error.errno in (errno.EBADF, errno.ENOTSOCK):
        return EndpointClosedError(address)

    return TransportError(
        user_message=f"Failed to send {address}: {error}",
        technical_message=f"sendto failed for {address} (errno={error.errno}): {error}",
        address=address,
        recoverable=True,
    )


def format_error_for_display(error: Exception) -> tuple[str, Optional[str]]:
    """
    Format an exception for user display.

    Returns:
        Tuple of (user_message, recovery_hint or None)
    """
    if isinstance(error, GridOscError):
        return error.user_message, error.recovery_hint

    error_type = type(error).__name__
    return f"{error_type}: {error}", None
