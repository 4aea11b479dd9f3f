"""Frame buffer exceptions."""

from .base import GridOscError


class FrameBufferBoundsError(GridOscError, IndexError):
    """
    A frame buffer write or read falls outside the buffer.

    This is a programmer error: the operation is aborted before any cell
    is touched and the error is never recoverable.
    """

    recoverable = False

    def __init__(self, message: str):
        super().__init__(message)
