"""Local LED state."""

from .buffer import FrameBuffer

__all__ = ["FrameBuffer"]
