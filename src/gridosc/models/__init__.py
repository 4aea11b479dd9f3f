"""Data models for gridosc."""

from .config import GridOscConfig, normalize_prefix
from .enums import KeyState, OverflowPolicy
from .events import ButtonEvent, DeviceDescriptor

__all__ = [
    # Events
    "ButtonEvent",
    "DeviceDescriptor",
    # Config
    "GridOscConfig",
    "normalize_prefix",
    # Enums
    "KeyState",
    "OverflowPolicy",
]
