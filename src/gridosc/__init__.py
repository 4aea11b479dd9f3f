"""gridosc: OSC client for monome grids via serialosc."""

__version__ = "0.1.0"

from .devices import DiscoveryClient, GridSession, KeyEventQueue, connect
from .led import FrameBuffer
from .models import ButtonEvent, DeviceDescriptor, GridOscConfig

__all__ = [
    "ButtonEvent",
    "DeviceDescriptor",
    "DiscoveryClient",
    "FrameBuffer",
    "GridOscConfig",
    "GridSession",
    "KeyEventQueue",
    "connect",
]
