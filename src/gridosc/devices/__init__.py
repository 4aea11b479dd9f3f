"""Daemon discovery and grid sessions."""

from .discovery import DiscoveryClient, connect
from .event_queue import KeyEventQueue
from .grid import GridSession
from .protocols import LEVEL_OFF, LEVEL_ON, TILE_SIZE, GridOutput

__all__ = [
    "DiscoveryClient",
    "GridOutput",
    "GridSession",
    "KeyEventQueue",
    "LEVEL_OFF",
    "LEVEL_ON",
    "TILE_SIZE",
    "connect",
]
