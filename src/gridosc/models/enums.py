"""Enumerations for grid devices."""

from enum import Enum, IntEnum


class KeyState(IntEnum):
    """Button transition reported by /grid/key."""

    RELEASED = 0
    PRESSED = 1


class OverflowPolicy(str, Enum):
    """What the key event queue does when the application stops draining it."""

    BLOCK = "block"  # Dispatch thread waits for space; inbound processing stalls
    DROP_OLDEST = "drop_oldest"  # Oldest queued event is discarded to make room
