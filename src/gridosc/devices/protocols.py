"""LED operation protocol shared by grid sessions and frame buffers."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

# Number of cells along one side of a tile
TILE_SIZE = 8

# Brightness of an "on" LED when on/off operations are expressed as levels
LEVEL_ON = 15
LEVEL_OFF = 0


class GridOutput(Protocol):
    """
    The LED vocabulary of a monome grid.

    `GridSession` sends each operation to the device; `FrameBuffer` applies it
    to an in-memory grid and pushes the result later with `render`.
    """

    def led_set(self, x: int, y: int, state: int) -> None:
        """Set one LED on (1) or off (0)."""
        ...

    def led_all(self, state: int) -> None:
        """Set every LED on (1) or off (0)."""
        ...

    def led_map(self, x_offset: int, y_offset: int, rows: Sequence[int]) -> None:
        """
        Set an 8x8 tile from eight row bitmasks.

        Bit n of rows[y] is the LED at (x_offset + n, y_offset + y).
        Offsets must be multiples of 8.
        """
        ...

    def led_row(self, x_offset: int, y: int, *states: int) -> None:
        """Set a run of LEDs along row y, 8 per bitmask, starting at x_offset."""
        ...

    def led_col(self, x: int, y_offset: int, *states: int) -> None:
        """Set a run of LEDs down column x, 8 per bitmask, starting at y_offset."""
        ...

    def led_level_set(self, x: int, y: int, level: int) -> None:
        """Set one LED to a brightness level in [0, 15]."""
        ...

    def led_level_all(self, level: int) -> None:
        """Set every LED to a brightness level."""
        ...

    def led_level_map(self, x_offset: int, y_offset: int, levels: Sequence[int]) -> None:
        """Set an 8x8 tile from 64 row-major levels. Offsets must be multiples of 8."""
        ...

    def led_level_row(self, x_offset: int, y: int, levels: Sequence[int]) -> None:
        """Set a run of levels along row y starting at x_offset."""
        ...

    def led_level_col(self, x: int, y_offset: int, levels: Sequence[int]) -> None:
        """Set a run of levels down column x starting at y_offset."""
        ...
