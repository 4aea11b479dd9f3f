"""Off-device LED frame buffer."""

import logging
from collections.abc import Iterator, Sequence

import numpy as np

from gridosc.devices.protocols import LEVEL_OFF, LEVEL_ON, TILE_SIZE, GridOutput
from gridosc.exceptions import FrameBufferBoundsError

logger = logging.getLogger(__name__)


def _bits(mask: int) -> list[int]:
    """Expand an 8-bit mask into 8 levels, bit 0 first."""
    return [LEVEL_ON if (int(mask) >> bit) & 1 else LEVEL_OFF for bit in range(TILE_SIZE)]


class FrameBuffer:
    """
    In-memory grid of LED levels that is pushed to a device with `render`.

    Supports the same LED operations as GridSession, but nothing is sent
    until `render` is called. Levels are stored row-major in a flat numpy
    array (`levels`), so cell (x, y) lives at index x + y * width.

    On/off operations write LEVEL_ON (15) or LEVEL_OFF (0). Level operations
    store values verbatim; clamping to [0, 15] is up to the caller.

    Width and height must be multiples of 8 so the buffer splits into whole
    tiles. Writes that fall outside the buffer raise FrameBufferBoundsError
    before any cell changes.

    The buffer is not synchronized. Callers sharing one between threads
    must hold their own lock around mutations and `render`.
    """

    def __init__(self, width: int, height: int):
        """
        Create a buffer with every level at 0.

        Raises:
            FrameBufferBoundsError: If width or height is negative or not a
                                    multiple of 8
        """
        for name, value in (("width", width), ("height", height)):
            if value < 0 or value % TILE_SIZE:
                raise FrameBufferBoundsError(
                    f"{name} must be a non-negative multiple of {TILE_SIZE}, got {value}"
                )
        self._width = width
        self._height = height
        self.levels = np.zeros(width * height, dtype=np.int64)

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    def index(self, x: int, y: int) -> int:
        """Flat index of cell (x, y)."""
        if not (0 <= x < self._width and 0 <= y < self._height):
            raise FrameBufferBoundsError(
                f"cell ({x}, {y}) is outside the {self._width}x{self._height} buffer"
            )
        return x + y * self._width

    def level(self, x: int, y: int) -> int:
        return int(self.levels[self.index(x, y)])

    def _check_run(self, offset: int, count: int, limit: int, axis: str) -> None:
        if offset < 0 or count > limit - offset:
            raise FrameBufferBoundsError(
                f"run of {count} cells at offset {offset} does not fit {axis} {limit}"
            )

    def _check_tile(self, x_offset: int, y_offset: int) -> None:
        if x_offset % TILE_SIZE or y_offset % TILE_SIZE:
            raise FrameBufferBoundsError(
                f"tile offset ({x_offset}, {y_offset}) is not a multiple of {TILE_SIZE}"
            )
        self._check_run(x_offset, TILE_SIZE, self._width, "width")
        self._check_run(y_offset, TILE_SIZE, self._height, "height")

    def _tile_view(self, x_offset: int, y_offset: int) -> np.ndarray:
        grid = self.levels.reshape(self._height, self._width)
        return grid[y_offset:y_offset + TILE_SIZE, x_offset:x_offset + TILE_SIZE]

    # On/off operations

    def led_set(self, x: int, y: int, state: int) -> None:
        self.led_level_set(x, y, state * LEVEL_ON)

    def led_all(self, state: int) -> None:
        self.led_level_all(state * LEVEL_ON)

    def led_map(self, x_offset: int, y_offset: int, rows: Sequence[int]) -> None:
        """Set a tile from eight row bitmasks; bit n of rows[y] is column n."""
        if len(rows) != TILE_SIZE:
            raise ValueError(f"led_map needs {TILE_SIZE} row bitmasks, got {len(rows)}")
        self.led_level_map(x_offset, y_offset, [level for mask in rows for level in _bits(mask)])

    def led_row(self, x_offset: int, y: int, *states: int) -> None:
        """
        Set cells along row y from bitmasks, 8 cells per mask.

        Bit n of states[i] is the cell at x_offset + 8 * i + n.
        """
        self.led_level_row(x_offset, y, [level for mask in states for level in _bits(mask)])

    def led_col(self, x: int, y_offset: int, *states: int) -> None:
        """Set cells down column x from bitmasks; bit n of states[i] is row y_offset + 8 * i + n."""
        self.led_level_col(x, y_offset, [level for mask in states for level in _bits(mask)])

    # Level operations

    def led_level_set(self, x: int, y: int, level: int) -> None:
        self.levels[self.index(x, y)] = level

    def led_level_all(self, level: int) -> None:
        self.levels[:] = level

    def led_level_map(self, x_offset: int, y_offset: int, levels: Sequence[int]) -> None:
        """Write 64 row-major levels into the tile at (x_offset, y_offset)."""
        if len(levels) != TILE_SIZE * TILE_SIZE:
            raise ValueError(f"led_level_map needs {TILE_SIZE * TILE_SIZE} levels, got {len(levels)}")
        self._check_tile(x_offset, y_offset)
        self._tile_view(x_offset, y_offset)[:] = np.asarray(levels).reshape(TILE_SIZE, TILE_SIZE)

    def led_level_row(self, x_offset: int, y: int, levels: Sequence[int]) -> None:
        self._check_run(x_offset, len(levels), self._width, "width")
        start = self.index(0, y) + x_offset
        self.levels[start:start + len(levels)] = levels

    def led_level_col(self, x: int, y_offset: int, levels: Sequence[int]) -> None:
        self._check_run(y_offset, len(levels), self._height, "height")
        start = self.index(x, 0) + y_offset * self._width
        self.levels[start:start + len(levels) * self._width:self._width] = levels

    # Rendering

    def level_map(self, x_offset: int, y_offset: int) -> list[int]:
        """The 64 row-major levels of the tile at (x_offset, y_offset)."""
        self._check_tile(x_offset, y_offset)
        return [int(level) for level in self._tile_view(x_offset, y_offset).ravel()]

    def tiles(self) -> Iterator[tuple[int, int]]:
        """Tile offsets in render order: rows of tiles top to bottom, left to right."""
        for y_offset in range(0, self._height, TILE_SIZE):
            for x_offset in range(0, self._width, TILE_SIZE):
                yield x_offset, y_offset

    def render(self, output: GridOutput) -> None:
        """
        Send the whole buffer to a device, one led_level_map per tile.

        Not atomic: if a send fails, the tiles already sent stay lit and the
        error is raised unchanged. The device shows a mix of old and new
        frames until a later render succeeds.
        """
        for x_offset, y_offset in self.tiles():
            output.led_level_map(x_offset, y_offset, self.level_map(x_offset, y_offset))
        logger.debug(f"Rendered {self._width}x{self._height} buffer")
