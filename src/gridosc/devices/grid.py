"""Session with one monome grid."""

import logging
import threading
from collections.abc import Sequence
from typing import Any, Optional

from gridosc.exceptions import MalformedMessageError, TransportError
from gridosc.models import ButtonEvent, GridOscConfig, normalize_prefix
from gridosc.transport import OscEndpoint

from .event_queue import KeyEventQueue
from .protocols import TILE_SIZE

logger = logging.getLogger(__name__)


def _is_int(value: Any) -> bool:
    # python-osc decodes OSC true/false as bool, which is an int subclass
    return isinstance(value, int) and not isinstance(value, bool)


class GridSession:
    """
    A live connection to one grid.

    The session mirrors the attributes the grid announces (id, size, prefix,
    rotation) and republishes key presses as ButtonEvents on `events`.
    Attributes are eventually consistent: they read as ""/0 until the grid's
    announcement has been dispatched. One plain lock guards them, so accessors
    are mutually exclusive with each other and with the receive thread's
    updates; concurrent readers take turns.

    LED operations are sent immediately and raise the transport's error
    unchanged.

    Use `GridSession.dial` to open a session; the constructor only wires
    handlers onto an existing endpoint.
    """

    def __init__(
        self,
        endpoint: OscEndpoint,
        prefix: Optional[str] = None,
        events: Optional[KeyEventQueue] = None,
        config: Optional[GridOscConfig] = None,
    ):
        """
        Initialize the session state and register handlers on the endpoint.

        Args:
            endpoint: Transport bound to the grid's port (not yet started)
            prefix: OSC prefix to announce (defaults to config.default_prefix)
            events: Queue for key events (defaults to one built from config)
            config: Connection settings

        Raises:
            ValueError: If prefix does not start with "/"
        """
        self._config = config or GridOscConfig()
        self._endpoint = endpoint

        # Guards every mirrored attribute below
        self._lock = threading.Lock()
        self._id = ""
        self._width = 0
        self._height = 0
        self._prefix = normalize_prefix(prefix) if prefix else self._config.default_prefix
        self._rotation = 0
        self._last_error: Optional[MalformedMessageError] = None
        self._key_prefixes: set[str] = set()

        if events is None:
            events = KeyEventQueue(self._config.event_queue_size, self._config.overflow_policy)
        self._events = events
        self._ready = threading.Event()
        self._closing = threading.Event()

        self._register_key_handler(self._prefix)
        self._endpoint.handle("/sys/port", self._handle_port)
        self._endpoint.handle("/sys/id", self._handle_id)
        self._endpoint.handle("/sys/size", self._handle_size)
        self._endpoint.handle("/sys/prefix", self._handle_prefix)
        self._endpoint.handle("/sys/rotation", self._handle_rotation)

    @classmethod
    def dial(
        cls,
        host: str,
        port: int,
        prefix: Optional[str] = None,
        events: Optional[KeyEventQueue] = None,
        config: Optional[GridOscConfig] = None,
    ) -> "GridSession":
        """
        Connect to a grid and perform the handshake.

        Announces this client's reply host, reply port and prefix to the
        grid, then requests /sys/info. The handshake is all-or-nothing: if
        any send fails the endpoint is closed and that error is raised.

        Args:
            host: Host of the grid's OSC server (normally the daemon host)
            port: The grid's port as reported by serialosc
            prefix: OSC prefix for key and LED messages
            events: Queue for key events
            config: Connection settings

        Raises:
            ValueError: If prefix does not start with "/"
            OSError: If the local socket cannot be bound
            TransportError: If a handshake message cannot be sent
        """
        config = config or GridOscConfig()
        if prefix:
            prefix = normalize_prefix(prefix)
        endpoint = OscEndpoint(
            host, port, listen_host=config.listen_host, poll_interval=config.poll_interval
        )
        session = cls(endpoint, prefix=prefix, events=events, config=config)
        endpoint.start()
        session._handshake()
        logger.info(f"Dialed grid at {host}:{port} with prefix {session.prefix}")
        return session

    def _handshake(self) -> None:
        host, port = self._endpoint.host_port()
        steps = (
            ("/sys/host", (host,)),
            ("/sys/port", (port,)),
            ("/sys/prefix", (self.prefix,)),
            ("/sys/info", ()),
        )
        for address, args in steps:
            try:
                self._endpoint.send(address, *args)
            except TransportError as e:
                logger.debug(f"Handshake failed at {address}: {e.technical_message}")
                self.close()
                raise

    # Mirrored attributes

    @property
    def id(self) -> str:
        with self._lock:
            return self._id

    @property
    def width(self) -> int:
        with self._lock:
            return self._width

    @property
    def height(self) -> int:
        with self._lock:
            return self._height

    @property
    def prefix(self) -> str:
        with self._lock:
            return self._prefix

    @property
    def rotation(self) -> int:
        with self._lock:
            return self._rotation

    @property
    def last_error(self) -> Optional[MalformedMessageError]:
        """The malformed message that closed the session, if any."""
        with self._lock:
            return self._last_error

    @property
    def events(self) -> KeyEventQueue:
        return self._events

    @property
    def closed(self) -> bool:
        return self._closing.is_set()

    def wait_ready(self, timeout: Optional[float] = None) -> bool:
        """
        Wait until the grid has announced its id.

        Returns:
            True if the id is populated, False on timeout or if the session
            was closed first
        """
        self._ready.wait(timeout)
        return bool(self.id)

    # Inbound handlers, run on the endpoint's receive thread

    def _malformed(self, address: str, args: Sequence[Any], expected: str) -> None:
        if self._config.ignore_malformed:
            logger.debug(f"Ignoring malformed {address} {list(args)!r}, expected {expected}")
            return

        error = MalformedMessageError(address, args, expected)
        logger.warning(f"Closing grid session: {error.technical_message}")
        with self._lock:
            self._last_error = error
        self.close()

    def _register_key_handler(self, prefix: str) -> None:
        if prefix in self._key_prefixes:
            return
        self._key_prefixes.add(prefix)
        self._endpoint.handle(f"{prefix}/grid/key", self._handle_key)

    def _handle_port(self, *args: Any) -> None:
        logger.debug(f"Grid confirmed reply port {list(args)!r}")

    def _handle_id(self, *args: Any) -> None:
        if len(args) != 1 or not isinstance(args[0], str):
            self._malformed("/sys/id", args, "one string")
            return
        with self._lock:
            self._id = args[0]
        logger.debug(f"Grid id: {args[0]}")
        if args[0]:
            self._ready.set()

    def _handle_size(self, *args: Any) -> None:
        if len(args) != 2 or not all(_is_int(a) for a in args):
            self._malformed("/sys/size", args, "two ints")
            return
        with self._lock:
            self._width, self._height = args
        logger.debug(f"Grid size: {args[0]}x{args[1]}")

    def _handle_prefix(self, *args: Any) -> None:
        if len(args) != 1 or not isinstance(args[0], str):
            self._malformed("/sys/prefix", args, "one string")
            return
        with self._lock:
            self._prefix = args[0]
        # Key messages follow the prefix the grid reports
        self._register_key_handler(args[0])
        logger.debug(f"Grid prefix: {args[0]}")

    def _handle_rotation(self, *args: Any) -> None:
        if len(args) != 1 or not _is_int(args[0]):
            self._malformed("/sys/rotation", args, "one int")
            return
        with self._lock:
            self._rotation = args[0]
        logger.debug(f"Grid rotation: {args[0]}")

    def _handle_key(self, *args: Any) -> None:
        if len(args) != 3 or not all(_is_int(a) for a in args):
            self._malformed(f"{self.prefix}/grid/key", args, "three ints")
            return
        self._events.put(ButtonEvent(*args), cancel=self._closing)

    # LED operations

    def _send(self, path: str, *args: Any) -> None:
        self._endpoint.send(self.prefix + path, *args)

    def led_set(self, x: int, y: int, state: int) -> None:
        """Set the LED at (x, y) on (1) or off (0)."""
        self._send("/grid/led/set", x, y, state)

    def led_all(self, state: int) -> None:
        """Set all LEDs on (1) or off (0)."""
        self._send("/grid/led/all", state)

    def led_map(self, x_offset: int, y_offset: int, rows: Sequence[int]) -> None:
        """
        Set an 8x8 tile of LEDs.

        Each of the eight bitmasks is one row of the tile; bit n is column n.
        x_offset and y_offset must be multiples of 8.
        """
        if len(rows) != TILE_SIZE:
            raise ValueError(f"led_map needs {TILE_SIZE} row bitmasks, got {len(rows)}")
        self._send("/grid/led/map", x_offset, y_offset, *rows)

    def led_row(self, x_offset: int, y: int, *states: int) -> None:
        """Set LEDs along row y from x_offset; each bitmask covers 8 columns."""
        self._send("/grid/led/row", x_offset, y, *states)

    def led_col(self, x: int, y_offset: int, *states: int) -> None:
        """Set LEDs down column x from y_offset; each bitmask covers 8 rows."""
        self._send("/grid/led/col", x, y_offset, *states)

    def led_intensity(self, level: int) -> None:
        """Set the overall intensity of the grid's LEDs."""
        self._send("/grid/led/intensity", level)

    def led_level_set(self, x: int, y: int, level: int) -> None:
        """Set the LED at (x, y) to a level in [0, 15]."""
        self._send("/grid/led/level/set", x, y, level)

    def led_level_all(self, level: int) -> None:
        self._send("/grid/led/level/all", level)

    def led_level_map(self, x_offset: int, y_offset: int, levels: Sequence[int]) -> None:
        """Like led_map, with 64 row-major levels instead of bitmasks."""
        if len(levels) != TILE_SIZE * TILE_SIZE:
            raise ValueError(
                f"led_level_map needs {TILE_SIZE * TILE_SIZE} levels, got {len(levels)}"
            )
        self._send("/grid/led/level/map", x_offset, y_offset, *levels)

    def led_level_row(self, x_offset: int, y: int, levels: Sequence[int]) -> None:
        self._send("/grid/led/level/row", x_offset, y, *levels)

    def led_level_col(self, x: int, y_offset: int, levels: Sequence[int]) -> None:
        self._send("/grid/led/level/col", x, y_offset, *levels)

    def close(self) -> None:
        """Close the transport. Further LED operations raise EndpointClosedError."""
        self._closing.set()
        # wake anyone in wait_ready
        self._ready.set()
        self._endpoint.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __repr__(self) -> str:
        return (
            f"GridSession(id={self.id!r}, size={self.width}x{self.height}, "
            f"prefix={self.prefix!r}, rotation={self.rotation})"
        )
