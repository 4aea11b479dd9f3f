"""Device discovery through the serialosc daemon."""

import logging
import functools
import queue
import threading
import time
from typing import Any, Optional

from gridosc.exceptions import ConnectionTimeoutError, ErrorContext, MalformedMessageError
from gridosc.models import DeviceDescriptor, GridOscConfig, normalize_prefix
from gridosc.transport import OscEndpoint

from .event_queue import KeyEventQueue
from .grid import GridSession

logger = logging.getLogger(__name__)


class DiscoveryClient:
    """
    OSC connection to serialosc.

    Device notifications (/serialosc/device, /serialosc/add and
    /serialosc/remove) are turned into DeviceDescriptors and put on `events`,
    an unbounded queue unless the caller supplies a bounded one. A put on a
    full queue waits for space until the client is closed.
    """

    def __init__(
        self,
        endpoint: OscEndpoint,
        events: Optional["queue.Queue[DeviceDescriptor]"] = None,
        config: Optional[GridOscConfig] = None,
    ):
        """
        Register notification handlers on an endpoint bound to the daemon.

        Args:
            endpoint: Transport addressed to serialosc (not yet started)
            events: Queue receiving DeviceDescriptors (created if omitted)
            config: Connection settings
        """
        self._config = config or GridOscConfig()
        self._endpoint = endpoint
        self._events: queue.Queue[DeviceDescriptor] = events if events is not None else queue.Queue()
        self._error_lock = threading.Lock()
        self._last_error: Optional[MalformedMessageError] = None
        self._closing = threading.Event()

        for address in ("/serialosc/device", "/serialosc/add"):
            self._endpoint.handle(address, functools.partial(self._handle_add, address))
        self._endpoint.handle(
            "/serialosc/remove", functools.partial(self._handle_remove, "/serialosc/remove")
        )

    @classmethod
    def dial(
        cls,
        config: Optional[GridOscConfig] = None,
        events: Optional["queue.Queue[DeviceDescriptor]"] = None,
    ) -> "DiscoveryClient":
        """
        Open a connection to serialosc at config.daemon_host:config.daemon_port.

        Raises:
            OSError: If the local socket cannot be bound
        """
        config = config or GridOscConfig()
        endpoint = OscEndpoint(
            config.daemon_host,
            config.daemon_port,
            listen_host=config.listen_host,
            poll_interval=config.poll_interval,
        )
        client = cls(endpoint, events=events, config=config)
        endpoint.start()
        return client

    @property
    def events(self) -> "queue.Queue[DeviceDescriptor]":
        return self._events

    @property
    def last_error(self) -> Optional[MalformedMessageError]:
        with self._error_lock:
            return self._last_error

    def list_devices(self) -> None:
        """
        Ask serialosc for every device it knows about.

        Each device is reported as a /serialosc/device notification and ends
        up on `events`.
        """
        host, port = self._endpoint.host_port()
        self._endpoint.send("/serialosc/list", host, port)

    def notify(self) -> None:
        """Ask serialosc to report the next device addition or removal."""
        host, port = self._endpoint.host_port()
        self._endpoint.send("/serialosc/notify", host, port)

    def wait_for_device(self, timeout: float) -> DeviceDescriptor:
        """
        Wait for the first device that is present (not a removal).

        Args:
            timeout: Overall budget in seconds

        Raises:
            ConnectionTimeoutError: If no device is reported in time
            MalformedMessageError: If a malformed notification arrived and
                                   config.ignore_malformed is False
        """
        deadline = time.monotonic() + timeout
        while True:
            error = self.last_error
            if error is not None:
                raise error

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise ConnectionTimeoutError("a device from serialosc", timeout)

            try:
                # slices keep a malformed-notification failure from waiting out the budget
                descriptor = self._events.get(timeout=min(remaining, self._config.poll_interval))
            except queue.Empty:
                continue

            if descriptor.removed:
                logger.debug(f"Ignoring removal of {descriptor.id} while waiting for a device")
                continue
            return descriptor

    def _parse(self, address: str, args: tuple[Any, ...], removed: bool) -> Optional[DeviceDescriptor]:
        if (
            len(args) != 3
            or not isinstance(args[0], str)
            or not isinstance(args[1], str)
            or not isinstance(args[2], int)
            or isinstance(args[2], bool)
        ):
            if self._config.ignore_malformed:
                logger.debug(f"Ignoring malformed {address} {list(args)!r}")
                return None
            error = MalformedMessageError(address, args, "string id, string type, int port")
            logger.warning(f"Malformed serialosc notification: {error.technical_message}")
            with self._error_lock:
                self._last_error = error
            return None
        return DeviceDescriptor(id=args[0], type=args[1], port=args[2], removed=removed)

    def _deliver(self, descriptor: DeviceDescriptor) -> None:
        while not self._closing.is_set():
            try:
                self._events.put(descriptor, timeout=self._config.poll_interval)
                return
            except queue.Full:
                continue
        logger.debug(f"Discarding {descriptor} reported during shutdown")

    def _handle_add(self, address: str, *args: Any) -> None:
        descriptor = self._parse(address, args, removed=False)
        if descriptor is not None:
            logger.info(f"serialosc reports {descriptor.type} {descriptor.id} on port {descriptor.port}")
            self._deliver(descriptor)

    def _handle_remove(self, address: str, *args: Any) -> None:
        descriptor = self._parse(address, args, removed=True)
        if descriptor is not None:
            logger.info(f"serialosc reports {descriptor.id} removed")
            self._deliver(descriptor)

    @property
    def closed(self) -> bool:
        return self._closing.is_set()

    def close(self) -> None:
        """Stop the receive loop, releasing a handler blocked on a full `events`."""
        self._closing.set()
        self._endpoint.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def connect(
    prefix: Optional[str] = None,
    events: Optional[KeyEventQueue] = None,
    config: Optional[GridOscConfig] = None,
) -> GridSession:
    """
    Connect to the first grid serialosc reports.

    Waits up to config.connect_timeout for serialosc to report a device,
    dials it, then waits up to config.handshake_timeout for the grid to
    announce its id.

    Args:
        prefix: OSC prefix for the session (defaults to config.default_prefix)
        events: Queue that receives the grid's key events
        config: Connection settings

    Returns:
        A session whose id is populated

    Raises:
        ValueError: If prefix does not start with "/"
        ConnectionTimeoutError: If no device is found or it never announces its id
        TransportError: If the list request or the handshake cannot be sent
        MalformedMessageError: If config.ignore_malformed is False and a
                               malformed message arrives during connect
    """
    config = config or GridOscConfig()
    if prefix:
        prefix = normalize_prefix(prefix)

    with ErrorContext("discover a grid via serialosc", logger):
        with DiscoveryClient.dial(config) as discovery:
            discovery.list_devices()
            descriptor = discovery.wait_for_device(config.connect_timeout)

    with ErrorContext(f"dial grid {descriptor.id} on port {descriptor.port}", logger):
        session = GridSession.dial(
            config.daemon_host, descriptor.port, prefix=prefix, events=events, config=config
        )

    if not session.wait_ready(config.handshake_timeout):
        session.close()
        if session.last_error is not None:
            raise session.last_error
        raise ConnectionTimeoutError(
            f"grid {descriptor.id} to announce its id", config.handshake_timeout
        )

    logger.info(f"Connected to {session!r}")
    return session
