"""Bi-directional OSC endpoint over UDP."""

import logging
import threading
from typing import Any, Callable, Optional

from pythonosc.dispatcher import Dispatcher
from pythonosc.osc_message_builder import BuildError, OscMessageBuilder
from pythonosc.osc_server import BlockingOSCUDPServer

from gridosc.exceptions import EndpointClosedError, wrap_transport_error

logger = logging.getLogger(__name__)

Handler = Callable[..., None]


class OscEndpoint:
    """
    A local UDP socket that sends OSC messages to one remote peer and
    dispatches the messages it receives.

    Outgoing messages are sent from the bound socket, so the peer can reply
    to `host_port()`. Incoming messages are decoded by python-osc and handed,
    one at a time and in arrival order, to the handler registered for their
    exact address. The receive loop runs on a single daemon thread.
    """

    def __init__(
        self,
        remote_host: str,
        remote_port: int,
        listen_host: str = "127.0.0.1",
        poll_interval: float = 0.05,
    ):
        """
        Bind the local socket.

        Args:
            remote_host: Host messages are sent to
            remote_port: Port messages are sent to
            listen_host: Local address to bind (port is chosen by the OS)
            poll_interval: How often the receive loop checks for shutdown (seconds)

        Raises:
            OSError: If the socket cannot be bound
        """
        self._remote = (remote_host, remote_port)
        self._poll_interval = poll_interval
        self._dispatcher = Dispatcher()
        self._dispatcher.set_default_handler(self._unhandled)
        self._server = BlockingOSCUDPServer((listen_host, 0), self._dispatcher)
        self._thread: Optional[threading.Thread] = None
        self._send_lock = threading.Lock()
        self._state_lock = threading.Lock()
        self._closed = False

    @property
    def remote(self) -> tuple[str, int]:
        """The (host, port) messages are sent to."""
        return self._remote

    @property
    def closed(self) -> bool:
        with self._state_lock:
            return self._closed

    def host_port(self) -> tuple[str, int]:
        """Return the local (host, port) the peer should reply to."""
        host, port = self._server.server_address[:2]
        return host, port

    def handle(self, address: str, handler: Handler) -> None:
        """
        Register a handler for an exact OSC address.

        The handler is called with the decoded message arguments only.
        Exceptions it raises are logged and do not stop the receive loop.
        """
        def dispatch(_address: str, *args: Any) -> None:
            try:
                handler(*args)
            except Exception as e:
                logger.error(f"Error in OSC handler for {_address}: {e}", exc_info=True)

        self._dispatcher.map(address, dispatch)

    def start(self) -> None:
        """Start the receive loop on a daemon thread."""
        if self._thread is not None:
            logger.warning("OscEndpoint receive loop already running")
            return

        self._thread = threading.Thread(
            target=self._server.serve_forever,
            kwargs={"poll_interval": self._poll_interval},
            name=f"osc-endpoint-{self.host_port()[1]}",
            daemon=True,
        )
        self._thread.start()
        logger.debug(f"Listening on {self.host_port()} for {self._remote}")

    def send(self, address: str, *args: Any) -> None:
        """
        Send one OSC message to the remote peer.

        Strings are encoded as OSC strings; everything else (ints, bools,
        numpy integers) as 32-bit integers.

        Raises:
            EndpointClosedError: If the endpoint has been closed
            TransportError: If the socket send fails
            ValueError: If an argument cannot be encoded
        """
        if self.closed:
            raise EndpointClosedError(address)

        builder = OscMessageBuilder(address=address)
        for arg in args:
            if isinstance(arg, str):
                builder.add_arg(arg, OscMessageBuilder.ARG_TYPE_STRING)
            else:
                builder.add_arg(int(arg), OscMessageBuilder.ARG_TYPE_INT)
        try:
            dgram = builder.build().dgram
        except BuildError as e:
            raise ValueError(f"Cannot encode {address} {args!r}: {e}") from e

        try:
            with self._send_lock:
                self._server.socket.sendto(dgram, self._remote)
        except OSError as e:
            raise wrap_transport_error(e, address) from e

    def close(self) -> None:
        """
        Stop the receive loop and close the socket.

        Idempotent. May be called from a handler running on the receive
        thread; the loop then stops as soon as that handler returns.
        """
        with self._state_lock:
            if self._closed:
                return
            self._closed = True

        if self._thread is None:
            self._server.server_close()
        elif self._thread is threading.current_thread():
            # shutdown() waits for serve_forever, which is running this handler
            threading.Thread(target=self._shutdown, daemon=True).start()
        else:
            self._shutdown()
            self._thread.join(timeout=1.0)
        logger.debug(f"Closed OSC endpoint for {self._remote}")

    def _shutdown(self) -> None:
        self._server.shutdown()
        self._server.server_close()

    def _unhandled(self, address: str, *args: Any) -> None:
        logger.debug(f"Unhandled OSC message {address} {list(args)!r}")

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
