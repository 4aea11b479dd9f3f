"""Pytest fixtures for tests."""

import threading
from unittest.mock import Mock

import pytest
from pythonosc.dispatcher import Dispatcher
from pythonosc.osc_server import BlockingOSCUDPServer
from pythonosc.udp_client import SimpleUDPClient

from gridosc.models import GridOscConfig


@pytest.fixture
def config():
    """Config with short timeouts for tests."""
    return GridOscConfig(
        daemon_host="127.0.0.1",
        connect_timeout=1.0,
        handshake_timeout=1.0,
        poll_interval=0.01,
    )


@pytest.fixture
def mock_endpoint():
    """Mock OscEndpoint that records registered handlers by address."""
    endpoint = Mock()
    endpoint.handlers = {}
    endpoint.handle.side_effect = lambda address, handler: endpoint.handlers.__setitem__(
        address, handler
    )
    endpoint.host_port.return_value = ("127.0.0.1", 40000)
    return endpoint


class FakeOscPeer:
    """A python-osc server on loopback that records messages and can reply."""

    def __init__(self):
        self.dispatcher = Dispatcher()
        self.received = []
        self.dispatcher.set_default_handler(self._record)
        self.server = BlockingOSCUDPServer(("127.0.0.1", 0), self.dispatcher)
        self.port = self.server.server_address[1]
        self.thread = threading.Thread(
            target=self.server.serve_forever, kwargs={"poll_interval": 0.01}, daemon=True
        )

    def _record(self, address, *args):
        self.received.append((address, args))

    def on(self, address, handler):
        def record_and_handle(_address, *args):
            self._record(_address, *args)
            handler(*args)

        self.dispatcher.map(address, record_and_handle)

    def reply(self, host, port, address, *args):
        SimpleUDPClient(host, port).send_message(address, list(args))

    def start(self):
        self.thread.start()
        return self

    def stop(self):
        self.server.shutdown()
        self.server.server_close()


@pytest.fixture
def osc_peer():
    """Running loopback OSC peer, stopped after the test."""
    peer = FakeOscPeer().start()
    yield peer
    peer.stop()


@pytest.fixture
def fake_grid(osc_peer):
    """
    Loopback peer that behaves like a grid.

    Remembers the announced reply host/port and answers /sys/info with
    id m1000286, size 16x8, the announced prefix and rotation 0.
    """
    state = {}

    def on_info(*args):
        host, port = state["host"], state["port"]
        osc_peer.reply(host, port, "/sys/id", "m1000286")
        osc_peer.reply(host, port, "/sys/size", 16, 8)
        osc_peer.reply(host, port, "/sys/prefix", state.get("prefix", "/gridosc"))
        osc_peer.reply(host, port, "/sys/rotation", 0)

    osc_peer.on("/sys/host", lambda host: state.__setitem__("host", host))
    osc_peer.on("/sys/port", lambda port: state.__setitem__("port", port))
    osc_peer.on("/sys/prefix", lambda prefix: state.__setitem__("prefix", prefix))
    osc_peer.on("/sys/info", on_info)
    osc_peer.state = state
    return osc_peer


@pytest.fixture
def make_peer():
    """Factory for extra loopback peers; all are stopped after the test."""
    peers = []

    def factory():
        peer = FakeOscPeer()
        peers.append(peer)
        return peer

    yield factory
    for peer in peers:
        if peer.thread.is_alive():
            peer.stop()
        else:
            peer.server.server_close()
