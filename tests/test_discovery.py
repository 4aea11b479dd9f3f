"""Tests for DiscoveryClient and connect."""

import queue
import socket
import threading
import time

import pytest

from gridosc.devices import DiscoveryClient, connect
from gridosc.exceptions import ConnectionTimeoutError, MalformedMessageError
from gridosc.models import DeviceDescriptor


class TestDiscoveryClient:
    """Test notification handling with a mocked endpoint."""

    @pytest.fixture
    def client(self, mock_endpoint, config):
        return DiscoveryClient(mock_endpoint, config=config)

    def test_registers_handlers(self, client, mock_endpoint):
        assert set(mock_endpoint.handlers) == {
            "/serialosc/device",
            "/serialosc/add",
            "/serialosc/remove",
        }

    def test_list_devices(self, client, mock_endpoint):
        """The list request carries the client's reply endpoint."""
        client.list_devices()
        mock_endpoint.send.assert_called_once_with("/serialosc/list", "127.0.0.1", 40000)

    def test_notify(self, client, mock_endpoint):
        client.notify()
        mock_endpoint.send.assert_called_once_with("/serialosc/notify", "127.0.0.1", 40000)

    @pytest.mark.parametrize("address", ["/serialosc/device", "/serialosc/add"])
    def test_add_notification(self, client, mock_endpoint, address):
        mock_endpoint.handlers[address]("m1000286", "monome 128", 14656)
        assert client.events.get_nowait() == DeviceDescriptor("m1000286", "monome 128", 14656)

    def test_remove_notification(self, client, mock_endpoint):
        mock_endpoint.handlers["/serialosc/remove"]("m1000286", "monome 128", 14656)
        descriptor = client.events.get_nowait()
        assert descriptor.removed
        assert descriptor.id == "m1000286"

    @pytest.mark.parametrize(
        "args",
        [
            ("m1", "monome 128"),
            ("m1", "monome 128", 14656, 1),
            (1, "monome 128", 14656),
            ("m1", 2, 14656),
            ("m1", "monome 128", "14656"),
        ],
    )
    def test_malformed_notification_dropped(self, client, mock_endpoint, args):
        mock_endpoint.handlers["/serialosc/add"](*args)
        assert client.events.empty()
        assert client.last_error is None

    def test_malformed_notification_strict(self, mock_endpoint, config):
        strict = config.model_copy(update={"ignore_malformed": False})
        client = DiscoveryClient(mock_endpoint, config=strict)

        mock_endpoint.handlers["/serialosc/add"]("m1", "monome 128")

        with pytest.raises(MalformedMessageError):
            client.wait_for_device(timeout=1.0)

    def test_malformed_error_names_address(self, mock_endpoint, config):
        strict = config.model_copy(update={"ignore_malformed": False})
        client = DiscoveryClient(mock_endpoint, config=strict)

        mock_endpoint.handlers["/serialosc/device"]("m1", "monome 128")

        assert client.last_error.address == "/serialosc/device"

    def test_wait_skips_removals(self, client, mock_endpoint):
        mock_endpoint.handlers["/serialosc/remove"]("m1", "monome 64", 1000)
        mock_endpoint.handlers["/serialosc/add"]("m2", "monome 128", 2000)

        assert client.wait_for_device(timeout=1.0).id == "m2"

    def test_wait_times_out(self, client):
        start = time.monotonic()
        with pytest.raises(ConnectionTimeoutError):
            client.wait_for_device(timeout=0.2)
        assert time.monotonic() - start < 1.0

    def test_external_event_queue(self, mock_endpoint, config):
        events = queue.Queue()
        client = DiscoveryClient(mock_endpoint, events=events, config=config)
        assert client.events is events

    def test_close(self, client, mock_endpoint):
        with client:
            pass
        mock_endpoint.close.assert_called_once()
        assert client.closed

    def test_close_with_full_event_queue(self, make_peer, config):
        """Closing releases a handler waiting for space in a bounded queue."""
        daemon = make_peer()

        def report_two(host, port):
            daemon.reply(host, port, "/serialosc/device", "m1", "monome 64", 1000)
            daemon.reply(host, port, "/serialosc/device", "m2", "monome 128", 2000)

        daemon.on("/serialosc/list", report_two)
        daemon.start()
        events = queue.Queue(maxsize=1)
        client = DiscoveryClient.dial(
            config.model_copy(update={"daemon_port": daemon.port}), events=events
        )

        client.list_devices()
        deadline = time.monotonic() + 2.0
        while not events.full() and time.monotonic() < deadline:
            time.sleep(0.01)
        assert events.full()
        # let the second notification reach the blocked put
        time.sleep(0.1)

        closer = threading.Thread(target=client.close, daemon=True)
        closer.start()
        closer.join(3.0)

        assert not closer.is_alive()
        assert client.closed
        assert events.get_nowait().id == "m1"


class TestConnect:
    """Test connect against fake serialosc and grid peers over loopback."""

    @pytest.fixture
    def fake_daemon(self, fake_grid, make_peer):
        """A serialosc stand-in that reports fake_grid."""
        daemon = make_peer()
        daemon.on(
            "/serialosc/list",
            lambda host, port: daemon.reply(
                host, port, "/serialosc/device", "m1000286", "monome 128", fake_grid.port
            ),
        )
        return daemon.start()

    def test_connect(self, fake_daemon, fake_grid, config):
        """connect returns a session whose id and size are populated."""
        config = config.model_copy(update={"daemon_port": fake_daemon.port})

        grid = connect("/hello", config=config)
        try:
            assert grid.id == "m1000286"
            assert grid.prefix == "/hello"
            assert fake_grid.state["prefix"] == "/hello"

            deadline = time.monotonic() + 2.0
            while grid.width == 0 and time.monotonic() < deadline:
                time.sleep(0.01)
            assert (grid.width, grid.height) == (16, 8)

            host, port = fake_grid.state["host"], fake_grid.state["port"]
            fake_grid.reply(host, port, "/hello/grid/key", 2, 3, 1)
            assert grid.events.get(timeout=2.0).pressed
        finally:
            grid.close()

    def test_connect_rejects_bad_prefix(self, config):
        with pytest.raises(ValueError):
            connect("hello", config=config)

    def test_connect_times_out_without_daemon(self, config):
        """A daemon that never answers fails within the connect budget."""
        silent = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        silent.bind(("127.0.0.1", 0))
        try:
            config = config.model_copy(
                update={"daemon_port": silent.getsockname()[1], "connect_timeout": 0.3}
            )
            start = time.monotonic()
            with pytest.raises(ConnectionTimeoutError):
                connect(config=config)
            assert time.monotonic() - start < 0.3 + 1.0
        finally:
            silent.close()

    def test_connect_times_out_without_id(self, config, make_peer):
        """A grid that never announces its id fails after the handshake budget."""
        grid = make_peer().start()
        daemon = make_peer()
        daemon.on(
            "/serialosc/list",
            lambda host, port: daemon.reply(host, port, "/serialosc/device", "m1", "monome 64", grid.port),
        )
        daemon.start()
        config = config.model_copy(update={"daemon_port": daemon.port, "handshake_timeout": 0.2})

        with pytest.raises(ConnectionTimeoutError) as excinfo:
            connect(config=config)
        assert "m1" in excinfo.value.waiting_for
