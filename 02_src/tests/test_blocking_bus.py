"""Tests for BlockingBus."""

import pytest
from jeepney import DBusErrorResponse, HeaderFields, new_error, new_method_return

from jami_bridge.bus import BlockingBus, blocking
from jami_bridge.config import (
    DAEMON_BUS_NAME,
    DAEMON_INTERFACE,
    DAEMON_OBJECT_PATH,
)
from jami_bridge.daemon import DaemonClient


class FakeBlockingConnection:
    """Stands in for jeepney's blocking connection."""

    def __init__(self, respond):
        self.respond = respond
        self.sent = []
        self.timeouts = []
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.closed = True

    def send_and_get_reply(self, message, timeout=None):
        self.sent.append(message)
        self.timeouts.append(timeout)
        return self.respond(message)


@pytest.fixture
def opened(monkeypatch):
    """Patch open_dbus_connection; returns the list of (bus, connection) opened."""
    opened = []

    def install(respond):
        def open_dbus_connection(bus="SESSION"):
            conn = FakeBlockingConnection(respond)
            opened.append((bus, conn))
            return conn

        monkeypatch.setattr(blocking, "open_dbus_connection", open_dbus_connection)
        return opened

    return install


class TestBlockingBusCall:
    """Tests for one-shot calls."""

    def test_builds_daemon_method_call(self, opened):
        """Test the message sent to the daemon and the unwrapped reply."""
        connections = opened(lambda msg: new_method_return(msg, "as", (["c1", "c2"],)))

        reply = BlockingBus("SYSTEM", timeout=2.5).call("getConversations", "s", ("acc1",))

        assert reply == (["c1", "c2"],)
        [(bus, conn)] = connections
        assert bus == "SYSTEM"
        assert conn.timeouts == [2.5]
        assert conn.closed

        fields = conn.sent[0].header.fields
        assert fields[HeaderFields.destination] == DAEMON_BUS_NAME
        assert fields[HeaderFields.path] == DAEMON_OBJECT_PATH
        assert fields[HeaderFields.interface] == DAEMON_INTERFACE
        assert fields[HeaderFields.member] == "getConversations"
        assert fields[HeaderFields.signature] == "s"
        assert conn.sent[0].body == ("acc1",)

    def test_call_without_arguments(self, opened):
        """Test a call with no signature and an empty body."""
        connections = opened(lambda msg: new_method_return(msg, "as", (["acc1"],)))

        assert BlockingBus().call("getAccountList") == (["acc1"],)

        [(bus, conn)] = connections
        assert bus == "SESSION"
        assert HeaderFields.signature not in conn.sent[0].header.fields
        assert conn.sent[0].body == ()

    def test_connection_per_call(self, opened):
        """Test that every call opens and closes its own connection."""
        connections = opened(lambda msg: new_method_return(msg, "as", ([],)))
        bus = BlockingBus()

        bus.call("getAccountList")
        bus.call("getAccountList")

        assert len(connections) == 2
        assert all(conn.closed for _, conn in connections)

    def test_error_reply(self, opened):
        """Test that a daemon error reply raises DBusErrorResponse."""
        opened(
            lambda msg: new_error(
                msg, "org.freedesktop.DBus.Error.ServiceUnknown", "s", ("gone",)
            )
        )

        with pytest.raises(DBusErrorResponse) as exc_info:
            BlockingBus().call("getAccountList")

        assert exc_info.value.name == "org.freedesktop.DBus.Error.ServiceUnknown"


class TestBlockingBusThroughFacade:
    """Tests for DaemonClient over a real BlockingBus."""

    def test_reply_reaches_facade(self, opened):
        """Test that the facade returns what the daemon answered."""
        opened(lambda msg: new_method_return(msg, "as", (["c1"],)))

        assert DaemonClient(BlockingBus()).get_conversations("acc1") == ["c1"]

    def test_missing_session_bus(self, monkeypatch):
        """Test that an unresolvable bus address gives the facade default."""

        def open_dbus_connection(bus="SESSION"):
            raise KeyError("DBUS_SESSION_BUS_ADDRESS")

        monkeypatch.setattr(blocking, "open_dbus_connection", open_dbus_connection)

        assert DaemonClient(BlockingBus()).get_conversations("acc1") == []

    def test_timeout(self, opened):
        """Test that a call timing out gives the facade default."""

        def respond(msg):
            raise TimeoutError("no reply")

        opened(respond)

        assert DaemonClient(BlockingBus()).get_conversations("acc1") == []
