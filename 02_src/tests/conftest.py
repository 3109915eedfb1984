"""Pytest configuration and fixtures."""

import asyncio
import itertools
import sys
from pathlib import Path
from typing import Any

import pytest
from jeepney import (
    DBusErrorResponse,
    HeaderFields,
    MatchRule,
    Message,
    new_error,
    new_method_call,
    new_method_return,
)

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from jami_bridge.bus import DAEMON_ADDRESS, SignalMatch  # noqa: E402
from jami_bridge.channel import EventChannel  # noqa: E402
from jami_bridge.errors import BridgeError, ConnectionLost  # noqa: E402
from jami_bridge.signals import StopFlag  # noqa: E402

POLL_INTERVAL = 0.005


def dbus_error(name: str = "org.freedesktop.DBus.Error.AccessDenied") -> DBusErrorResponse:
    """Build the exception jeepney raises for an error reply."""
    parent = new_method_call(DAEMON_ADDRESS, "test")
    return DBusErrorResponse(new_error(parent, name, "s", ("denied",)))


class FakeBus:
    """In-memory bus connection driven by the test.

    emit() delivers a signal the way the reactor does: synchronously, and a
    BridgeError raised by the callback stops the fake reactor.
    """

    def __init__(
        self,
        fail_member: str | None = None,
        connect_error: BaseException | None = None,
    ):
        self.fail_member = fail_member
        self.connect_error = connect_error
        self.callbacks: dict[str, Any] = {}
        self.subscribed: list[str] = []
        self.unsubscribed: list[str] = []
        self.calls: list[tuple] = []
        self.connected = False
        self.closed = False
        self._failure: BaseException | None = None

    async def connect(self) -> None:
        if self.connect_error is not None:
            raise self.connect_error
        self.connected = True

    async def call(self, method: str, signature: str | None = None, body: tuple = ()) -> tuple:
        self.calls.append((method, signature, body))
        return ()

    async def subscribe(self, interface: str, member: str, callback) -> SignalMatch:
        if member == self.fail_member:
            raise dbus_error()
        self.callbacks[member] = callback
        self.subscribed.append(member)
        rule = MatchRule(type="signal", interface=interface, member=member)
        return SignalMatch(interface=interface, member=member, rule=rule)

    async def unsubscribe(self, match: SignalMatch) -> None:
        self.callbacks.pop(match.member, None)
        self.unsubscribed.append(match.member)

    def raise_for_failure(self) -> None:
        if self._failure is not None:
            raise self._failure

    async def close(self) -> None:
        self.connected = False
        self.closed = True

    def emit(self, member: str, *payload) -> bool:
        """Deliver a signal; False if nothing is subscribed to it."""
        callback = self.callbacks.get(member)
        if callback is None or self._failure is not None:
            return False
        try:
            callback(payload)
        except BridgeError as e:
            self._failure = e
        return True

    def drop(self) -> None:
        """Simulate the bus connection going away."""
        self._failure = ConnectionLost("Connection reset by peer")


class FakeConnection:
    """Stands in for jeepney's asyncio DBusConnection.

    Method calls are answered from `returns` (member -> (signature, body)),
    with an error for members in `errors`, and never for members in `silent`.
    """

    def __init__(self, unique_name: str = ":1.42"):
        self.unique_name = unique_name
        self.outgoing_serial = itertools.count(start=1)
        self.sent: list[Message] = []
        self.returns: dict[str, tuple] = {}
        self.errors: dict[str, str] = {}
        self.silent: set[str] = set()
        self.closed = False
        self._incoming: asyncio.Queue = asyncio.Queue()

    async def send(self, message: Message, *, serial: int | None = None) -> None:
        message.header.serial = serial
        self.sent.append(message)
        member = message.header.fields.get(HeaderFields.member)
        if member in self.silent:
            return
        if member in self.errors:
            self.push(new_error(message, self.errors[member]))
        else:
            signature, body = self.returns.get(member, (None, ()))
            self.push(new_method_return(message, signature, body))

    async def receive(self) -> Message:
        item = await self._incoming.get()
        if isinstance(item, BaseException):
            raise item
        return item

    async def close(self) -> None:
        self.closed = True

    def push(self, message: Message) -> None:
        """Queue a message for the reactor."""
        self._incoming.put_nowait(message)

    def drop(self) -> None:
        """Make the next receive fail like a closed socket."""
        self._incoming.put_nowait(EOFError())

    def sent_members(self) -> list[str]:
        return [m.header.fields.get(HeaderFields.member) for m in self.sent]


class FakeCaller:
    """Synchronous method caller with canned replies."""

    def __init__(self, replies: dict[str, Any] | None = None):
        self.replies = replies or {}
        self.calls: list[tuple] = []

    def call(self, method: str, signature: str | None = None, body: tuple = ()) -> tuple:
        self.calls.append((method, signature, body))
        reply = self.replies.get(method, ())
        if isinstance(reply, BaseException):
            raise reply
        if callable(reply):
            return reply(*body)
        return reply


@pytest.fixture
def fake_bus():
    """Create an in-memory bus."""
    return FakeBus()


@pytest.fixture
def fake_connection():
    """Create a fake jeepney connection."""
    return FakeConnection()


@pytest.fixture
def fake_caller():
    """Create a fake method caller."""
    return FakeCaller()


@pytest.fixture
def channel():
    """Create an event channel with room for 100 events."""
    return EventChannel(100)


@pytest.fixture
def stop_flag():
    """Create a fresh stop flag."""
    return StopFlag()


@pytest.fixture
def poll_interval():
    """Poll interval used by listener tests."""
    return POLL_INTERVAL


@pytest.fixture
def wait_until():
    """Return a coroutine that polls a predicate until it holds."""

    async def _wait_until(predicate, timeout: float = 1.0) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not predicate():
            if loop.time() > deadline:
                raise AssertionError("Condition not met in time")
            await asyncio.sleep(0.001)

    return _wait_until
