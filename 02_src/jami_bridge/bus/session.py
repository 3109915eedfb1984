"""Asynchronous session-bus connection with a single receive reactor."""

import asyncio
import contextlib
from dataclasses import dataclass
from typing import Callable, Protocol

from jeepney import (
    AuthenticationError,
    DBusAddress,
    DBusErrorResponse,
    HeaderFields,
    MatchRule,
    Message,
    MessageType,
    message_bus,
    new_method_call,
)
from jeepney.io.asyncio import DBusConnection, open_dbus_connection
from jeepney.wrappers import unwrap_msg

from ..config import (
    DAEMON_BUS_NAME,
    DAEMON_INTERFACE,
    DAEMON_OBJECT_PATH,
    DEFAULT_BUS,
)
from ..errors import ConnectionLost, ContractViolation
from ..logging_config import get_logger

logger = get_logger(__name__)

DAEMON_ADDRESS = DBusAddress(
    DAEMON_OBJECT_PATH,
    bus_name=DAEMON_BUS_NAME,
    interface=DAEMON_INTERFACE,
)

# Called on the reactor with the signal's positional payload
SignalCallback = Callable[[tuple], None]


@dataclass(frozen=True)
class SignalMatch:
    """Handle for one registered signal subscription."""

    interface: str
    member: str
    rule: MatchRule


class IBusConnection(Protocol):
    """Bus connection used by the signal listener."""

    async def connect(self) -> None:
        """Open the connection and start the reactor."""
        ...

    async def call(
        self, method: str, signature: str | None = None, body: tuple = ()
    ) -> tuple:
        """Call a daemon method and return the reply body."""
        ...

    async def subscribe(
        self, interface: str, member: str, callback: SignalCallback
    ) -> SignalMatch:
        """Register a match rule and route matching signals to callback."""
        ...

    async def unsubscribe(self, match: SignalMatch) -> None:
        """Drop a subscription. Never raises for a dead connection."""
        ...

    def raise_for_failure(self) -> None:
        """Raise the error that stopped the reactor, if any."""
        ...

    async def close(self) -> None:
        """Stop the reactor and close the connection."""
        ...


class SessionBus:
    """jeepney-backed bus connection.

    One reactor task reads every incoming message: method replies resolve
    pending calls, signals go to the callback registered for their
    (interface, member). Callbacks run on the reactor and must not block.
    """

    def __init__(self, bus: str = DEFAULT_BUS, connection: DBusConnection | None = None):
        self._bus = bus
        self._conn = connection
        self._pending: dict[int, asyncio.Future] = {}
        self._handlers: dict[tuple[str, str], SignalCallback] = {}
        self._known: set[tuple[str, str]] = set()
        self._reactor: asyncio.Task | None = None
        self._closing = False

    @property
    def connected(self) -> bool:
        return self._reactor is not None and not self._reactor.done()

    async def connect(self) -> None:
        """Open the connection and start the reactor."""
        if self._reactor is not None:
            raise RuntimeError("SessionBus already connected")

        if self._conn is None:
            try:
                self._conn = await open_dbus_connection(bus=self._bus)
            except (OSError, EOFError, KeyError, ValueError, AuthenticationError) as e:
                raise ConnectionLost(f"Cannot connect to {self._bus} bus: {e}") from e

        self._reactor = asyncio.create_task(self._receive_loop())
        logger.info("Connected to %s bus as %s", self._bus, self._conn.unique_name)

    async def call(
        self, method: str, signature: str | None = None, body: tuple = ()
    ) -> tuple:
        """Call a daemon method and return the reply body.

        Raises:
            ConnectionLost: the connection dropped before the reply.
            DBusErrorResponse: the daemon answered with an error.
        """
        msg = new_method_call(DAEMON_ADDRESS, method, signature, body)
        return unwrap_msg(await self._send_and_get_reply(msg))

    async def subscribe(
        self, interface: str, member: str, callback: SignalCallback
    ) -> SignalMatch:
        """Register a match rule and route matching signals to callback."""
        key = (interface, member)
        if key in self._handlers:
            raise ValueError(f"Already subscribed to {interface}.{member}")

        rule = MatchRule(type="signal", interface=interface, member=member)
        # Handler goes in first so nothing delivered right after AddMatch is missed
        self._handlers[key] = callback
        self._known.add(key)
        try:
            unwrap_msg(await self._send_and_get_reply(message_bus.AddMatch(rule)))
        except BaseException:
            del self._handlers[key]
            raise

        logger.debug("Subscribed to %s.%s", interface, member)
        return SignalMatch(interface=interface, member=member, rule=rule)

    async def unsubscribe(self, match: SignalMatch) -> None:
        """Drop a subscription. Never raises for a dead connection."""
        self._handlers.pop((match.interface, match.member), None)
        if not self.connected:
            return
        try:
            unwrap_msg(
                await self._send_and_get_reply(message_bus.RemoveMatch(match.rule))
            )
        except (ConnectionLost, DBusErrorResponse) as e:
            logger.debug("RemoveMatch for %s failed: %s", match.member, e)

    def raise_for_failure(self) -> None:
        """Raise the error that stopped the reactor, if any."""
        if self._reactor is None:
            raise ConnectionLost("SessionBus is not connected")
        if not self._reactor.done():
            return
        if self._reactor.cancelled():
            raise ConnectionLost("Bus reactor was stopped")
        exc = self._reactor.exception()
        if exc is not None:
            raise exc
        raise ConnectionLost("Bus reactor exited")

    async def close(self) -> None:
        """Stop the reactor and close the connection."""
        self._closing = True
        if self._reactor is not None and not self._reactor.done():
            self._reactor.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._reactor
        if self._conn is not None:
            with contextlib.suppress(OSError):
                await self._conn.close()
        logger.info("Disconnected from %s bus", self._bus)

    async def _send_and_get_reply(self, message: Message) -> Message:
        self.raise_for_failure()
        serial = next(self._conn.outgoing_serial)
        future = asyncio.get_running_loop().create_future()
        self._pending[serial] = future
        try:
            await self._conn.send(message, serial=serial)
            return await future
        except OSError as e:
            raise ConnectionLost(f"Lost connection to D-Bus: {e}") from e
        finally:
            self._pending.pop(serial, None)

    def _dispatch(self, msg: Message) -> None:
        reply_serial = msg.header.fields.get(HeaderFields.reply_serial)
        if reply_serial is not None:
            future = self._pending.get(reply_serial)
            if future is not None and not future.done():
                future.set_result(msg)
            return
        if msg.header.message_type != MessageType.signal:
            return

        interface = msg.header.fields.get(HeaderFields.interface)
        member = msg.header.fields.get(HeaderFields.member)
        callback = self._handlers.get((interface, member))
        if callback is not None:
            callback(msg.body)
            return

        if (interface, member) in self._known:
            # Unsubscribed while the signal was in flight
            return
        if any(interface == known for known, _ in self._known):
            raise ContractViolation(
                f"{interface}.{member}", "no decoder for this signal", msg.body
            )
        # Bus housekeeping such as NameAcquired

    async def _receive_loop(self) -> None:
        try:
            while True:
                try:
                    msg = await self._conn.receive()
                except (OSError, EOFError) as e:
                    if self._closing:
                        return
                    logger.error("Lost connection to D-Bus: %r", e)
                    raise ConnectionLost(f"Lost connection to D-Bus: {e!r}") from e
                self._dispatch(msg)
        finally:
            for future in self._pending.values():
                if not future.done():
                    future.set_exception(
                        ConnectionLost("Connection closed before the reply arrived")
                    )
