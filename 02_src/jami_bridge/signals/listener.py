"""Signal listener: subscribes to every daemon signal and feeds the event channel."""

import asyncio
import threading
from enum import Enum
from typing import Callable

from jeepney import DBusErrorResponse

from ..bus import IBusConnection, SessionBus, SignalMatch
from ..channel import IEventSender
from ..config import DAEMON_INTERFACE, DEFAULT_POLL_INTERVAL
from ..errors import BridgeError, SubscriptionError
from ..logging_config import get_logger
from .decoders import SIGNAL_DECODERS, Decoder

logger = get_logger(__name__)

_DONE = object()


class StopFlag:
    """Shutdown request shared between the listener and its owners.

    Safe to set from any thread. There is no reset: create a new flag to
    listen again.
    """

    def __init__(self):
        self._event = threading.Event()

    def set(self) -> None:
        self._event.set()

    def is_set(self) -> bool:
        return self._event.is_set()


class ListenerState(str, Enum):
    """Lifecycle of a SignalListener."""

    IDLE = "idle"
    STARTING = "starting"
    LISTENING = "listening"
    STOPPING = "stopping"
    STOPPED = "stopped"


class Subscription:
    """One (signal, decoder) pair and the worker forwarding its events.

    The bus reactor calls on_signal, which decodes and queues without
    blocking. The worker awaits channel capacity, so a full channel only
    delays this signal's events, in their delivery order.
    """

    def __init__(self, signal: str, decoder: Decoder, sender: IEventSender):
        self.signal = signal
        self.decoder = decoder
        self.match: SignalMatch | None = None
        self._sender = sender
        self._pending: asyncio.Queue = asyncio.Queue()
        self._worker = asyncio.create_task(self._forward(), name=f"forward-{signal}")

    @property
    def backlog(self) -> int:
        """Decoded events not yet accepted by the channel."""
        return self._pending.qsize()

    @property
    def worker(self) -> asyncio.Task:
        return self._worker

    def on_signal(self, payload: tuple) -> None:
        self._pending.put_nowait(self.decoder(payload))

    def finish(self) -> None:
        """Let the worker exit once everything queued so far is forwarded."""
        self._pending.put_nowait(_DONE)

    async def _forward(self) -> None:
        while True:
            event = await self._pending.get()
            if event is _DONE:
                return
            await self._sender.send(event)


class SignalListener:
    """Owns the subscriptions for the lifetime of one listening session.

    STARTING: connect and register every decoder, all or nothing.
    LISTENING: check the stop flag and the bus every poll_interval.
    STOPPING: drop the subscriptions and close the bus, then flush queued
    events into the channel and close it.
    STOPPED: run() returns, or re-raises a fatal error.
    """

    def __init__(
        self,
        sender: IEventSender,
        stop: StopFlag,
        bus_factory: Callable[[], IBusConnection] = SessionBus,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        interface: str = DAEMON_INTERFACE,
        decoders: dict[str, Decoder] | None = None,
    ):
        self._sender = sender
        self._stop = stop
        self._bus_factory = bus_factory
        self._poll_interval = poll_interval
        self._interface = interface
        self._decoders = dict(SIGNAL_DECODERS if decoders is None else decoders)
        self._subscriptions: list[Subscription] = []
        self._state = ListenerState.IDLE

    @property
    def state(self) -> ListenerState:
        return self._state

    @property
    def backlog(self) -> int:
        return sum(sub.backlog for sub in self._subscriptions)

    @property
    def subscribed(self) -> list[str]:
        """Signals with an active bus match."""
        return [sub.signal for sub in self._subscriptions if sub.match is not None]

    def stop(self) -> None:
        """Request shutdown; honoured within one poll interval."""
        self._stop.set()

    async def run(self) -> None:
        """Listen until the stop flag is set.

        Raises:
            ConnectionLost: the bus connection dropped.
            ContractViolation: a signal payload could not be decoded.
            SubscriptionError: a subscription could not be registered.
        """
        if self._state != ListenerState.IDLE:
            raise RuntimeError("SignalListener can only run once")

        self._set_state(ListenerState.STARTING)
        bus = self._bus_factory()
        try:
            await bus.connect()
            if await self._subscribe_all(bus):
                self._set_state(ListenerState.LISTENING)
                await self._poll(bus)
        except BridgeError as e:
            logger.critical("Event stream failed: %s", e)
            raise
        finally:
            self._set_state(ListenerState.STOPPING)
            await self._teardown(bus)
            self._sender.close()
            self._set_state(ListenerState.STOPPED)

    async def _subscribe_all(self, bus: IBusConnection) -> bool:
        for signal, decoder in self._decoders.items():
            if self._stop.is_set():
                logger.info("Stop requested during startup")
                return False

            subscription = Subscription(signal, decoder, self._sender)
            self._subscriptions.append(subscription)
            try:
                subscription.match = await bus.subscribe(
                    self._interface, signal, subscription.on_signal
                )
            except DBusErrorResponse as e:
                raise SubscriptionError(f"Could not subscribe to {signal}: {e}") from e

        logger.info("Subscribed to %d signals", len(self._subscriptions))
        return True

    async def _poll(self, bus: IBusConnection) -> None:
        while True:
            bus.raise_for_failure()
            if self._stop.is_set():
                logger.info("Stop requested")
                return
            await asyncio.sleep(self._poll_interval)

    async def _teardown(self, bus: IBusConnection) -> None:
        for subscription in self._subscriptions:
            if subscription.match is not None:
                await bus.unsubscribe(subscription.match)
                subscription.match = None
        await bus.close()

        # Everything decoded so far reaches the channel before it closes
        for subscription in self._subscriptions:
            subscription.finish()
        await asyncio.gather(*(sub.worker for sub in self._subscriptions))

    def _set_state(self, state: ListenerState) -> None:
        logger.debug("Listener %s -> %s", self._state.value, state.value)
        self._state = state


async def listen(
    sender: IEventSender,
    stop: StopFlag,
    bus_factory: Callable[[], IBusConnection] = SessionBus,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
) -> None:
    """Run a fresh SignalListener until stop is set."""
    await SignalListener(sender, stop, bus_factory, poll_interval).run()
