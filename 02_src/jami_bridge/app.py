"""Application bootstrap and lifecycle management."""

import asyncio
import contextlib
from collections import deque
from functools import partial
from typing import Any, Callable, Protocol

from .bus import IBusConnection, SessionBus
from .channel import EventChannel, IEventReceiver
from .config import Settings
from .daemon import DaemonClient
from .errors import BridgeError
from .logging_config import get_logger
from .models import Event
from .signals import ListenerState, SignalListener, StopFlag

logger = get_logger(__name__)


class IApplication(Protocol):
    """Bootstrap and lifecycle."""

    async def start(self) -> None:
        """Open the event stream and start consuming it."""
        ...

    async def stop(self) -> None:
        """Stop listening and wait for the consumer to drain."""
        ...

    def request_stop(self) -> None:
        """Set the stop flag without waiting."""
        ...

    def inject(self, event: Event) -> bool:
        """Put an externally produced event on the channel."""
        ...

    def recent_events(self, limit: int = 100, kind: str | None = None) -> list[Event]:
        """Most recently consumed events, oldest first."""
        ...

    @property
    def status(self) -> dict[str, Any]:
        """Listener state and counters."""
        ...


class Application:
    """Main application bootstrap.

    Wires the event channel, the stop flag, the signal listener and a
    consumer that logs each event and keeps a bounded history of them.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        bus_factory: Callable[[], IBusConnection] | None = None,
    ):
        self._settings = settings or Settings.from_env()
        self._bus_factory = bus_factory or partial(SessionBus, self._settings.bus)
        self._daemon: DaemonClient | None = None
        self._history: deque[Event] = deque(maxlen=self._settings.event_history)
        self._consumed = 0

        # Components (will be initialized in start())
        self._channel: EventChannel | None = None
        self._stop: StopFlag | None = None
        self._listener: SignalListener | None = None
        self._listener_task: asyncio.Task | None = None
        self._consumer_task: asyncio.Task | None = None

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def channel(self) -> EventChannel:
        """Get the event channel."""
        if not self._channel:
            raise RuntimeError("Application not started")
        return self._channel

    @property
    def daemon(self) -> DaemonClient:
        """Get the daemon facade, built from the settings on first use."""
        if self._daemon is None:
            self._daemon = DaemonClient.from_settings(self._settings)
        return self._daemon

    @property
    def listener(self) -> SignalListener:
        """Get the signal listener."""
        if not self._listener:
            raise RuntimeError("Application not started")
        return self._listener

    @property
    def status(self) -> dict[str, Any]:
        if not self._listener:
            return {
                "state": ListenerState.IDLE.value,
                "pending": 0,
                "backlog": 0,
                "consumed": self._consumed,
                "subscribed": [],
            }
        return {
            "state": self._listener.state.value,
            "pending": self._channel.pending,
            "backlog": self._listener.backlog,
            "consumed": self._consumed,
            "subscribed": self._listener.subscribed,
        }

    async def start(self) -> None:
        """Open the event stream and start consuming it."""
        if self._listener is not None:
            raise RuntimeError("Application already started")
        logger.info("Starting application")

        # 1. Channel and stop flag (no dependencies)
        self._channel = EventChannel(self._settings.channel_capacity)
        self._stop = StopFlag()

        # 2. Listener (depends on channel and stop flag)
        self._listener = SignalListener(
            self._channel,
            self._stop,
            bus_factory=self._bus_factory,
            poll_interval=self._settings.poll_interval,
        )
        self._listener_task = asyncio.create_task(
            self._listener.run(), name="signal-listener"
        )

        # 3. Consumer (drains the channel until the listener closes it)
        self._consumer_task = asyncio.create_task(
            self._consume(self._channel), name="event-consumer"
        )
        logger.info("All components initialized successfully")

    async def wait(self) -> None:
        """Wait until the listener exits and the channel is drained.

        Raises:
            BridgeError: the listener stopped on a fatal error.
        """
        if not self._listener_task:
            raise RuntimeError("Application not started")
        try:
            await self._listener_task
        finally:
            await self._consumer_task

    def request_stop(self) -> None:
        """Set the stop flag without waiting."""
        if self._stop:
            logger.info("Stop requested")
            self._stop.set()

    async def stop(self) -> None:
        """Stop listening and wait for the consumer to drain."""
        self.request_stop()
        if self._listener_task:
            # Fatal errors were logged by the listener and surface via wait()
            with contextlib.suppress(BridgeError):
                await self._listener_task
        if self._consumer_task:
            await self._consumer_task
        logger.info("Application stopped")

    def inject(self, event: Event) -> bool:
        """Put an externally produced event on the channel.

        Returns False when the channel is full or already closed.
        """
        if not self._channel:
            raise RuntimeError("Application not started")
        return self._channel.try_send(event)

    def recent_events(self, limit: int = 100, kind: str | None = None) -> list[Event]:
        events = [e for e in self._history if kind is None or e.kind == kind]
        return events[-limit:] if limit > 0 else []

    async def _consume(self, receiver: IEventReceiver) -> None:
        while (event := await receiver.recv()) is not None:
            self._consumed += 1
            self._history.append(event)
            logger.info("Event: %s", event.kind, extra={"context": event.as_dict()})
        logger.info("Event channel closed after %d events", self._consumed)
