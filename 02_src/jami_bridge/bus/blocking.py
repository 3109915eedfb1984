"""Blocking one-shot method calls against the daemon."""

from typing import Protocol

from jeepney import new_method_call
from jeepney.io.blocking import open_dbus_connection
from jeepney.wrappers import unwrap_msg

from ..config import DEFAULT_BUS, DEFAULT_CALL_TIMEOUT
from .session import DAEMON_ADDRESS


class IMethodCaller(Protocol):
    """Synchronous request/response access to the daemon."""

    def call(self, method: str, signature: str | None = None, body: tuple = ()) -> tuple:
        """Call a daemon method and return the reply body."""
        ...


class BlockingBus:
    """Opens a fresh connection for every call, like a one-shot RPC client."""

    def __init__(self, bus: str = DEFAULT_BUS, timeout: float = DEFAULT_CALL_TIMEOUT):
        self._bus = bus
        self._timeout = timeout

    def call(self, method: str, signature: str | None = None, body: tuple = ()) -> tuple:
        """Call a daemon method and return the reply body.

        Raises:
            DBusErrorResponse: the daemon answered with an error.
            OSError: the bus could not be reached or the call timed out.
        """
        msg = new_method_call(DAEMON_ADDRESS, method, signature, body)
        with open_dbus_connection(bus=self._bus) as conn:
            reply = conn.send_and_get_reply(msg, timeout=self._timeout)
        return unwrap_msg(reply)
