"""D-Bus connection module."""

from .blocking import BlockingBus, IMethodCaller
from .session import (
    DAEMON_ADDRESS,
    IBusConnection,
    SessionBus,
    SignalCallback,
    SignalMatch,
)

__all__ = [
    "BlockingBus",
    "IMethodCaller",
    "DAEMON_ADDRESS",
    "IBusConnection",
    "SessionBus",
    "SignalCallback",
    "SignalMatch",
]
