"""Event channel module."""

from .channel import EventChannel, IEventReceiver, IEventSender

__all__ = ["EventChannel", "IEventReceiver", "IEventSender"]
