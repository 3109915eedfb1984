"""Daemon signal decoding and listening."""

from .decoders import SIGNAL_DECODERS, Decoder, decode
from .listener import ListenerState, SignalListener, StopFlag, Subscription, listen

__all__ = [
    "SIGNAL_DECODERS",
    "Decoder",
    "decode",
    "ListenerState",
    "SignalListener",
    "StopFlag",
    "Subscription",
    "listen",
]
