"""Jami bridge: typed event stream and method facade for the Jami daemon."""

from .app import Application, IApplication
from .bus import BlockingBus, IBusConnection, IMethodCaller, SessionBus
from .channel import EventChannel, IEventReceiver, IEventSender
from .config import Settings
from .daemon import DaemonClient
from .errors import BridgeError, ConnectionLost, ContractViolation, SubscriptionError
from .models import (
    Account,
    AccountsChanged,
    ConversationLoaded,
    ConversationReady,
    ConversationRemoved,
    ConversationRequest,
    DataTransferEvent,
    DataTransferInfo,
    Event,
    ImportType,
    IncomingTrustRequest,
    Input,
    Message,
    ProfileReceived,
    RegisteredNameFound,
    RegistrationStateChanged,
    Resize,
)
from .signals import ListenerState, SignalListener, StopFlag, listen

__all__ = [
    # Application
    "Application",
    "IApplication",
    "Settings",
    # Models
    "Event",
    "Input",
    "Message",
    "ConversationReady",
    "ConversationRemoved",
    "ConversationRequest",
    "RegistrationStateChanged",
    "ProfileReceived",
    "RegisteredNameFound",
    "AccountsChanged",
    "ConversationLoaded",
    "DataTransferEvent",
    "IncomingTrustRequest",
    "Resize",
    "DataTransferInfo",
    "Account",
    "ImportType",
    # Errors
    "BridgeError",
    "ConnectionLost",
    "ContractViolation",
    "SubscriptionError",
    # Components
    "IBusConnection",
    "SessionBus",
    "IMethodCaller",
    "BlockingBus",
    "IEventSender",
    "IEventReceiver",
    "EventChannel",
    "StopFlag",
    "ListenerState",
    "SignalListener",
    "listen",
    "DaemonClient",
]
