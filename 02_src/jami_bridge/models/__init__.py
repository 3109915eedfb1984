"""Core data models for the Jami bridge."""

from .account import Account, ImportType
from .events import (
    EVENT_TYPES,
    AccountsChanged,
    ConversationLoaded,
    ConversationReady,
    ConversationRemoved,
    ConversationRequest,
    DataTransferEvent,
    Event,
    IncomingTrustRequest,
    Input,
    Message,
    ProfileReceived,
    RegisteredNameFound,
    RegistrationStateChanged,
    Resize,
)
from .transfer import (
    DATA_TRANSFER_INFO_FIELDS,
    DATA_TRANSFER_INFO_SIGNATURE,
    DataTransferInfo,
)

__all__ = [
    # Accounts
    "Account",
    "ImportType",
    # Events
    "Event",
    "EVENT_TYPES",
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
    # Transfers
    "DataTransferInfo",
    "DATA_TRANSFER_INFO_FIELDS",
    "DATA_TRANSFER_INFO_SIGNATURE",
]
