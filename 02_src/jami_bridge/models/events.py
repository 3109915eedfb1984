"""Typed events produced from daemon signals."""

from dataclasses import asdict, dataclass, field
from typing import Any, ClassVar, Union

U64_MASK = (1 << 64) - 1


class _EventBase:
    """Shared helpers for every event variant."""

    kind: ClassVar[str]

    def as_dict(self) -> dict[str, Any]:
        """Return the event as a plain dict tagged with its kind."""
        return {"kind": self.kind, **asdict(self)}


@dataclass
class Input(_EventBase):
    """Externally injected input, never produced by the daemon."""

    kind: ClassVar[str] = "input"

    value: Any


@dataclass
class Message(_EventBase):
    """A message was received in a conversation."""

    kind: ClassVar[str] = "message"

    account_id: str
    conversation_id: str
    payloads: dict[str, str] = field(default_factory=dict)


@dataclass
class ConversationReady(_EventBase):
    kind: ClassVar[str] = "conversation_ready"

    account_id: str
    conversation_id: str


@dataclass
class ConversationRemoved(_EventBase):
    kind: ClassVar[str] = "conversation_removed"

    account_id: str
    conversation_id: str


@dataclass
class ConversationRequest(_EventBase):
    kind: ClassVar[str] = "conversation_request"

    account_id: str
    conversation_id: str


@dataclass
class RegistrationStateChanged(_EventBase):
    kind: ClassVar[str] = "registration_state_changed"

    account_id: str
    state: str


@dataclass
class ProfileReceived(_EventBase):
    kind: ClassVar[str] = "profile_received"

    account_id: str
    sender: str
    path: str


@dataclass
class RegisteredNameFound(_EventBase):
    """Answer to a name or address lookup.

    The daemon sends the status as a signed 32-bit integer; it is stored
    widened to unsigned 64-bit, so -1 becomes 2**64 - 1.
    """

    kind: ClassVar[str] = "registered_name_found"

    account_id: str
    status: int
    address: str
    name: str

    @property
    def signed_status(self) -> int:
        """Status as the daemon sent it."""
        if self.status >= 1 << 63:
            return self.status - (1 << 64)
        return self.status


@dataclass
class AccountsChanged(_EventBase):
    kind: ClassVar[str] = "accounts_changed"


@dataclass
class ConversationLoaded(_EventBase):
    """Messages answering a loadConversationMessages request."""

    kind: ClassVar[str] = "conversation_loaded"

    request_id: int
    account_id: str
    conversation_id: str
    messages: list[dict[str, str]] = field(default_factory=list)


@dataclass
class DataTransferEvent(_EventBase):
    kind: ClassVar[str] = "data_transfer_event"

    account_id: str
    conversation_id: str
    transfer_id: int
    code: int


@dataclass
class IncomingTrustRequest(_EventBase):
    kind: ClassVar[str] = "incoming_trust_request"

    account_id: str
    sender: str
    payload: bytes
    received: int  # unix timestamp


@dataclass
class Resize(_EventBase):
    """UI-only notification, never produced by the daemon."""

    kind: ClassVar[str] = "resize"


Event = Union[
    Input,
    Message,
    ConversationReady,
    ConversationRemoved,
    ConversationRequest,
    RegistrationStateChanged,
    ProfileReceived,
    RegisteredNameFound,
    AccountsChanged,
    ConversationLoaded,
    DataTransferEvent,
    IncomingTrustRequest,
    Resize,
]

EVENT_TYPES: tuple[type, ...] = Event.__args__
