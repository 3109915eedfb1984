"""Decoders from daemon signal payloads to typed events.

Each decoder receives the positional payload of one signal, exactly as
jeepney parsed it, and returns one event. A payload with missing fields or
a field of the wrong type raises ContractViolation; trailing fields added by
newer daemons are ignored.
"""

from typing import Callable

from ..errors import ContractViolation
from ..models import events
from ..models.events import U64_MASK

Decoder = Callable[[tuple], events.Event]

SIGNAL_DECODERS: dict[str, Decoder] = {}


def _register(signal: str) -> Callable[[Decoder], Decoder]:
    def wrap(func: Decoder) -> Decoder:
        SIGNAL_DECODERS[signal] = func
        return func

    return wrap


def _expect(signal: str, payload, *types: type) -> tuple:
    """Check the leading fields of payload against types."""
    if not isinstance(payload, (tuple, list)):
        raise ContractViolation(signal, "payload is not a sequence", payload)
    if len(payload) < len(types):
        raise ContractViolation(
            signal, f"expected {len(types)} fields, got {len(payload)}", payload
        )
    for position, (value, expected) in enumerate(zip(payload, types)):
        # bool is an int subclass but never a valid integer field
        if not isinstance(value, expected) or (
            expected is int and isinstance(value, bool)
        ):
            raise ContractViolation(
                signal,
                f"field {position} should be {expected.__name__}, "
                f"got {type(value).__name__}",
                payload,
            )
    return tuple(payload[: len(types)])


def _string_map(signal: str, value: dict) -> dict[str, str]:
    for key, item in value.items():
        if not isinstance(key, str) or not isinstance(item, str):
            raise ContractViolation(signal, "expected a string to string map", value)
    return dict(value)


@_register("accountsChanged")
def decode_accounts_changed(payload) -> events.AccountsChanged:
    return events.AccountsChanged()


@_register("messageReceived")
def decode_message_received(payload) -> events.Message:
    account_id, conversation_id, payloads = _expect(
        "messageReceived", payload, str, str, dict
    )
    return events.Message(
        account_id=account_id,
        conversation_id=conversation_id,
        payloads=_string_map("messageReceived", payloads),
    )


@_register("registrationStateChanged")
def decode_registration_state_changed(payload) -> events.RegistrationStateChanged:
    # Trailing detail code and detail string are not surfaced
    account_id, state, _, _ = _expect(
        "registrationStateChanged", payload, str, str, int, str
    )
    return events.RegistrationStateChanged(account_id=account_id, state=state)


@_register("conversationReady")
def decode_conversation_ready(payload) -> events.ConversationReady:
    account_id, conversation_id = _expect("conversationReady", payload, str, str)
    return events.ConversationReady(account_id, conversation_id)


@_register("conversationRemoved")
def decode_conversation_removed(payload) -> events.ConversationRemoved:
    account_id, conversation_id = _expect("conversationRemoved", payload, str, str)
    return events.ConversationRemoved(account_id, conversation_id)


@_register("conversationRequestReceived")
def decode_conversation_request(payload) -> events.ConversationRequest:
    account_id, conversation_id = _expect(
        "conversationRequestReceived", payload, str, str
    )
    return events.ConversationRequest(account_id, conversation_id)


@_register("registeredNameFound")
def decode_registered_name_found(payload) -> events.RegisteredNameFound:
    account_id, status, address, name = _expect(
        "registeredNameFound", payload, str, int, str, str
    )
    return events.RegisteredNameFound(
        account_id=account_id,
        status=status & U64_MASK,
        address=address,
        name=name,
    )


@_register("profileReceived")
def decode_profile_received(payload) -> events.ProfileReceived:
    account_id, sender, path = _expect("profileReceived", payload, str, str, str)
    return events.ProfileReceived(account_id=account_id, sender=sender, path=path)


@_register("incomingTrustRequest")
def decode_incoming_trust_request(payload) -> events.IncomingTrustRequest:
    account_id, sender, data, received = _expect(
        "incomingTrustRequest", payload, str, str, bytes, int
    )
    return events.IncomingTrustRequest(
        account_id=account_id,
        sender=sender,
        payload=data,
        received=received,
    )


@_register("conversationLoaded")
def decode_conversation_loaded(payload) -> events.ConversationLoaded:
    request_id, account_id, conversation_id, messages = _expect(
        "conversationLoaded", payload, int, str, str, list
    )
    decoded = []
    for message in messages:
        if not isinstance(message, dict):
            raise ContractViolation(
                "conversationLoaded", "messages must be string maps", payload
            )
        decoded.append(_string_map("conversationLoaded", message))
    return events.ConversationLoaded(
        request_id=request_id,
        account_id=account_id,
        conversation_id=conversation_id,
        messages=decoded,
    )


@_register("dataTransferEvent")
def decode_data_transfer_event(payload) -> events.DataTransferEvent:
    account_id, conversation_id, transfer_id, code = _expect(
        "dataTransferEvent", payload, str, str, int, int
    )
    return events.DataTransferEvent(
        account_id=account_id,
        conversation_id=conversation_id,
        transfer_id=transfer_id,
        code=code,
    )


def decode(signal: str, payload) -> events.Event:
    """Decode one signal payload.

    Raises:
        ContractViolation: unknown signal name or malformed payload.
    """
    decoder = SIGNAL_DECODERS.get(signal)
    if decoder is None:
        raise ContractViolation(signal, "no decoder for this signal", payload)
    return decoder(payload)
