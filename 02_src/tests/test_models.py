"""Tests for data models."""

from dataclasses import fields

import pytest

from jami_bridge.errors import ContractViolation
from jami_bridge.models import (
    DATA_TRANSFER_INFO_FIELDS,
    DATA_TRANSFER_INFO_SIGNATURE,
    EVENT_TYPES,
    Account,
    AccountsChanged,
    DataTransferEvent,
    DataTransferInfo,
    ImportType,
    IncomingTrustRequest,
    Input,
    Message,
    RegisteredNameFound,
)


class TestEvents:
    """Tests for typed events."""

    def test_every_variant_has_unique_kind(self):
        """Test that event kinds are distinct."""
        kinds = [event_type.kind for event_type in EVENT_TYPES]
        assert len(kinds) == len(set(kinds)) == 13

    def test_as_dict_includes_kind(self):
        """Test as_dict tags the fields with the event kind."""
        event = DataTransferEvent("a1", "c1", 42, 3)

        assert event.as_dict() == {
            "kind": "data_transfer_event",
            "account_id": "a1",
            "conversation_id": "c1",
            "transfer_id": 42,
            "code": 3,
        }

    def test_unit_event_as_dict(self):
        """Test events without fields."""
        assert AccountsChanged().as_dict() == {"kind": "accounts_changed"}

    def test_message_payloads_default_to_empty(self):
        """Test that message payload maps are not shared."""
        first = Message("a1", "c1")
        second = Message("a1", "c2")
        first.payloads["body"] = "hi"

        assert second.payloads == {}

    def test_input_carries_any_value(self):
        """Test that Input keeps an opaque value."""
        assert Input({"key": "q"}).value == {"key": "q"}

    def test_events_compare_by_value(self):
        """Test dataclass equality on events."""
        payload = b"\x00\x01"
        assert IncomingTrustRequest("a1", "peer", payload, 1700000000) == (
            IncomingTrustRequest("a1", "peer", b"\x00\x01", 1700000000)
        )


class TestRegisteredNameFound:
    """Tests for lookup status widening."""

    def test_signed_status_of_minus_one(self):
        """Test that a widened -1 reads back as -1."""
        event = RegisteredNameFound("a1", 2**64 - 1, "", "bob")

        assert event.signed_status == -1

    def test_signed_status_of_positive(self):
        """Test that small statuses keep their value."""
        event = RegisteredNameFound("a1", 2, "addr", "bob")

        assert event.status == 2
        assert event.signed_status == 2


class TestDataTransferInfo:
    """Tests for the transfer info record."""

    def test_signature_matches_daemon_struct(self):
        """Test the D-Bus struct signature."""
        assert DATA_TRANSFER_INFO_SIGNATURE == "(suuxxssssss)"

    def test_field_list_matches_dataclass(self):
        """Test the wire order covers every dataclass field in order."""
        names = [name for name, _ in DATA_TRANSFER_INFO_FIELDS]

        assert names == [f.name for f in fields(DataTransferInfo)]

    def test_to_tuple_order(self):
        """Test positional order of to_tuple."""
        info = DataTransferInfo(
            account_id="a1",
            last_event=2,
            flags=1,
            total=2048,
            bytes_progress=1024,
            author="alice",
            peer="bob",
            conversation_id="c1",
            display_name="photo.png",
            path="/tmp/photo.png",
            mimetype="image/png",
        )

        assert info.to_tuple() == (
            "a1", 2, 1, 2048, 1024, "alice", "bob", "c1",
            "photo.png", "/tmp/photo.png", "image/png",
        )

    @pytest.mark.parametrize(
        "info",
        [
            DataTransferInfo(),
            DataTransferInfo(account_id="a1", total=-1, bytes_progress=-1),
            DataTransferInfo(
                account_id="a1",
                last_event=7,
                flags=3,
                total=2**62,
                bytes_progress=2**40,
                path="/home/alice/Downloads/report.pdf",
                mimetype="application/pdf",
            ),
        ],
    )
    def test_round_trip(self, info):
        """Test from_tuple(to_tuple(info)) keeps every field."""
        assert DataTransferInfo.from_tuple(info.to_tuple()) == info

    def test_from_list(self):
        """Test that jeepney's list form is accepted."""
        values = list(DataTransferInfo(account_id="a1").to_tuple())

        assert DataTransferInfo.from_tuple(values).account_id == "a1"

    def test_wrong_arity_is_contract_violation(self):
        """Test that a short tuple is rejected."""
        with pytest.raises(ContractViolation) as exc_info:
            DataTransferInfo.from_tuple(("a1", 0, 0))

        assert exc_info.value.source == "DataTransferInfo"

    def test_wrong_field_type_is_contract_violation(self):
        """Test that a string in an integer slot is rejected."""
        values = list(DataTransferInfo().to_tuple())
        values[3] = "big"

        with pytest.raises(ContractViolation):
            DataTransferInfo.from_tuple(values)

    def test_bool_is_not_an_integer_field(self):
        """Test that bool is rejected for integer fields."""
        values = list(DataTransferInfo().to_tuple())
        values[1] = True

        with pytest.raises(ContractViolation):
            DataTransferInfo.from_tuple(values)

    def test_non_sequence_is_contract_violation(self):
        """Test that a scalar is rejected."""
        with pytest.raises(ContractViolation):
            DataTransferInfo.from_tuple(0)


class TestAccount:
    """Tests for Account."""

    def test_null_account(self):
        """Test the empty account."""
        account = Account.null()

        assert account.is_null
        assert account.enabled is False

    def test_from_details(self):
        """Test building an account from getAccountDetails."""
        details = {
            "Account.enable": "true",
            "Account.alias": "Alice",
            "Account.username": "ring:" + "a" * 40,
            "Account.registeredName": "alice",
        }

        account = Account.from_details("acc1", details)

        assert account == Account(
            id="acc1",
            hash="a" * 40,
            alias="Alice",
            registered_name="alice",
            enabled=True,
        )
        assert not account.is_null

    def test_from_details_disabled(self):
        """Test missing keys fall back to empty values."""
        account = Account.from_details("acc1", {"Account.enable": "false"})

        assert account.enabled is False
        assert account.hash == ""

    def test_import_type_values(self):
        """Test ImportType members."""
        assert {t.name for t in ImportType} == {"NONE", "BACKUP", "NETWORK"}
