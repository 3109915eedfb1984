"""Remote procedure facade over the daemon's ConfigurationManager.

Every method performs one blocking call and returns a default value when the
bus or the daemon fails. Retrying is up to the caller.
"""

from typing import Any

from jeepney import AuthenticationError, DBusErrorResponse

from ..bus import BlockingBus, IMethodCaller
from ..config import Settings
from ..errors import ContractViolation
from ..logging_config import get_logger
from ..models import (
    DATA_TRANSFER_INFO_SIGNATURE,
    Account,
    DataTransferInfo,
    ImportType,
)

logger = get_logger(__name__)

# get_bus raises KeyError/ValueError when no usable bus address is set
TRANSPORT_ERRORS = (
    DBusErrorResponse,
    AuthenticationError,
    OSError,
    EOFError,
    KeyError,
    ValueError,
)

_HEX_DIGITS = set("0123456789abcdef")


class DaemonClient:
    """One-shot calls to the Jami daemon."""

    def __init__(self, caller: IMethodCaller | None = None):
        self._caller = caller or BlockingBus()

    @classmethod
    def from_settings(cls, settings: Settings) -> "DaemonClient":
        """Client calling the daemon on settings.bus with settings.call_timeout."""
        return cls(BlockingBus(settings.bus, settings.call_timeout))

    # Helpers

    @staticmethod
    def is_hash(value: str) -> bool:
        """True for a 40 character lowercase hex account hash."""
        return len(value) == 40 and set(value) <= _HEX_DIGITS

    def _call(self, method: str, signature: str | None = None, body: tuple = ()) -> tuple | None:
        try:
            return self._caller.call(method, signature, body)
        except TRANSPORT_ERRORS as e:
            logger.warning("%s failed: %s", method, e)
            return None

    def _call_value(
        self, method: str, signature: str | None, body: tuple, default: Any
    ) -> Any:
        reply = self._call(method, signature, body)
        if not reply:
            return default
        return reply[0]

    # Accounts

    def select_account(self, create_if_missing: bool = False) -> Account:
        """First enabled account; optionally ask the daemon to create one.

        A newly created account is not returned: it shows up later through
        an AccountsChanged event.
        """
        for account in self.get_account_list():
            if account.enabled:
                return account
        if create_if_missing:
            self.add_account("", "", ImportType.NONE)
        return Account.null()

    def add_account(
        self, main_info: str, password: str, import_type: ImportType = ImportType.NONE
    ) -> str:
        """Create an account; main_info is an alias, archive path or PIN."""
        details = {"Account.type": "RING", "Account.archivePassword": password}
        if import_type == ImportType.BACKUP:
            details["Account.archivePath"] = main_info
        elif import_type == ImportType.NETWORK:
            details["Account.archivePin"] = main_info
        else:
            details["Account.alias"] = main_info

        account_id = self._call_value("addAccount", "a{ss}", (details,), "")
        if account_id:
            logger.info("New account: %s", account_id)
        return account_id

    def get_account_list(self) -> list[Account]:
        reply = self._call("getAccountList")
        if not reply:
            return []
        return [self.get_account(account_id) for account_id in reply[0]]

    def get_account(self, account_id: str) -> Account:
        reply = self._call("getAccountDetails", "s", (account_id,))
        if not reply:
            return Account.null()
        return Account.from_details(account_id, reply[0])

    def remove_account(self, account_id: str) -> None:
        self._call("removeAccount", "s", (account_id,))

    def get_account_details(self, account_id: str) -> dict[str, str]:
        return self._call_value("getAccountDetails", "s", (account_id,), {})

    def set_account_details(self, account_id: str, details: dict[str, str]) -> None:
        self._call("setAccountDetails", "sa{ss}", (account_id, details))

    def lookup_name(self, account_id: str, name_service: str, name: str) -> bool:
        """Start a name lookup; the answer arrives as RegisteredNameFound."""
        return self._call_value(
            "lookupName", "sss", (account_id, name_service, name), False
        )

    def lookup_address(self, account_id: str, name_service: str, address: str) -> bool:
        """Start an address lookup; the answer arrives as RegisteredNameFound."""
        return self._call_value(
            "lookupAddress", "sss", (account_id, name_service, address), False
        )

    # Contacts and trust requests

    def add_contact(self, account_id: str, uri: str) -> None:
        self._call("addContact", "ss", (account_id, uri))

    def get_trust_requests(self, account_id: str) -> list[str]:
        """Senders of the pending trust requests."""
        requests = self._call_value("getTrustRequests", "s", (account_id,), [])
        return [request["from"] for request in requests if "from" in request]

    def send_trust_request(self, account_id: str, to: str, payload: bytes = b"") -> None:
        self._call("sendTrustRequest", "ssay", (account_id, to, payload))

    def accept_trust_request(self, account_id: str, sender: str) -> bool:
        return self._call_value("acceptTrustRequest", "ss", (account_id, sender), False)

    def discard_trust_request(self, account_id: str, sender: str) -> bool:
        return self._call_value("discardTrustRequest", "ss", (account_id, sender), False)

    # Conversations

    def get_members(self, account_id: str, conversation_id: str) -> list[dict[str, str]]:
        return self._call_value(
            "getConversationMembers", "ss", (account_id, conversation_id), []
        )

    def get_conversation_infos(
        self, account_id: str, conversation_id: str
    ) -> dict[str, str]:
        return self._call_value(
            "conversationInfos", "ss", (account_id, conversation_id), {}
        )

    def update_conversation_infos(
        self, account_id: str, conversation_id: str, infos: dict[str, str]
    ) -> None:
        self._call(
            "updateConversationInfos", "ssa{ss}", (account_id, conversation_id, infos)
        )

    def start_conversation(self, account_id: str) -> str:
        return self._call_value("startConversation", "s", (account_id,), "")

    def get_conversations(self, account_id: str) -> list[str]:
        return self._call_value("getConversations", "s", (account_id,), [])

    def get_conversation_requests(self, account_id: str) -> list[dict[str, str]]:
        return self._call_value("getConversationRequests", "s", (account_id,), [])

    def accept_request(self, account_id: str, conversation_id: str) -> None:
        self._call("acceptConversationRequest", "ss", (account_id, conversation_id))

    def decline_request(self, account_id: str, conversation_id: str) -> None:
        self._call("declineConversationRequest", "ss", (account_id, conversation_id))

    def load_conversation(
        self, account_id: str, conversation_id: str, from_: str = "", size: int = 0
    ) -> int:
        """Request history; messages arrive as ConversationLoaded.

        Args:
            from_: Commit id to start from, "" for the latest.
            size: Maximum number of messages, 0 for all.

        Returns:
            Request id matching ConversationLoaded.request_id, 0 on failure.
        """
        return self._call_value(
            "loadConversationMessages",
            "sssu",
            (account_id, conversation_id, from_, size),
            0,
        )

    def remove_conversation(self, account_id: str, conversation_id: str) -> bool:
        return self._call_value(
            "removeConversation", "ss", (account_id, conversation_id), False
        )

    def add_conversation_member(
        self, account_id: str, conversation_id: str, member: str
    ) -> None:
        self._call(
            "addConversationMember", "sss", (account_id, conversation_id, member)
        )

    def remove_conversation_member(
        self, account_id: str, conversation_id: str, member: str
    ) -> None:
        self._call("rmConversationMember", "sss", (account_id, conversation_id, member))

    def send_conversation_message(
        self, account_id: str, conversation_id: str, message: str, parent: str = ""
    ) -> int:
        return self._call_value(
            "sendMessage", "ssss", (account_id, conversation_id, message, parent), 0
        )

    # File transfers

    def send_file(self, account_id: str, conversation_id: str, path: str) -> int:
        """Offer a file to a conversation. Returns the transfer id, 0 if unknown."""
        info = DataTransferInfo(
            account_id=account_id, conversation_id=conversation_id, path=path
        )
        return self._call_value(
            "sendFile", DATA_TRANSFER_INFO_SIGNATURE + "t", (info.to_tuple(), 0), 0
        )

    def accept_file_transfer(
        self, account_id: str, conversation_id: str, transfer_id: int, path: str
    ) -> int:
        """Accept an incoming transfer into path. Returns the daemon's error code."""
        return self._call_value(
            "acceptFileTransfer",
            "sstsx",
            (account_id, conversation_id, transfer_id, path, 0),
            0,
        )

    def cancel_file_transfer(
        self, account_id: str, conversation_id: str, transfer_id: int
    ) -> int:
        return self._call_value(
            "cancelDataTransfer", "sst", (account_id, conversation_id, transfer_id), 0
        )

    def data_transfer_info(
        self, account_id: str, conversation_id: str, transfer_id: int
    ) -> DataTransferInfo | None:
        reply = self._call(
            "dataTransferInfo",
            "sst" + DATA_TRANSFER_INFO_SIGNATURE,
            (account_id, conversation_id, transfer_id, DataTransferInfo().to_tuple()),
        )
        if not reply or len(reply) < 2:
            return None
        try:
            return DataTransferInfo.from_tuple(reply[1])
        except ContractViolation as e:
            logger.warning("dataTransferInfo returned a malformed record: %s", e)
            return None
