"""Account-related data models."""

from dataclasses import dataclass
from enum import Enum


class ImportType(str, Enum):
    """How addAccount should read its main info."""

    NONE = "none"  # main info is the alias
    BACKUP = "backup"  # main info is an archive path
    NETWORK = "network"  # main info is an archive PIN


@dataclass
class Account:
    """A Jami account as reported by getAccountDetails."""

    id: str = ""
    hash: str = ""
    alias: str = ""
    registered_name: str = ""
    enabled: bool = False

    @classmethod
    def null(cls) -> "Account":
        """The empty account, returned when nothing was found."""
        return cls()

    @property
    def is_null(self) -> bool:
        return not self.id

    @classmethod
    def from_details(cls, account_id: str, details: dict[str, str]) -> "Account":
        """Build an account from its details map."""
        return cls(
            id=account_id,
            hash=details.get("Account.username", "").replace("ring:", ""),
            alias=details.get("Account.alias", ""),
            registered_name=details.get("Account.registeredName", ""),
            enabled=details.get("Account.enable") == "true",
        )
