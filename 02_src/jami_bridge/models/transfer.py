"""File transfer description exchanged with the daemon."""

from dataclasses import dataclass

from ..errors import ContractViolation

# Wire order of the transfer-info struct. Both tuple conversions and the
# D-Bus signature are derived from this list.
DATA_TRANSFER_INFO_FIELDS: tuple[tuple[str, str], ...] = (
    ("account_id", "s"),
    ("last_event", "u"),
    ("flags", "u"),
    ("total", "x"),
    ("bytes_progress", "x"),
    ("author", "s"),
    ("peer", "s"),
    ("conversation_id", "s"),
    ("display_name", "s"),
    ("path", "s"),
    ("mimetype", "s"),
)

DATA_TRANSFER_INFO_SIGNATURE = "({})".format(
    "".join(code for _, code in DATA_TRANSFER_INFO_FIELDS)
)

_PY_TYPES = {"s": str, "u": int, "x": int}


@dataclass
class DataTransferInfo:
    """State of one file transfer."""

    account_id: str = ""
    last_event: int = 0
    flags: int = 0
    total: int = 0
    bytes_progress: int = 0
    author: str = ""
    peer: str = ""
    conversation_id: str = ""
    display_name: str = ""
    path: str = ""
    mimetype: str = ""

    def to_tuple(self) -> tuple:
        """Positional form, in daemon order."""
        return tuple(getattr(self, name) for name, _ in DATA_TRANSFER_INFO_FIELDS)

    @classmethod
    def from_tuple(cls, values) -> "DataTransferInfo":
        """Build a record from its positional form.

        Raises:
            ContractViolation: wrong arity or a field of the wrong type.
        """
        if not isinstance(values, (tuple, list)):
            raise ContractViolation("DataTransferInfo", "not a struct", values)
        values = tuple(values)
        if len(values) != len(DATA_TRANSFER_INFO_FIELDS):
            raise ContractViolation(
                "DataTransferInfo",
                f"expected {len(DATA_TRANSFER_INFO_FIELDS)} fields, got {len(values)}",
                values,
            )
        kwargs = {}
        for (name, code), value in zip(DATA_TRANSFER_INFO_FIELDS, values):
            if not isinstance(value, _PY_TYPES[code]) or isinstance(value, bool):
                raise ContractViolation(
                    "DataTransferInfo",
                    f"field {name} should be {code!r}, got {type(value).__name__}",
                    values,
                )
            kwargs[name] = value
        return cls(**kwargs)
