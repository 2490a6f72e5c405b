"""
fundgov.types — identities, amounts and proposal records.

Identities are raw bytes (32 bytes by default, see fundgov.config). Hex strings
with or without "0x" are accepted by `to_identity` and normalized to bytes, the
same way the VM context helpers treat addresses.

Amounts are integers in base units (1 unit = 10**decimals base units). Floats
never touch money: `parse_units` goes through Decimal.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional, Union

Identity = bytes
Amount = int
ProposalId = int

DEFAULT_DECIMALS = 18
DEFAULT_ADDRESS_LEN = 32


# ----------------------------- identities ----------------------------- #

def _strip_0x(s: str) -> str:
    return s[2:] if s.startswith(("0x", "0X")) else s


def to_identity(
    value: Union[bytes, bytearray, memoryview, str],
    *,
    address_len: int = DEFAULT_ADDRESS_LEN,
) -> Identity:
    """
    Coerce `value` to an identity of exactly `address_len` bytes.
    - str is read as hex (with or without '0x'); odd-length hex is rejected.
    - bytes-like objects are copied to immutable bytes.
    """
    if isinstance(value, (bytes, bytearray, memoryview)):
        out = bytes(value)
    elif isinstance(value, str):
        h = _strip_0x(value.strip())
        if len(h) % 2 != 0:
            raise ValueError(f"hex identity must have even length, got {len(h)}")
        try:
            out = bytes.fromhex(h)
        except ValueError as e:
            raise ValueError(f"invalid hex identity: {value!r}") from e
    else:
        raise TypeError(f"cannot convert type {type(value).__name__} to identity")
    if len(out) != address_len:
        raise ValueError(f"identity must be exactly {address_len} bytes, got {len(out)}")
    return out


def to_hex(b: Union[bytes, bytearray, memoryview]) -> str:
    """Encode bytes as 0x-prefixed lowercase hex."""
    return "0x" + bytes(b).hex()


# ------------------------------- amounts ------------------------------ #

def parse_units(value: Union[str, int, Decimal], decimals: int = DEFAULT_DECIMALS) -> Amount:
    """
    Convert a decimal unit amount to integer base units.

        parse_units("0.1")  -> 100000000000000000
        parse_units("1")    -> 1000000000000000000

    Raises ValueError for negative values or precision finer than one base unit.
    """
    if isinstance(value, float):
        raise TypeError("floats are not accepted for amounts; pass a str or Decimal")
    try:
        d = Decimal(str(value).strip().replace("_", ""))
    except InvalidOperation as e:
        raise ValueError(f"invalid amount: {value!r}") from e
    if not d.is_finite():
        raise ValueError(f"invalid amount: {value!r}")
    if d < 0:
        raise ValueError(f"amount must be non-negative, got {value!r}")
    scaled = d.scaleb(decimals)
    if scaled != scaled.to_integral_value():
        raise ValueError(f"amount {value!r} has more than {decimals} decimal places")
    return int(scaled)


def format_units(amount: Amount, decimals: int = DEFAULT_DECIMALS) -> str:
    """Inverse of parse_units; trailing zeros are stripped ("0.1", "2")."""
    s = format(Decimal(int(amount)).scaleb(-decimals), "f")
    if "." in s:
        s = s.rstrip("0").rstrip(".")
    return s or "0"


def require_amount(amount: Any, *, name: str = "amount") -> Amount:
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise TypeError(f"{name} must be int base units, got {type(amount).__name__}")
    if amount < 0:
        raise ValueError(f"{name} must be non-negative, got {amount}")
    return amount


# ------------------------------ records ------------------------------- #

@dataclass
class Proposal:
    """
    A spending request. Only `approval_count`, `executed` and `executed_seq`
    change after creation.
    """
    id: ProposalId
    receiver: Identity
    amount: Amount
    purpose: str
    approval_count: int = 0
    executed: bool = False
    created_seq: int = 0
    executed_seq: Optional[int] = None

    def copy(self) -> "Proposal":
        return replace(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "receiver": to_hex(self.receiver),
            "amount": self.amount,
            "purpose": self.purpose,
            "approval_count": self.approval_count,
            "executed": self.executed,
            "created_seq": self.created_seq,
            "executed_seq": self.executed_seq,
        }

    @staticmethod
    def from_dict(d: Dict[str, Any], *, address_len: int = DEFAULT_ADDRESS_LEN) -> "Proposal":
        return Proposal(
            id=int(d["id"]),
            receiver=to_identity(d["receiver"], address_len=address_len),
            amount=int(d["amount"]),
            purpose=str(d.get("purpose", "")),
            approval_count=int(d.get("approval_count", 0)),
            executed=bool(d.get("executed", False)),
            created_seq=int(d.get("created_seq", 0)),
            executed_seq=d.get("executed_seq"),
        )


@dataclass(frozen=True)
class ProposalView:
    """Immutable snapshot handed to readers."""
    id: ProposalId
    receiver: Identity
    amount: Amount
    purpose: str
    approval_count: int
    executed: bool

    @classmethod
    def of(cls, p: Proposal) -> "ProposalView":
        return cls(
            id=p.id,
            receiver=p.receiver,
            amount=p.amount,
            purpose=p.purpose,
            approval_count=p.approval_count,
            executed=p.executed,
        )


__all__ = [
    "Identity",
    "Amount",
    "ProposalId",
    "DEFAULT_DECIMALS",
    "DEFAULT_ADDRESS_LEN",
    "to_identity",
    "to_hex",
    "parse_units",
    "format_units",
    "require_amount",
    "Proposal",
    "ProposalView",
]
