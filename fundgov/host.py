"""
fundgov.host — host-side collaborators: caller attestation and account balances.

The fund never moves money by itself. Two things are supplied by the
environment the fund is embedded in:

- TxContext: the attested caller of an operation plus the value attached to
  the call (what a depositor sends along with `deposit`).
- AccountBank: the external balance ledger. Deposits debit the caller's bank
  account; executed spendings credit the receiver's bank account.

`AccountBank` here is a deterministic in-memory ledger for local runs and
tests. Engines embedding the fund in a real settlement layer pass their own
object with the same `balance_of/credit/debit` surface.

Notes
-----
* Deterministic: no wall-clock, no randomness, pure integer arithmetic.
* Each bank call is atomic with respect to the bank: it either applies fully or
  raises and leaves balances unchanged.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Protocol, Union

from fundgov.errors import InsufficientFunds
from fundgov.types import (DEFAULT_ADDRESS_LEN, Amount, Identity,
                           require_amount, to_hex, to_identity)

MAX_BALANCE_BITS = 256


# --------------------------------- context --------------------------------- #

@dataclass(frozen=True)
class TxContext:
    """
    Attested call context.

    Fields
    ------
    caller: identity whose authority the call runs under.
    value:  base units attached to the call (only `deposit` consumes it).
    """
    caller: Identity
    value: Amount = 0

    def __post_init__(self) -> None:
        if not isinstance(self.caller, (bytes, bytearray)):
            raise TypeError("caller must be bytes; use TxContext.of() for hex input")
        object.__setattr__(self, "caller", bytes(self.caller))
        object.__setattr__(self, "value", require_amount(self.value, name="value"))

    @classmethod
    def of(
        cls,
        caller: Union[bytes, str],
        value: Amount = 0,
        *,
        address_len: int = DEFAULT_ADDRESS_LEN,
    ) -> "TxContext":
        return cls(caller=to_identity(caller, address_len=address_len), value=value)


# ---------------------------------- bank ----------------------------------- #

class Bank(Protocol):
    """Surface the fund needs from a host balance ledger."""

    def balance_of(self, account: Identity) -> Amount: ...

    def credit(self, account: Identity, amount: Amount) -> None: ...

    def debit(self, account: Identity, amount: Amount) -> None: ...


def _add_checked(a: int, b: int) -> int:
    c = a + b
    if c.bit_length() > MAX_BALANCE_BITS:
        raise OverflowError("balance overflow")
    return c


class AccountBank:
    """
    In-memory host ledger of identity balances.

    Usage:
        bank = AccountBank()
        bank.credit(alice, parse_units("5"))
        bank.debit(alice, parse_units("1"))
        bank.balance_of(alice)  # -> 4 * 10**18
    """

    def __init__(self, balances: Optional[Mapping[Identity, Amount]] = None) -> None:
        self._lock = threading.RLock()
        self._balances: Dict[Identity, Amount] = {}
        for acct, amt in (balances or {}).items():
            self._balances[bytes(acct)] = require_amount(amt)

    def balance_of(self, account: Identity) -> Amount:
        with self._lock:
            return self._balances.get(bytes(account), 0)

    def credit(self, account: Identity, amount: Amount) -> None:
        require_amount(amount)
        key = bytes(account)
        with self._lock:
            self._balances[key] = _add_checked(self._balances.get(key, 0), amount)

    def debit(self, account: Identity, amount: Amount) -> None:
        require_amount(amount)
        key = bytes(account)
        with self._lock:
            cur = self._balances.get(key, 0)
            if amount > cur:
                raise InsufficientFunds(available=cur, requested=amount, account=to_hex(key))
            self._balances[key] = cur - amount

    # --- persistence ---

    def dump(self) -> Dict[str, int]:
        with self._lock:
            return {to_hex(k): v for k, v in sorted(self._balances.items()) if v}

    @classmethod
    def load(cls, data: Mapping[str, int], *, address_len: int = DEFAULT_ADDRESS_LEN) -> "AccountBank":
        return cls({to_identity(k, address_len=address_len): int(v) for k, v in data.items()})


__all__ = ["TxContext", "Bank", "AccountBank", "MAX_BALANCE_BITS"]
