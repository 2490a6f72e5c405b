from __future__ import annotations

"""
Fund treasury — custody balance & stakeholder deposits
------------------------------------------------------

Maintains the custody balance and the per-identity cumulative deposit records
that make an identity a stakeholder. Amounts are integer base units. All
operations check:
  • deposit floor (config.min_deposit) and a funded deposit, both rejected
    with InsufficientDeposit and no state change
  • sufficient custody balance before any payout
  • payouts only on behalf of the bound disburser (the ExecutionGuard)

Money enters and leaves through the host bank:
  deposit      → bank.debit(depositor)  then custody += amount
  transfer_out → bank.credit(receiver)  then custody -= amount

The bank call is the last fallible step of each mutation, so a bank failure
leaves the fund untouched; the enclosing FundState transaction rolls back any
other failure.
"""

import logging
from typing import Any, List, Optional, Tuple

from fundgov import metrics
from fundgov.errors import (InsufficientDeposit, InsufficientFunds,
                            Unauthorized)
from fundgov.events import DEPOSIT
from fundgov.host import AccountBank, Bank
from fundgov.state import FundState
from fundgov.types import Amount, Identity, format_units, require_amount, to_hex

log = logging.getLogger(__name__)


class TreasuryLedger:
    """
    Custody accounting over an explicit FundState.

    Usage:
        ledger = TreasuryLedger(state, bank)
        ledger.deposit(alice, parse_units("0.1"))
        ledger.balance_of(alice)  # -> 10**17
    """

    __slots__ = ("state", "bank", "_disburser")

    def __init__(self, state: FundState, bank: Optional[Bank] = None) -> None:
        self.state = state
        self.bank: Bank = bank if bank is not None else AccountBank()
        self._disburser: Any = None

    # --- introspection ---

    def balance_of(self, identity: Identity) -> Amount:
        """Cumulative deposit of `identity`; 0 if it never deposited."""
        return self.state.stakeholders.get(bytes(identity), 0)

    def total_balance(self) -> Amount:
        return self.state.total_balance

    def stakeholder_count(self) -> int:
        with self.state.reading():
            return sum(1 for v in self.state.stakeholders.values() if v > 0)

    def stakeholders(self) -> List[Tuple[Identity, Amount]]:
        with self.state.reading():
            return sorted(self.state.stakeholders.items())

    # --- mutations ---

    def deposit(self, identity: Identity, amount: Amount) -> Amount:
        """
        Pull `amount` from the depositor's bank account into custody and add it
        to the depositor's stake. Returns the new cumulative deposit.
        """
        require_amount(amount)
        identity = bytes(identity)
        st = self.state
        with st.transaction():
            floor = st.config.min_deposit
            if amount < floor:
                raise InsufficientDeposit(required=floor, actual=amount)
            try:
                self.bank.debit(identity, amount)
            except InsufficientFunds as e:
                # the attached value was not received
                raise InsufficientDeposit(
                    required=floor,
                    actual=amount,
                    message="Deposit not covered by sender balance",
                    details={"available": e.details.get("available")},
                ) from e
            new_stake = st.stakeholders.get(identity, 0) + amount
            st.stakeholders[identity] = new_stake
            st.total_balance += amount
            st.emit(DEPOSIT, identity, amount)

        log.debug("deposit %s amount=%d stake=%d", to_hex(identity), amount, new_stake)
        metrics.record_deposit(float(format_units(amount, st.config.decimals)))
        self._refresh_gauges()
        return new_stake

    def bind_disburser(self, authority: Any) -> None:
        """Register the single object allowed to call transfer_out."""
        if self._disburser is not None and self._disburser is not authority:
            raise RuntimeError("ledger already has a disburser bound")
        self._disburser = authority

    def transfer_out(self, receiver: Identity, amount: Amount, *, authority: Any) -> None:
        """
        Move `amount` from custody to `receiver`'s bank account.
        Only the bound disburser may call this.
        """
        require_amount(amount)
        st = self.state
        with st.transaction():
            if self._disburser is None or authority is not self._disburser:
                raise Unauthorized("transfer_out is reserved for the execution guard", role="disburser")
            if amount > st.total_balance:
                raise InsufficientFunds(available=st.total_balance, requested=amount, account="custody")
            self.bank.credit(bytes(receiver), amount)
            st.total_balance -= amount
        self._refresh_gauges()

    def _refresh_gauges(self) -> None:
        metrics.set_balances(
            float(format_units(self.state.total_balance, self.state.config.decimals)),
            self.stakeholder_count(),
        )


__all__ = ["TreasuryLedger"]
