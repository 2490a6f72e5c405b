"""
FundManagement — stakeholder-governed custodial treasury

Public surface of the fund. Every state-changing call takes an attested
`TxContext` (who is calling, and what value they attached):

    fund = FundManagement(admin)
    fund.deposit(TxContext(alice, value=parse_units("0.1")))
    pid = fund.create_spending(TxContext(admin), bob, parse_units("1"), "A gift")
    fund.approve_spending(TxContext(alice), pid, True)
    fund.execute_spending(TxContext(admin), pid)     # emits SpendingExecuted(pid)

Reads:
    admin()                    -> Identity
    stakeholders(identity)     -> cumulative deposit (0 if none)
    spendings(proposal_id)     -> ProposalView
    total_balance(), stakeholder_count(), proposal_count(), vote_of(pid, voter)

Persistence:
    data = fund.dump()              # JSON-safe dict (fund + bank)
    fund = FundManagement.load(data)

Failures are typed (fundgov.errors) and leave the fund unchanged; rejected
calls are counted in metrics and logged at DEBUG before propagating.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from fundgov import metrics
from fundgov.config import FundConfig, get_config
from fundgov.errors import FundError
from fundgov.events import EventLog
from fundgov.execution import ExecutionGuard
from fundgov.host import AccountBank, Bank, TxContext
from fundgov.ledger import TreasuryLedger
from fundgov.proposals import ProposalRegistry
from fundgov.state import FundState
from fundgov.types import (Amount, Identity, ProposalId, ProposalView,
                           to_identity)
from fundgov.voting import VotingEngine

log = logging.getLogger(__name__)


class FundManagement:
    def __init__(
        self,
        admin: Identity | str,
        *,
        config: Optional[FundConfig] = None,
        bank: Optional[Bank] = None,
        events: Optional[EventLog] = None,
        state: Optional[FundState] = None,
    ) -> None:
        if state is not None:
            if to_identity(admin, address_len=state.config.address_len) != state.admin:
                raise ValueError("admin does not match the admin of the supplied state")
            if events is not None and events is not state.events:
                raise ValueError("events must be the supplied state's event log")
            self.state = state
        else:
            self.state = FundState(admin, config=config or get_config(), events=events)
        self.config = self.state.config
        self.bank: Bank = bank if bank is not None else AccountBank()
        self.ledger = TreasuryLedger(self.state, self.bank)
        self.registry = ProposalRegistry(self.state)
        self.voting = VotingEngine(self.state, self.registry)
        self.guard = ExecutionGuard(self.state, self.ledger, self.registry, self.voting)

    @property
    def events(self) -> EventLog:
        return self.state.events

    def identity(self, value: Identity | str) -> Identity:
        """Normalize hex or bytes input to an identity of the configured width."""
        return to_identity(value, address_len=self.config.address_len)

    @contextmanager
    def _op(self, name: str) -> Iterator[None]:
        try:
            yield
        except FundError as e:
            log.debug("%s rejected: %s", name, e)
            metrics.record_rejection(name, e.code)
            raise

    # --- state-changing operations ---

    def deposit(self, ctx: TxContext) -> None:
        with self._op("deposit"):
            self.ledger.deposit(self.identity(ctx.caller), ctx.value)

    def create_spending(
        self,
        ctx: TxContext,
        receiver: Identity | str,
        amount: Amount,
        purpose: str,
    ) -> ProposalId:
        with self._op("create_spending"):
            if isinstance(receiver, str):
                receiver = self.identity(receiver)
            return self.registry.create(self.identity(ctx.caller), receiver, amount, purpose)

    def approve_spending(self, ctx: TxContext, proposal_id: ProposalId, approve: bool) -> None:
        with self._op("approve_spending"):
            self.voting.vote(proposal_id, self.identity(ctx.caller), approve)

    def execute_spending(self, ctx: TxContext, proposal_id: ProposalId) -> None:
        with self._op("execute_spending"):
            self.guard.execute(self.identity(ctx.caller), proposal_id)

    # --- reads ---

    def admin(self) -> Identity:
        return self.state.admin

    def stakeholders(self, identity: Identity | str) -> Amount:
        return self.ledger.balance_of(self.identity(identity))

    def spendings(self, proposal_id: ProposalId) -> ProposalView:
        return self.registry.get(proposal_id)

    def total_balance(self) -> Amount:
        return self.ledger.total_balance()

    def stakeholder_count(self) -> int:
        return self.ledger.stakeholder_count()

    def proposal_count(self) -> int:
        return self.registry.count()

    def vote_of(self, proposal_id: ProposalId, voter: Identity | str) -> Optional[bool]:
        return self.voting.vote_of(proposal_id, self.identity(voter))

    # --- load/save ---

    def dump(self) -> Dict[str, Any]:
        out = {"fund": self.state.dump()}
        if isinstance(self.bank, AccountBank):
            out["bank"] = self.bank.dump()
        return out

    @classmethod
    def load(
        cls,
        data: Dict[str, Any],
        *,
        config: Optional[FundConfig] = None,
        bank: Optional[Bank] = None,
        events: Optional[EventLog] = None,
    ) -> "FundManagement":
        cfg = config or get_config()
        state = FundState.load(data["fund"], config=cfg, events=events)
        if bank is None:
            bank = AccountBank.load(data.get("bank", {}), address_len=cfg.address_len)
        return cls(state.admin, config=cfg, bank=bank, state=state)


__all__ = ["FundManagement"]
