"""
fundgov.execution — quorum check and execute-once payout.

`ExecutionGuard.execute` is the only path by which custody funds leave the
fund. In one transaction it:

  1. requires the admin caller
  2. loads the proposal (NotFound) and rejects executed ones (AlreadyExecuted)
  3. checks approvals / live stakeholders >= quorum_fraction (QuorumNotMet)
  4. pays the receiver via TreasuryLedger.transfer_out (InsufficientFunds)
  5. marks the proposal executed and emits SpendingExecuted(id)

The stakeholder count is read at execution time, not at proposal creation, so
new deposits raise the bar for proposals that are still pending. The quorum
comparison is exact (Decimal), and a fund without stakeholders never meets it.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from fundgov import metrics
from fundgov.access import require_admin
from fundgov.errors import AlreadyExecuted, QuorumNotMet
from fundgov.events import SPENDING_EXECUTED
from fundgov.ledger import TreasuryLedger
from fundgov.proposals import ProposalRegistry
from fundgov.state import FundState
from fundgov.types import Identity, ProposalId, format_units, to_hex
from fundgov.voting import VotingEngine

log = logging.getLogger(__name__)


def quorum_met(approvals: int, stakeholders: int, quorum_fraction: Decimal) -> bool:
    """approvals / stakeholders >= quorum_fraction, without division."""
    if stakeholders <= 0:
        return False
    return Decimal(approvals) >= quorum_fraction * Decimal(stakeholders)


class ExecutionGuard:
    __slots__ = ("state", "ledger", "registry", "voting")

    def __init__(
        self,
        state: FundState,
        ledger: TreasuryLedger,
        registry: ProposalRegistry,
        voting: VotingEngine,
    ) -> None:
        self.state = state
        self.ledger = ledger
        self.registry = registry
        self.voting = voting
        ledger.bind_disburser(self)

    def execute(self, caller: Identity, proposal_id: ProposalId) -> None:
        st = self.state
        with st.transaction():
            require_admin(st, caller)
            p = self.registry.record(proposal_id)
            if p.executed:
                raise AlreadyExecuted(proposal_id=p.id)

            approvals = self.voting.approval_count(p.id)
            holders = self.ledger.stakeholder_count()
            quorum = st.config.quorum_fraction
            if not quorum_met(approvals, holders, quorum):
                raise QuorumNotMet(
                    proposal_id=p.id,
                    approvals=approvals,
                    stakeholders=holders,
                    quorum=quorum,
                )

            self.ledger.transfer_out(p.receiver, p.amount, authority=self)
            p.executed = True
            p.executed_seq = st.next_seq
            st.emit(SPENDING_EXECUTED, p.id)

        log.info(
            "spending %d executed receiver=%s amount=%d approvals=%d/%d",
            p.id, to_hex(p.receiver), p.amount, approvals, holders,
        )
        metrics.record_execution(float(format_units(p.amount, st.config.decimals)))


__all__ = ["ExecutionGuard", "quorum_met"]
