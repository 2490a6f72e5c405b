"""
fundgov.voting — per-proposal approval tally keyed by voter identity.

One vote per (proposal, voter); later votes replace earlier ones. The counter
is adjusted by the difference between the old and new vote so that
`approval_count` always equals the number of live approve=True votes:

    previous   new     approval_count
    --------   -----   --------------
    (none)     True    +1
    (none)     False    0
    True       False   -1
    False      True    +1
    same       same     0

Executed proposals are frozen: voting on them raises AlreadyExecuted.
"""

from __future__ import annotations

import logging
from typing import Optional

from fundgov import metrics
from fundgov.access import require_stakeholder
from fundgov.errors import AlreadyExecuted
from fundgov.events import SPENDING_APPROVED
from fundgov.proposals import ProposalRegistry
from fundgov.state import FundState
from fundgov.types import Identity, ProposalId, to_hex

log = logging.getLogger(__name__)


def _delta(previous: Optional[bool], approve: bool) -> int:
    before = 1 if previous else 0
    after = 1 if approve else 0
    return after - before


class VotingEngine:
    __slots__ = ("state", "registry")

    def __init__(self, state: FundState, registry: ProposalRegistry) -> None:
        self.state = state
        self.registry = registry

    def vote(self, proposal_id: ProposalId, voter: Identity, approve: bool) -> int:
        """
        Record `voter`'s vote on `proposal_id` and return the updated approval count.
        """
        if not isinstance(approve, bool):
            raise TypeError(f"approve must be bool, got {type(approve).__name__}")
        voter = bytes(voter)
        st = self.state
        with st.transaction():
            p = self.registry.record(proposal_id)
            require_stakeholder(st, voter)
            if p.executed:
                raise AlreadyExecuted(proposal_id=p.id, message="Spending already executed; voting is closed")

            key = (p.id, voter)
            previous = st.votes.get(key)
            st.votes[key] = approve
            p.approval_count += _delta(previous, approve)
            count = p.approval_count
            st.emit(SPENDING_APPROVED, p.id, voter, approve)

        log.debug(
            "vote spending=%d voter=%s approve=%s previous=%s count=%d",
            proposal_id, to_hex(voter), approve, previous, count,
        )
        metrics.record_vote(approve)
        return count

    def approval_count(self, proposal_id: ProposalId) -> int:
        with self.state.reading():
            return self.registry.record(proposal_id).approval_count

    def vote_of(self, proposal_id: ProposalId, voter: Identity) -> Optional[bool]:
        """True/False for a recorded vote, None if `voter` never voted."""
        with self.state.reading():
            p = self.registry.record(proposal_id)
            return self.state.votes.get((p.id, bytes(voter)))


__all__ = ["VotingEngine"]
