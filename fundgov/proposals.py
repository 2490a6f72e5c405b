"""
fundgov.proposals — append-only registry of spending proposals.

Ids are dense and 0-based: the id of a proposal is its index in
`FundState.proposals`. Proposals are never reordered or deleted, and only the
voting engine (approval_count) and the execution guard (executed) touch them
after creation.
"""

from __future__ import annotations

import logging
from typing import Any, List

from fundgov import metrics
from fundgov.access import require_admin
from fundgov.errors import InvalidProposal, NotFound
from fundgov.events import SPENDING_CREATED
from fundgov.state import FundState
from fundgov.types import (Amount, Identity, Proposal, ProposalId,
                           ProposalView, to_hex)

log = logging.getLogger(__name__)

MAX_PURPOSE_CHARS = 1024


class ProposalRegistry:
    __slots__ = ("state",)

    def __init__(self, state: FundState) -> None:
        self.state = state

    def create(self, caller: Identity, receiver: Identity, amount: Amount, purpose: str) -> ProposalId:
        """
        Append a spending proposal and return its id. Admin only.
        """
        st = self.state
        with st.transaction():
            require_admin(st, caller)
            if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
                raise InvalidProposal("amount must be a positive integer", details={"amount": repr(amount)})
            if not isinstance(receiver, (bytes, bytearray)) or len(receiver) != st.config.address_len:
                raise InvalidProposal(
                    "receiver must be a well-formed identity",
                    details={"address_len": st.config.address_len},
                )
            if not isinstance(purpose, str) or len(purpose) > MAX_PURPOSE_CHARS:
                raise InvalidProposal(f"purpose must be text of at most {MAX_PURPOSE_CHARS} chars")

            pid = len(st.proposals)
            st.proposals.append(
                Proposal(
                    id=pid,
                    receiver=bytes(receiver),
                    amount=amount,
                    purpose=purpose,
                    created_seq=st.next_seq,
                )
            )
            st.emit(SPENDING_CREATED, pid, bytes(receiver), amount)

        log.info("spending %d created receiver=%s amount=%d", pid, to_hex(receiver), amount)
        metrics.record_proposal()
        return pid

    def record(self, proposal_id: Any) -> Proposal:
        """Mutable record for in-transaction use by the voting/execution components."""
        if isinstance(proposal_id, bool) or not isinstance(proposal_id, int):
            raise NotFound(proposal_id=repr(proposal_id))
        if not (0 <= proposal_id < len(self.state.proposals)):
            raise NotFound(proposal_id=proposal_id)
        return self.state.proposals[proposal_id]

    def get(self, proposal_id: ProposalId) -> ProposalView:
        with self.state.reading():
            return ProposalView.of(self.record(proposal_id))

    def count(self) -> int:
        return len(self.state.proposals)

    def all(self) -> List[ProposalView]:
        with self.state.reading():
            return [ProposalView.of(p) for p in self.state.proposals]


__all__ = ["ProposalRegistry", "MAX_PURPOSE_CHARS"]
