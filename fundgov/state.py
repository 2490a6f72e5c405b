from __future__ import annotations

"""
Fund state — the single shared resource behind every fund operation
-------------------------------------------------------------------

`FundState` holds the whole logical state of one fund:

  • admin           : identity fixed at construction
  • total_balance   : custody balance in base units
  • stakeholders    : identity -> cumulative deposit (never decreases)
  • proposals       : ordered list of spending proposals (index == id)
  • votes           : (proposal_id, voter) -> approved

It is storage-agnostic: `dump()` produces a JSON-friendly dict and `load()`
restores it. Components (ledger, registry, voting, execution) receive the
state explicitly; there is no module-level global.

Transactions
~~~~~~~~~~~~
Every operation runs inside `transaction()`. A re-entrant lock serializes
callers; the outermost transaction snapshots the state and restores it if the
body raises, so a failed call leaves zero side effects. Events queued with
`emit()` are appended to the event history when the outermost transaction
commits, still under the lock, so the history is in seq order. Subscribers
are called afterwards, outside the lock, so observers always see settled
state and may call back into the fund.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from threading import RLock
from typing import Any, Dict, Iterator, List, Optional, Tuple

from fundgov.config import FundConfig
from fundgov.events import EventLog, FundEvent
from fundgov.types import (Amount, Identity, Proposal, ProposalId, to_hex,
                           to_identity)

log = logging.getLogger(__name__)

STATE_VERSION = 1


@dataclass
class _Snapshot:
    total_balance: Amount
    stakeholders: Dict[Identity, Amount]
    proposals: List[Proposal]
    votes: Dict[Tuple[ProposalId, Identity], bool]
    seq: int


class FundState:
    """
    In-memory fund state with serialized, all-or-nothing transactions.
    """

    def __init__(
        self,
        admin: Identity | str,
        *,
        config: Optional[FundConfig] = None,
        events: Optional[EventLog] = None,
    ) -> None:
        self.config = config or FundConfig()
        self.config.validate()
        self.admin: Identity = to_identity(admin, address_len=self.config.address_len)
        self.total_balance: Amount = 0
        self.stakeholders: Dict[Identity, Amount] = {}
        self.proposals: List[Proposal] = []
        self.votes: Dict[Tuple[ProposalId, Identity], bool] = {}
        self.seq = 0
        self.events = events if events is not None else EventLog()

        self._lock = RLock()
        self._depth = 0
        self._pending: List[FundEvent] = []

    # --- transactions ---

    @contextmanager
    def transaction(self) -> Iterator["FundState"]:
        """
        Serialize and atomically apply the body. Nested use joins the
        enclosing transaction.
        """
        to_publish: List[FundEvent] = []
        with self._lock:
            outermost = self._depth == 0
            snap = self._snapshot() if outermost else None
            self._depth += 1
            try:
                yield self
            except BaseException:
                if outermost:
                    self._restore(snap)  # type: ignore[arg-type]
                    self._pending.clear()
                raise
            else:
                if outermost:
                    self.seq += 1
                    to_publish = self._pending
                    self._pending = []
                    self.events.record(to_publish)
            finally:
                self._depth -= 1
        if to_publish:
            self.events.notify(to_publish)

    @contextmanager
    def reading(self) -> Iterator["FundState"]:
        """Hold the lock for a consistent read; never observes an open transaction from another thread."""
        with self._lock:
            yield self

    def emit(self, name: str, *args: Any) -> None:
        """Queue an event for publication when the current transaction commits."""
        if self._depth == 0:
            raise RuntimeError("emit() outside of a transaction")
        self._pending.append(FundEvent(name=name, args=tuple(args), seq=self.seq + 1))

    @property
    def next_seq(self) -> int:
        """Sequence number the currently open transaction will commit as."""
        return self.seq + 1

    def _snapshot(self) -> _Snapshot:
        return _Snapshot(
            total_balance=self.total_balance,
            stakeholders=dict(self.stakeholders),
            proposals=[p.copy() for p in self.proposals],
            votes=dict(self.votes),
            seq=self.seq,
        )

    def _restore(self, snap: _Snapshot) -> None:
        self.total_balance = snap.total_balance
        self.stakeholders = snap.stakeholders
        self.proposals = snap.proposals
        self.votes = snap.votes
        self.seq = snap.seq

    # --- load/save ---

    def dump(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "version": STATE_VERSION,
                "admin": to_hex(self.admin),
                "total_balance": self.total_balance,
                "stakeholders": {to_hex(k): v for k, v in sorted(self.stakeholders.items())},
                "proposals": [p.to_dict() for p in self.proposals],
                "votes": [
                    {"proposal_id": pid, "voter": to_hex(voter), "approved": approved}
                    for (pid, voter), approved in sorted(self.votes.items())
                ],
                "seq": self.seq,
            }

    @classmethod
    def load(
        cls,
        data: Dict[str, Any],
        *,
        config: Optional[FundConfig] = None,
        events: Optional[EventLog] = None,
    ) -> "FundState":
        version = int(data.get("version", STATE_VERSION))
        if version != STATE_VERSION:
            raise ValueError(f"unsupported fund state version {version}")
        st = cls(data["admin"], config=config, events=events)
        alen = st.config.address_len
        st.total_balance = int(data.get("total_balance", 0))
        st.stakeholders = {
            to_identity(k, address_len=alen): int(v) for k, v in data.get("stakeholders", {}).items()
        }
        st.proposals = [Proposal.from_dict(p, address_len=alen) for p in data.get("proposals", [])]
        st.votes = {
            (int(v["proposal_id"]), to_identity(v["voter"], address_len=alen)): bool(v["approved"])
            for v in data.get("votes", [])
        }
        st.seq = int(data.get("seq", 0))
        st.check_invariants()
        return st

    # --- invariants ---

    def check_invariants(self) -> None:
        """
        Raise ValueError if the state is internally inconsistent. Used on load
        and by tests; operations keep these true by construction.
        """
        for i, p in enumerate(self.proposals):
            if p.id != i:
                raise ValueError(f"proposal ids must be dense: index {i} holds id {p.id}")
            live = sum(1 for (pid, _), ok in self.votes.items() if pid == i and ok)
            if p.approval_count != live:
                raise ValueError(
                    f"approval_count of proposal {i} is {p.approval_count}, live approvals are {live}"
                )
        for (pid, _voter) in self.votes:
            if not (0 <= pid < len(self.proposals)):
                raise ValueError(f"vote references unknown proposal {pid}")
        if any(v <= 0 for v in self.stakeholders.values()):
            raise ValueError("stakeholder records must be positive")
        paid = sum(p.amount for p in self.proposals if p.executed)
        deposited = sum(self.stakeholders.values())
        if self.total_balance != deposited - paid:
            raise ValueError(
                f"custody balance {self.total_balance} != deposits {deposited} - payouts {paid}"
            )


__all__ = ["FundState", "STATE_VERSION"]
