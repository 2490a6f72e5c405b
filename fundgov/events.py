"""
fundgov.events — ordered notification log for fund observers.

Events are queued by operations while their transaction is open. Once the
outermost transaction commits they are appended to the history in commit order
and then handed to subscribers (see fundgov.state.FundState). A failed
operation therefore never notifies anyone.

Event names:
    Deposit(depositor, amount)
    SpendingCreated(proposal_id, receiver, amount)
    SpendingApproved(proposal_id, voter, approve)
    SpendingExecuted(proposal_id)
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Tuple

from fundgov.types import to_hex

log = logging.getLogger(__name__)

DEPOSIT = "Deposit"
SPENDING_CREATED = "SpendingCreated"
SPENDING_APPROVED = "SpendingApproved"
SPENDING_EXECUTED = "SpendingExecuted"


@dataclass(frozen=True)
class FundEvent:
    name: str
    args: Tuple[Any, ...]
    seq: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "args": [to_hex(a) if isinstance(a, (bytes, bytearray)) else a for a in self.args],
            "seq": self.seq,
        }


Subscriber = Callable[[FundEvent], None]


@dataclass
class EventLog:
    """
    Append-only published history plus synchronous subscribers.

    `record()` appends committed events to `history`; FundState calls it while
    the state lock is still held, so `history` is in commit (seq) order.
    `notify()` runs subscribers afterwards, outside the state lock. A subscriber
    that raises is logged and skipped: the operation has already committed, so
    its caller still sees success and the remaining subscribers still run.
    """
    history: List[FundEvent] = field(default_factory=list)
    _subscribers: List[Subscriber] = field(default_factory=list)
    _lock: threading.RLock = field(default_factory=threading.RLock, repr=False)

    def subscribe(self, fn: Subscriber) -> Callable[[], None]:
        """Register `fn`; returns a callable that unsubscribes it."""
        with self._lock:
            self._subscribers.append(fn)

        def _unsubscribe() -> None:
            with self._lock:
                if fn in self._subscribers:
                    self._subscribers.remove(fn)

        return _unsubscribe

    def record(self, events: List[FundEvent]) -> None:
        with self._lock:
            self.history.extend(events)

    def notify(self, events: List[FundEvent]) -> None:
        with self._lock:
            subs = list(self._subscribers)
        for ev in events:
            log.debug("event %s%r seq=%d", ev.name, ev.args, ev.seq)
            for fn in subs:
                try:
                    fn(ev)
                except Exception:
                    log.exception("subscriber %r failed on %s seq=%d", fn, ev.name, ev.seq)

    def named(self, name: str) -> List[FundEvent]:
        with self._lock:
            return [e for e in self.history if e.name == name]

    def __len__(self) -> int:
        return len(self.history)


__all__ = [
    "DEPOSIT",
    "SPENDING_CREATED",
    "SPENDING_APPROVED",
    "SPENDING_EXECUTED",
    "FundEvent",
    "EventLog",
]
