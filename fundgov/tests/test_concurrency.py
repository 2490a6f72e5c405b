import threading

from fundgov.config import FundConfig
from fundgov.contract import FundManagement
from fundgov.errors import AlreadyExecuted
from fundgov.events import SPENDING_EXECUTED, EventLog
from fundgov.host import AccountBank, TxContext
from fundgov.tests import approve_by, ident, units

ADMIN = ident(0xAA)
HOLDERS = [ident(i) for i in range(1, 21)]
RECEIVER = ident(0xEE)


def _fund():
    fund = FundManagement(ADMIN, config=FundConfig(), bank=AccountBank({h: units("1") for h in HOLDERS}))
    for h in HOLDERS:
        fund.deposit(TxContext(h, units("0.5")))
    return fund


def _race(n, target):
    barrier = threading.Barrier(n)
    results = [None] * n

    def run(i):
        barrier.wait()
        try:
            results[i] = target(i)
        except Exception as e:
            results[i] = e

    threads = [threading.Thread(target=run, args=(i,)) for i in range(n)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)
    return results


def test_concurrent_executions_pay_once():
    fund = _fund()
    pid = fund.create_spending(TxContext(ADMIN), RECEIVER, units("3"), "race")
    approve_by(fund, HOLDERS[:16], proposal_id=pid)

    results = _race(8, lambda _i: fund.execute_spending(TxContext(ADMIN), pid))

    assert results.count(None) == 1
    assert all(isinstance(r, AlreadyExecuted) for r in results if r is not None)
    assert fund.bank.balance_of(RECEIVER) == units("3")
    assert fund.total_balance() == units("7")
    assert len(fund.events.named(SPENDING_EXECUTED)) == 1


def test_concurrent_votes_are_all_counted():
    fund = _fund()
    pid = fund.create_spending(TxContext(ADMIN), RECEIVER, units("1"), "tally")

    _race(len(HOLDERS), lambda i: fund.approve_spending(TxContext(HOLDERS[i]), pid, True))

    assert fund.spendings(pid).approval_count == len(HOLDERS)
    fund.state.check_invariants()


def test_concurrent_deposits_accumulate():
    fund = _fund()
    _race(len(HOLDERS), lambda i: fund.deposit(TxContext(HOLDERS[i], units("0.1"))))
    assert fund.total_balance() == units("12")
    assert fund.stakeholder_count() == len(HOLDERS)
    fund.state.check_invariants()


class _SlowFirstNotify(EventLog):
    """Holds back notification of seq 1 until another commit has happened."""

    def __init__(self):
        super().__init__()
        self.waiting = threading.Event()
        self.release = threading.Event()

    def notify(self, events):
        if events and events[0].seq == 1:
            self.waiting.set()
            self.release.wait(timeout=5)
        super().notify(events)


def test_history_is_in_commit_order_when_notification_lags():
    log = _SlowFirstNotify()
    fund = FundManagement(ADMIN, config=FundConfig(), bank=AccountBank({h: units("1") for h in HOLDERS}), events=log)

    first = threading.Thread(target=fund.deposit, args=(TxContext(HOLDERS[0], units("0.1")),))
    first.start()
    assert log.waiting.wait(timeout=5)
    fund.deposit(TxContext(HOLDERS[1], units("0.1")))
    log.release.set()
    first.join(timeout=5)

    seqs = [e.seq for e in log.history]
    assert seqs == [1, 2]
    assert seqs == sorted(seqs)


def test_history_stays_sorted_under_contention():
    fund = _fund()
    _race(len(HOLDERS), lambda i: fund.deposit(TxContext(HOLDERS[i], units("0.1"))))
    seqs = [e.seq for e in fund.events.history]
    assert seqs == sorted(seqs)
    assert len(set(seqs)) == len(seqs)
