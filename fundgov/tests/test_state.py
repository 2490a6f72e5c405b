import pytest

from fundgov.events import DEPOSIT, EventLog
from fundgov.host import AccountBank
from fundgov.ledger import TreasuryLedger
from fundgov.proposals import ProposalRegistry
from fundgov.state import STATE_VERSION, FundState
from fundgov.tests import ident, units

ADMIN = ident(0xAA)
ALICE = ident(0x01)
BOB = ident(0x02)


def test_admin_accepts_hex_and_is_fixed():
    st = FundState("0x" + ADMIN.hex())
    assert st.admin == ADMIN
    with pytest.raises(ValueError):
        FundState("0x1234")


def test_failed_transaction_restores_everything():
    st = FundState(ADMIN)
    reg = ProposalRegistry(st)
    reg.create(ADMIN, BOB, units("1"), "kept")
    before = st.dump()

    with pytest.raises(RuntimeError):
        with st.transaction():
            st.total_balance += 5
            st.stakeholders[ALICE] = 5
            st.proposals[0].approval_count = 9
            st.votes[(0, ALICE)] = True
            st.emit(DEPOSIT, ALICE, 5)
            raise RuntimeError("boom")

    assert st.dump() == before
    assert st.events.named(DEPOSIT) == []


def test_nested_transaction_joins_outer():
    st = FundState(ADMIN)
    with pytest.raises(KeyError):
        with st.transaction():
            st.total_balance = 10
            with st.transaction():
                st.total_balance = 20
            raise KeyError("outer fails")
    assert st.total_balance == 0
    assert st.seq == 0

    with st.transaction():
        with st.transaction():
            st.emit(DEPOSIT, ALICE, 1)
        # inner commit does not publish on its own
        assert len(st.events) == 0
    assert st.seq == 1
    assert [e.seq for e in st.events.history] == [1]


def test_emit_requires_open_transaction():
    st = FundState(ADMIN)
    with pytest.raises(RuntimeError):
        st.emit(DEPOSIT, ALICE, 1)


def test_events_publish_after_lock_release():
    st = FundState(ADMIN)
    ledger = TreasuryLedger(st, AccountBank({ALICE: units("5"), BOB: units("5")}))
    seen = []

    def observer(ev):
        # re-entering a write from a subscriber runs as a fresh transaction
        if ev.args[0] == ALICE:
            ledger.deposit(BOB, units("0.1"))
        seen.append((ev.args[0], ev.seq, st.seq))

    st.events.subscribe(observer)
    ledger.deposit(ALICE, units("0.1"))

    assert seen == [(BOB, 2, 2), (ALICE, 1, 2)]
    assert ledger.stakeholder_count() == 2


def test_unsubscribe_stops_delivery():
    log = EventLog()
    st = FundState(ADMIN, events=log)
    ledger = TreasuryLedger(st, AccountBank({ALICE: units("5")}))
    seen = []
    off = log.subscribe(seen.append)
    ledger.deposit(ALICE, units("0.1"))
    off()
    off()
    ledger.deposit(ALICE, units("0.1"))
    assert len(seen) == 1
    assert len(log) == 2


def test_dump_load_roundtrip_and_version():
    st = FundState(ADMIN)
    ledger = TreasuryLedger(st, AccountBank({ALICE: units("5")}))
    ProposalRegistry(st).create(ADMIN, BOB, units("0.5"), "p")
    ledger.deposit(ALICE, units("2"))

    data = st.dump()
    assert data["version"] == STATE_VERSION
    restored = FundState.load(data)
    assert restored.dump() == data

    with pytest.raises(ValueError):
        FundState.load({**data, "version": STATE_VERSION + 1})


@pytest.mark.parametrize(
    "mutate",
    [
        lambda d: d.__setitem__("total_balance", d["total_balance"] + 1),
        lambda d: d["proposals"][0].__setitem__("id", 3),
        lambda d: d["proposals"][0].__setitem__("approval_count", 1),
        lambda d: d["votes"].append({"proposal_id": 4, "voter": "0x" + "01" * 32, "approved": True}),
        lambda d: d["stakeholders"].__setitem__("0x" + "02" * 32, 0),
    ],
)
def test_load_rejects_inconsistent_state(mutate):
    st = FundState(ADMIN)
    TreasuryLedger(st, AccountBank({ALICE: units("5")})).deposit(ALICE, units("1"))
    ProposalRegistry(st).create(ADMIN, BOB, units("0.5"), "p")
    data = st.dump()
    mutate(data)
    with pytest.raises(ValueError):
        FundState.load(data)
