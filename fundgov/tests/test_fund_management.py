from __future__ import annotations

"""
End-to-end behaviour of the FundManagement facade:

  • deployment: admin is set; deposit floor is enforced at exactly 0.1 unit
  • creating spending: admin-only; stored receiver/amount/purpose
  • approving & executing: stakeholder-only votes, 4-of-5 approvals execute,
    1-of-5 does not, and a second execution is rejected
"""

import pytest

from fundgov.errors import (AlreadyExecuted, InsufficientDeposit,
                            QuorumNotMet, Unauthorized)
from fundgov.events import SPENDING_EXECUTED
from fundgov.tests import approve_by, units


# ----------------------------- deployment -----------------------------


def test_admin_is_set(fund, owner):
    assert fund.admin() == owner


def test_deposit_exactly_minimum(fund, addrs, as_):
    fund.deposit(as_(addrs["addr1"], "0.1"))
    assert fund.stakeholders(addrs["addr1"]) == units("0.1")


def test_deposit_below_minimum_rejected(fund, addrs, as_):
    with pytest.raises(InsufficientDeposit) as ei:
        fund.deposit(as_(addrs["addr1"], "0.099"))
    assert ei.value.message == "Deposit below minimum threshold"
    assert fund.stakeholders(addrs["addr1"]) == 0


def test_zero_value_deposit_rejected(fund, addrs, as_):
    with pytest.raises(InsufficientDeposit):
        fund.deposit(as_(addrs["addr1"], "0"))
    assert fund.total_balance() == 0


def test_stakeholders_lookup_accepts_hex(fund, addrs, as_):
    fund.deposit(as_(addrs["addr3"], "0.3"))
    assert fund.stakeholders("0x" + addrs["addr3"].hex()) == units("0.3")


# ------------------------- creating spending --------------------------


def test_create_requires_admin(fund, addrs, as_):
    with pytest.raises(Unauthorized) as ei:
        fund.create_spending(as_(addrs["addr1"]), addrs["addr2"], units("1"), "A gift")
    assert ei.value.message == "Admin rights required"
    assert fund.proposal_count() == 0


def test_admin_creates_spending(fund, owner, addrs, as_):
    pid = fund.create_spending(as_(owner), addrs["addr2"], units("1"), "A gift from owner")
    assert pid == 0
    spending = fund.spendings(0)
    assert spending.purpose == "A gift from owner"
    assert spending.receiver == addrs["addr2"]
    assert spending.amount == units("1")
    assert spending.approval_count == 0
    assert spending.executed is False


# ---------------------- approving & executing -------------------------


def test_only_stakeholders_may_approve(reference_setup, addrs, as_):
    with pytest.raises(Unauthorized) as ei:
        reference_setup.approve_spending(as_(addrs["stranger"]), 0, True)
    assert ei.value.message == "Must be a stakeholder to vote"


def test_approvals_aggregate(reference_setup, addrs):
    approve_by(reference_setup, [addrs[n] for n in ("addr1", "addr2", "addr3", "addr4")])
    # voting power is one per stakeholder regardless of deposit size
    assert reference_setup.spendings(0).approval_count == 4


def test_execute_with_sufficient_approvals(reference_setup, owner, addrs, as_, bank):
    fund = reference_setup
    approve_by(fund, [addrs[n] for n in ("addr1", "addr2", "addr3", "addr4")])
    receiver_before = bank.balance_of(addrs["addr2"])
    custody_before = fund.total_balance()

    fund.execute_spending(as_(owner), 0)

    executed = fund.events.named(SPENDING_EXECUTED)
    assert [e.args for e in executed] == [(0,)]
    assert fund.spendings(0).executed is True
    assert bank.balance_of(addrs["addr2"]) == receiver_before + units("1")
    assert fund.total_balance() == custody_before - units("1")


def test_execute_without_sufficient_approvals(reference_setup, owner, addrs, as_, bank):
    fund = reference_setup
    fund.approve_spending(as_(addrs["addr1"]), 0, True)
    before = bank.balance_of(addrs["addr2"])

    with pytest.raises(QuorumNotMet) as ei:
        fund.execute_spending(as_(owner), 0)

    assert ei.value.message == "Spending has not met the minimum vote percent"
    assert ei.value.details["approvals"] == 1
    assert ei.value.details["stakeholders"] == 5
    assert fund.spendings(0).executed is False
    assert bank.balance_of(addrs["addr2"]) == before
    assert fund.events.named(SPENDING_EXECUTED) == []


def test_execute_only_once(reference_setup, owner, addrs, as_, bank):
    fund = reference_setup
    approve_by(fund, [addrs[n] for n in ("addr1", "addr2", "addr3", "addr4")])
    fund.execute_spending(as_(owner), 0)
    after_first = bank.balance_of(addrs["addr2"])
    custody = fund.total_balance()

    with pytest.raises(AlreadyExecuted) as ei:
        fund.execute_spending(as_(owner), 0)

    assert ei.value.message == "Spending already executed"
    assert bank.balance_of(addrs["addr2"]) == after_first
    assert fund.total_balance() == custody
    assert len(fund.events.named(SPENDING_EXECUTED)) == 1


def test_non_admin_cannot_execute(reference_setup, addrs, as_):
    fund = reference_setup
    approve_by(fund, [addrs[n] for n in ("addr1", "addr2", "addr3", "addr4")])
    with pytest.raises(Unauthorized):
        fund.execute_spending(as_(addrs["addr5"]), 0)
    assert fund.spendings(0).executed is False


def test_dump_and_load_preserves_fund(reference_setup, owner, addrs, as_, config):
    from fundgov.contract import FundManagement

    fund = reference_setup
    approve_by(fund, [addrs["addr1"], addrs["addr2"]])
    restored = FundManagement.load(fund.dump(), config=config)

    assert restored.admin() == owner
    assert restored.total_balance() == fund.total_balance()
    assert restored.spendings(0) == fund.spendings(0)
    assert restored.vote_of(0, addrs["addr1"]) is True
    assert restored.bank.balance_of(addrs["addr5"]) == fund.bank.balance_of(addrs["addr5"])

    # the restored fund keeps operating
    approve_by(restored, [addrs["addr3"], addrs["addr4"]])
    restored.execute_spending(as_(owner), 0)
    assert restored.spendings(0).executed is True


def test_unfunded_deposit_is_rejected_as_insufficient_deposit(fund, as_):
    from fundgov.tests import ident

    unfunded = ident(0x99)
    fund.bank.credit(unfunded, units("0.05"))
    with pytest.raises(InsufficientDeposit) as ei:
        fund.deposit(as_(unfunded, "0.2"))
    assert ei.value.code == "FUND_INSUFFICIENT_DEPOSIT"
    assert fund.stakeholders(unfunded) == 0
    assert fund.total_balance() == 0
    assert fund.bank.balance_of(unfunded) == units("0.05")


def test_supplied_state_must_match_admin(reference_setup, owner, addrs):
    from fundgov.contract import FundManagement
    from fundgov.events import EventLog

    state = reference_setup.state
    same = FundManagement("0x" + owner.hex(), state=state, bank=reference_setup.bank)
    assert same.admin() == owner

    with pytest.raises(ValueError):
        FundManagement(addrs["addr1"], state=state)
    with pytest.raises(ValueError):
        FundManagement(owner, state=state, events=EventLog())
