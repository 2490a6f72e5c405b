# -*- coding: utf-8 -*-
"""
fundgov.tests.conftest
======================

Fixtures mirroring the reference deployment: one admin ("owner") and six
further signers, each holding 10 units in the host bank so deposits can be
paid for.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Callable, Dict, List

import pytest

from fundgov.config import FundConfig
from fundgov.contract import FundManagement
from fundgov.host import AccountBank, TxContext
from fundgov.tests import ident, units

OWNER = ident(0xAA)
SIGNERS: List[bytes] = [ident(0x11 * i) for i in range(1, 7)]  # addr1..addr6
STRANGER = ident(0x77)  # never deposits

BANK_FLOAT = units("10")


@pytest.fixture
def config() -> FundConfig:
    return FundConfig(min_deposit=units("0.1"), quorum_fraction=Decimal("0.8"))


@pytest.fixture
def bank() -> AccountBank:
    return AccountBank({a: BANK_FLOAT for a in [OWNER, *SIGNERS, STRANGER]})


@pytest.fixture
def fund(config: FundConfig, bank: AccountBank) -> FundManagement:
    return FundManagement(OWNER, config=config, bank=bank)


@pytest.fixture
def owner() -> bytes:
    return OWNER


@pytest.fixture
def addrs() -> Dict[str, bytes]:
    out = {f"addr{i + 1}": a for i, a in enumerate(SIGNERS)}
    out["stranger"] = STRANGER
    return out


@pytest.fixture
def as_() -> Callable[..., TxContext]:
    """as_(identity, value="0") -> TxContext with value in decimal units."""

    def make(identity: bytes, value: str = "0") -> TxContext:
        return TxContext(caller=identity, value=units(value))

    return make


@pytest.fixture
def reference_setup(fund: FundManagement, owner: bytes, addrs: Dict[str, bytes], as_):
    """
    Admin creates spending 0 (1 unit to addr2, "A gift from owner"), then five
    stakeholders deposit {0.1, 0.1, 0.3, 0.2, 1.0}.
    """
    fund.create_spending(as_(owner), addrs["addr2"], units("1"), "A gift from owner")
    for name, amount in (
        ("addr1", "0.1"),
        ("addr2", "0.1"),
        ("addr3", "0.3"),
        ("addr4", "0.2"),
        ("addr5", "1.0"),
    ):
        fund.deposit(as_(addrs[name], amount))
    return fund
