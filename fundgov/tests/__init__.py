from __future__ import annotations
"""
fundgov test suite package.

Shared fixtures live in conftest.py; this module only carries tiny helpers
that test modules import directly.
"""

from fundgov.types import parse_units


def units(x: str) -> int:
    """Decimal units -> base units, e.g. units("0.1") == 10**17."""
    return parse_units(x)


def ident(byte: int) -> bytes:
    """Deterministic 32-byte identity made of one repeated byte."""
    return bytes([byte]) * 32


def approve_by(fund, voters, proposal_id: int = 0, approve: bool = True) -> None:
    """Cast the same vote on `proposal_id` from each identity in `voters`."""
    from fundgov.host import TxContext

    for v in voters:
        fund.approve_spending(TxContext(caller=v), proposal_id, approve)
