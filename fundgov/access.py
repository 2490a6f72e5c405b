# -*- coding: utf-8 -*-
"""
fundgov.access
==============

Role predicates over explicit fund state.

- `is_admin`: identity equals the admin fixed at construction
- `is_stakeholder`: identity holds a nonzero cumulative deposit
- `require_admin` / `require_stakeholder`: raise `Unauthorized` otherwise

Roles are derived, never stored: becoming a stakeholder is a side effect of a
qualifying deposit and there is no role transfer.
"""
from __future__ import annotations

from typing import TYPE_CHECKING

from fundgov.errors import Unauthorized
from fundgov.types import Identity, to_hex

if TYPE_CHECKING:  # pragma: no cover
    from fundgov.state import FundState

__all__ = [
    "is_admin",
    "is_stakeholder",
    "require_admin",
    "require_stakeholder",
]


def is_admin(state: "FundState", identity: Identity) -> bool:
    return bytes(identity) == state.admin


def is_stakeholder(state: "FundState", identity: Identity) -> bool:
    return state.stakeholders.get(bytes(identity), 0) > 0


def require_admin(state: "FundState", caller: Identity) -> None:
    """
    Raise unless `caller` is the fund admin.
    """
    if not is_admin(state, caller):
        raise Unauthorized("Admin rights required", role="admin", identity=to_hex(caller))


def require_stakeholder(state: "FundState", caller: Identity) -> None:
    if not is_stakeholder(state, caller):
        raise Unauthorized("Must be a stakeholder to vote", role="stakeholder", identity=to_hex(caller))
