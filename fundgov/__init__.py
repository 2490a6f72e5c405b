from __future__ import annotations
"""
fundgov — stakeholder-governed custodial treasury.

Deposits make an identity a stakeholder; the admin proposes spending;
stakeholders approve; a proposal pays out exactly once after reaching quorum.

Public surface:
- FundManagement (fundgov.contract): the operations facade
- TxContext, AccountBank (fundgov.host): caller attestation and host balances
- FundConfig, load_config (fundgov.config)
- errors: FundError and its subclasses (fundgov.errors)
- parse_units, format_units (fundgov.types)

Submodules (lazily loaded): access, cli, events, execution, ledger, metrics,
proposals, state, voting.
"""


import importlib
from typing import List

from .version import __version__
from .config import FundConfig, load_config
from .contract import FundManagement
from .errors import (AlreadyExecuted, FundError, InsufficientDeposit,
                     InsufficientFunds, InvalidProposal, NotFound,
                     QuorumNotMet, Unauthorized)
from .host import AccountBank, TxContext
from .types import format_units, parse_units

_lazy_modules = {
    "access",
    "cli",
    "events",
    "execution",
    "ledger",
    "metrics",
    "proposals",
    "state",
    "voting",
}

__all__: List[str] = [
    "__version__",
    "FundManagement",
    "FundConfig",
    "load_config",
    "TxContext",
    "AccountBank",
    "parse_units",
    "format_units",
    "FundError",
    "Unauthorized",
    "InsufficientDeposit",
    "NotFound",
    "AlreadyExecuted",
    "QuorumNotMet",
    "InsufficientFunds",
    "InvalidProposal",
]


def __getattr__(name: str):
    if name in _lazy_modules:
        return importlib.import_module(f".{name}", __name__)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def __dir__():
    return sorted(set(globals().keys()) | _lazy_modules)
