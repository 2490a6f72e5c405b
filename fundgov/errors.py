from __future__ import annotations
# fundgov/errors.py
"""
Error types for the stakeholder-governed fund. They are small, serializable
and safe to surface over logs or a CLI.

Every failure of a fund operation is reported as one of these typed errors and
leaves the fund state untouched (see fundgov.state.FundState.transaction).

Exports:
- FundError (base)
- Unauthorized
- InsufficientDeposit
- NotFound
- AlreadyExecuted
- QuorumNotMet
- InsufficientFunds
- InvalidProposal
"""


import json
from typing import Any, Dict, Mapping, Optional


class FundError(Exception):
    """Base class for fund domain errors."""

    code: str = "FUND_ERROR"

    def __init__(self, message: str = "", *, details: Optional[Mapping[str, Any]] = None) -> None:
        self.message = message or self.__class__.__name__
        self.details = dict(details or {})
        super().__init__(self.__str__())

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}

    def __str__(self) -> str:  # pragma: no cover - trivial
        if self.details:
            packed = json.dumps(self.details, sort_keys=True, separators=(",", ":"), default=str)
            return f"{self.code}: {self.message} [{packed}]"
        return f"{self.code}: {self.message}"


class Unauthorized(FundError):
    """Caller lacks the role (admin or stakeholder) an operation requires."""
    code = "FUND_UNAUTHORIZED"

    def __init__(
        self,
        message: str = "Admin rights required",
        *,
        role: Optional[str] = None,
        identity: Optional[str] = None,
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        d = dict(details or {})
        if role is not None:
            d.setdefault("role", role)
        if identity is not None:
            d.setdefault("identity", identity)
        super().__init__(message, details=d)


class InsufficientDeposit(FundError):
    """Deposit below the configured minimum."""
    code = "FUND_INSUFFICIENT_DEPOSIT"

    def __init__(
        self,
        *,
        required: int,
        actual: int,
        message: str = "Deposit below minimum threshold",
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        d = dict(details or {})
        d.update({"required": int(required), "actual": int(actual)})
        super().__init__(message, details=d)


class NotFound(FundError):
    code = "FUND_NOT_FOUND"

    def __init__(
        self,
        *,
        proposal_id: Any,
        message: str = "Spending not found",
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        d = dict(details or {})
        d["proposal_id"] = proposal_id
        super().__init__(message, details=d)


class AlreadyExecuted(FundError):
    code = "FUND_ALREADY_EXECUTED"

    def __init__(
        self,
        *,
        proposal_id: int,
        message: str = "Spending already executed",
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        d = dict(details or {})
        d["proposal_id"] = int(proposal_id)
        super().__init__(message, details=d)


class QuorumNotMet(FundError):
    """
    Approvals / live stakeholder count is below the configured quorum fraction.
    The quorum is carried as a string so the Decimal survives JSON untouched.
    """
    code = "FUND_QUORUM_NOT_MET"

    def __init__(
        self,
        *,
        proposal_id: int,
        approvals: int,
        stakeholders: int,
        quorum: Any,
        message: str = "Spending has not met the minimum vote percent",
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        d = dict(details or {})
        d.update(
            {
                "proposal_id": int(proposal_id),
                "approvals": int(approvals),
                "stakeholders": int(stakeholders),
                "quorum": str(quorum),
            }
        )
        super().__init__(message, details=d)


class InsufficientFunds(FundError):
    """Custody (or a host bank account) cannot cover a debit."""
    code = "FUND_INSUFFICIENT_FUNDS"

    def __init__(
        self,
        *,
        available: int,
        requested: int,
        account: Optional[str] = None,
        message: str = "Insufficient funds",
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        d = dict(details or {})
        d.update({"available": int(available), "requested": int(requested)})
        if account is not None:
            d.setdefault("account", account)
        super().__init__(message, details=d)


class InvalidProposal(FundError):
    """Malformed spending request (non-positive amount, bad receiver, ...)."""
    code = "FUND_INVALID_PROPOSAL"

    def __init__(
        self,
        message: str = "invalid spending request",
        *,
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        super().__init__(message, details=details)


__all__ = [
    "FundError",
    "Unauthorized",
    "InsufficientDeposit",
    "NotFound",
    "AlreadyExecuted",
    "QuorumNotMet",
    "InsufficientFunds",
    "InvalidProposal",
]
