from __future__ import annotations

"""
Prometheus metrics for the stakeholder-governed fund.

We expose counters and gauges covering:
- deposits accepted (count and amount distribution)
- spending proposals created
- votes by direction (approve / disapprove)
- executions and their paid amounts
- rejected operations by operation and error code
- custody balance and live stakeholder count

Amounts are observed in whole units (float) to keep histogram buckets readable;
accounting itself stays in integer base units.
"""


from prometheus_client import (CONTENT_TYPE_LATEST, CollectorRegistry, Counter,
                               Gauge, Histogram, generate_latest)

# Use a dedicated registry so embedding apps can choose to merge or expose it directly.
REGISTRY = CollectorRegistry()

DEPOSITS = Counter(
    "fundgov_deposits_total",
    "Total accepted deposits.",
    registry=REGISTRY,
)

PROPOSALS_CREATED = Counter(
    "fundgov_proposals_created_total",
    "Total spending proposals created.",
    registry=REGISTRY,
)

VOTES = Counter(
    "fundgov_votes_total",
    "Total votes recorded by direction.",
    labelnames=("direction",),  # "approve" | "disapprove"
    registry=REGISTRY,
)

EXECUTIONS = Counter(
    "fundgov_executions_total",
    "Total spending proposals executed.",
    registry=REGISTRY,
)

REJECTIONS = Counter(
    "fundgov_rejections_total",
    "Total rejected operations by operation and error code.",
    labelnames=("op", "code"),
    registry=REGISTRY,
)

_AMOUNT_BUCKETS = (0.1, 0.25, 0.5, 1, 2.5, 5, 10, 25, 50, 100, 250, 500, 1000)

DEPOSIT_AMOUNT_UNITS = Histogram(
    "fundgov_deposit_amount_units",
    "Distribution of deposit amounts (in units).",
    buckets=_AMOUNT_BUCKETS,
    registry=REGISTRY,
)

PAYOUT_AMOUNT_UNITS = Histogram(
    "fundgov_payout_amount_units",
    "Distribution of executed spending amounts (in units).",
    buckets=_AMOUNT_BUCKETS,
    registry=REGISTRY,
)

CUSTODY_BALANCE_UNITS = Gauge(
    "fundgov_custody_balance_units",
    "Current custody balance (in units).",
    registry=REGISTRY,
)

STAKEHOLDERS = Gauge(
    "fundgov_stakeholders",
    "Current number of identities with a nonzero deposit.",
    registry=REGISTRY,
)


# ────────────────────────────────────────────────────────────────────────────────
# Recording helpers
# ────────────────────────────────────────────────────────────────────────────────


def record_deposit(amount_units: float) -> None:
    DEPOSITS.inc()
    if amount_units >= 0:
        DEPOSIT_AMOUNT_UNITS.observe(float(amount_units))


def record_proposal() -> None:
    PROPOSALS_CREATED.inc()


def record_vote(approve: bool) -> None:
    VOTES.labels(direction="approve" if approve else "disapprove").inc()


def record_execution(amount_units: float) -> None:
    EXECUTIONS.inc()
    if amount_units >= 0:
        PAYOUT_AMOUNT_UNITS.observe(float(amount_units))


def record_rejection(op: str, code: str) -> None:
    REJECTIONS.labels(op=op, code=code).inc()


def set_balances(custody_units: float, stakeholders: int) -> None:
    """Refresh the real-time gauges after a committed state change."""
    CUSTODY_BALANCE_UNITS.set(float(custody_units))
    STAKEHOLDERS.set(int(stakeholders))


def render() -> tuple[bytes, str]:
    """Return (payload, content_type) for a /metrics endpoint."""
    return generate_latest(REGISTRY), CONTENT_TYPE_LATEST


__all__ = [
    "REGISTRY",
    "record_deposit",
    "record_proposal",
    "record_vote",
    "record_execution",
    "record_rejection",
    "set_balances",
    "render",
]
