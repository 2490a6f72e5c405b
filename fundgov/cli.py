from __future__ import annotations

"""
fundgov.cli
-----------

Devnet/operator utility that drives a fund persisted in a JSON state file
(fund state + host bank balances). Amounts are given in decimal units.

Examples
--------
# Create a fund administered by 0xaa..aa
python -m fundgov.cli init --admin 0x$(printf 'aa%.0s' {1..32})

# Give an account bank balance, then deposit from it
python -m fundgov.cli fund --account 0x11... --amount 5
python -m fundgov.cli deposit --caller 0x11... --amount 0.1

# Propose, vote, execute
python -m fundgov.cli create --caller 0xaa... --receiver 0x22... --amount 1 --purpose "A gift"
python -m fundgov.cli approve --caller 0x11... --id 0 --approve
python -m fundgov.cli execute --caller 0xaa... --id 0

# Inspect
python -m fundgov.cli show
"""

import fcntl
import json
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, NoReturn

import typer

from fundgov.config import FundConfig, load_config
from fundgov.contract import FundManagement
from fundgov.errors import FundError
from fundgov.host import AccountBank, TxContext
from fundgov.types import format_units, parse_units, to_hex

log = logging.getLogger(__name__)

app = typer.Typer(
    name="fundgov",
    add_completion=False,
    no_args_is_help=True,
    help="Operate a stakeholder-governed fund stored in a JSON state file.",
)

STATE_OPT = typer.Option(
    Path("fundgov_state.json"),
    "--state",
    envvar="FUNDGOV_STATE",
    help="Path of the JSON state file.",
)

# -------------------- utils --------------------


def _config() -> FundConfig:
    return load_config()



def _lock_path(path: Path) -> Path:
    return path.with_name(path.name + ".lock")


@contextmanager
def _locked(path: Path) -> Iterator[None]:
    """
    Exclusive advisory lock on STATE.lock, held from load through save so
    concurrent invocations against the same state file apply one at a time.
    """
    lock_path = _lock_path(path)
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    with open(lock_path, "w") as f:
        try:
            fcntl.flock(f.fileno(), fcntl.LOCK_EX)
            log.debug("acquired %s", lock_path)
            yield
        finally:
            fcntl.flock(f.fileno(), fcntl.LOCK_UN)
            log.debug("released %s", lock_path)


def _open(path: Path) -> FundManagement:
    if not path.exists():
        typer.echo(f"state file {path} not found; run `init` first", err=True)
        raise typer.Exit(1)
    data = json.loads(path.read_text(encoding="utf-8"))
    return FundManagement.load(data, config=_config())


def _save(fund: FundManagement, path: Path) -> None:
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(json.dumps(fund.dump(), indent=2, sort_keys=True), encoding="utf-8")
    tmp.replace(path)


def _units(fund: FundManagement, amount: str) -> int:
    try:
        return parse_units(amount, fund.config.decimals)
    except (TypeError, ValueError) as e:
        typer.echo(f"invalid amount {amount!r}: {e}", err=True)
        raise typer.Exit(1)


def _ctx(fund: FundManagement, caller: str, value: int = 0) -> TxContext:
    try:
        return TxContext(caller=fund.identity(caller), value=value)
    except (TypeError, ValueError) as e:
        typer.echo(f"invalid caller {caller!r}: {e}", err=True)
        raise typer.Exit(1)


def _fail(e: FundError) -> NoReturn:
    typer.echo(json.dumps(e.to_dict(), sort_keys=True, default=str), err=True)
    raise typer.Exit(2)


def _summary(fund: FundManagement) -> Dict[str, Any]:
    dec = fund.config.decimals
    return {
        "admin": to_hex(fund.admin()),
        "total_balance": format_units(fund.total_balance(), dec),
        "stakeholders": {to_hex(k): format_units(v, dec) for k, v in fund.ledger.stakeholders()},
        "proposals": [
            {
                "id": p.id,
                "receiver": to_hex(p.receiver),
                "amount": format_units(p.amount, dec),
                "purpose": p.purpose,
                "approval_count": p.approval_count,
                "executed": p.executed,
            }
            for p in fund.registry.all()
        ],
        "quorum_fraction": str(fund.config.quorum_fraction),
    }


@app.callback()
def main(
    log_level: str = typer.Option("WARNING", "--log-level", help="Python logging level."),
) -> None:
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# -------------------- commands --------------------


@app.command("init")
def init_cmd(
    admin: str = typer.Option(..., "--admin", help="Admin identity (hex)."),
    state: Path = STATE_OPT,
    force: bool = typer.Option(False, "--force", help="Overwrite an existing state file."),
) -> None:
    """Create an empty fund administered by ADMIN."""
    with _locked(state):
        if state.exists() and not force:
            typer.echo(f"state file {state} already exists (use --force)", err=True)
            raise typer.Exit(1)
        cfg = _config()
        try:
            fund = FundManagement(admin, config=cfg, bank=AccountBank())
        except (TypeError, ValueError) as e:
            typer.echo(f"invalid admin {admin!r}: {e}", err=True)
            raise typer.Exit(1)
        _save(fund, state)
    typer.echo(json.dumps({"admin": to_hex(fund.admin()), "state": str(state)}))


@app.command("fund")
def fund_cmd(
    account: str = typer.Option(..., "--account", help="Identity to credit in the host bank (hex)."),
    amount: str = typer.Option(..., "--amount", help="Units to credit."),
    state: Path = STATE_OPT,
) -> None:
    """Faucet: credit a host bank account (devnet only)."""
    with _locked(state):
        fund = _open(state)
        ident = _ctx(fund, account).caller
        fund.bank.credit(ident, _units(fund, amount))
        _save(fund, state)
    typer.echo(json.dumps({"account": to_hex(ident), "bank_balance": format_units(fund.bank.balance_of(ident), fund.config.decimals)}))


@app.command("deposit")
def deposit_cmd(
    caller: str = typer.Option(..., "--caller", help="Depositor identity (hex)."),
    amount: str = typer.Option(..., "--amount", help="Units to deposit."),
    state: Path = STATE_OPT,
) -> None:
    with _locked(state):
        fund = _open(state)
        ctx = _ctx(fund, caller, _units(fund, amount))
        try:
            fund.deposit(ctx)
        except FundError as e:
            _fail(e)
        _save(fund, state)
    typer.echo(json.dumps({"stake": format_units(fund.stakeholders(ctx.caller), fund.config.decimals)}))


@app.command("create")
def create_cmd(
    caller: str = typer.Option(..., "--caller", help="Admin identity (hex)."),
    receiver: str = typer.Option(..., "--receiver", help="Receiver identity (hex)."),
    amount: str = typer.Option(..., "--amount", help="Units to pay on execution."),
    purpose: str = typer.Option("", "--purpose"),
    state: Path = STATE_OPT,
) -> None:
    with _locked(state):
        fund = _open(state)
        ctx = _ctx(fund, caller)
        try:
            pid = fund.create_spending(ctx, _ctx(fund, receiver).caller, _units(fund, amount), purpose)
        except FundError as e:
            _fail(e)
        _save(fund, state)
    typer.echo(json.dumps({"proposal_id": pid}))


@app.command("approve")
def approve_cmd(
    caller: str = typer.Option(..., "--caller", help="Stakeholder identity (hex)."),
    proposal_id: int = typer.Option(..., "--id", help="Proposal id."),
    approve: bool = typer.Option(True, "--approve/--reject"),
    state: Path = STATE_OPT,
) -> None:
    with _locked(state):
        fund = _open(state)
        try:
            fund.approve_spending(_ctx(fund, caller), proposal_id, approve)
        except FundError as e:
            _fail(e)
        _save(fund, state)
    typer.echo(json.dumps({"proposal_id": proposal_id, "approval_count": fund.spendings(proposal_id).approval_count}))


@app.command("execute")
def execute_cmd(
    caller: str = typer.Option(..., "--caller", help="Admin identity (hex)."),
    proposal_id: int = typer.Option(..., "--id", help="Proposal id."),
    state: Path = STATE_OPT,
) -> None:
    with _locked(state):
        fund = _open(state)
        try:
            fund.execute_spending(_ctx(fund, caller), proposal_id)
        except FundError as e:
            _fail(e)
        _save(fund, state)
    typer.echo(json.dumps({"proposal_id": proposal_id, "executed": True}))


@app.command("show")
def show_cmd(state: Path = STATE_OPT) -> None:
    """Print a human-readable summary of the fund."""
    typer.echo(json.dumps(_summary(_open(state)), indent=2, sort_keys=True))


@app.command("config")
def config_cmd() -> None:
    """Print the resolved configuration."""
    typer.echo(json.dumps(_config().to_dict(), indent=2, sort_keys=True))


if __name__ == "__main__":  # pragma: no cover
    app()
