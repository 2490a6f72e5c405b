from __future__ import annotations
"""
fundgov.config — configuration for the stakeholder-governed fund

Covers:
- Minimum deposit that makes an identity a stakeholder (decimal units)
- Quorum fraction: approving stakeholders / live stakeholders needed to execute
- Identity width and token decimals

Environment overrides (all optional; sensible defaults provided):

  FUNDGOV_MIN_DEPOSIT=0.1          # decimal units (1 unit = 10**decimals base units)
  FUNDGOV_QUORUM_FRACTION=0.8      # decimal in (0, 1]
  FUNDGOV_ADDRESS_LEN=32           # identity width in bytes
  FUNDGOV_DECIMALS=18

You can also load from a JSON or YAML file via `FUNDGOV_CONFIG_FILE=/path/to/config.(json|yaml|yml)`.
File values override defaults; environment overrides the file.
"""


import json
import os
from dataclasses import dataclass, replace
from decimal import Decimal, InvalidOperation
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from fundgov.types import (DEFAULT_ADDRESS_LEN, DEFAULT_DECIMALS, Amount,
                           format_units, parse_units)


@dataclass(frozen=True)
class FundConfig:
    """
    min_deposit is held in base units; quorum_fraction is an exact Decimal so
    that e.g. 4 of 5 approvals compares equal to 0.8.
    """
    min_deposit: Amount = parse_units("0.1")
    quorum_fraction: Decimal = Decimal("0.8")
    address_len: int = DEFAULT_ADDRESS_LEN
    decimals: int = DEFAULT_DECIMALS

    def validate(self) -> None:
        if self.min_deposit <= 0:
            raise ValueError(f"min_deposit must be positive (got {self.min_deposit}).")
        if not (Decimal(0) < self.quorum_fraction <= Decimal(1)):
            raise ValueError(f"quorum_fraction must be in (0, 1] (got {self.quorum_fraction}).")
        if self.address_len <= 0:
            raise ValueError("address_len must be positive.")
        if not (0 <= self.decimals <= 36):
            raise ValueError(f"decimals must be between 0 and 36 (got {self.decimals}).")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "min_deposit": format_units(self.min_deposit, self.decimals),
            "quorum_fraction": str(self.quorum_fraction),
            "address_len": self.address_len,
            "decimals": self.decimals,
        }


# -------------------------- Loaders --------------------------


def _decimal(name: str, v: Any) -> Decimal:
    try:
        return Decimal(str(v).strip())
    except InvalidOperation as e:
        raise ValueError(f"Invalid decimal for {name}: {v!r}") from e


def _int(name: str, v: Any) -> int:
    try:
        return int(str(v).replace("_", ""))
    except ValueError as e:
        raise ValueError(f"Invalid int for {name}: {v!r}") from e


def _apply(base: FundConfig, values: Mapping[str, Any], source: str) -> FundConfig:
    """
    Layer raw values (unit-denominated min_deposit, string/Decimal quorum) on
    top of `base`. Unknown keys are ignored.
    """
    decimals = _int(f"{source}:decimals", values["decimals"]) if values.get("decimals") not in (None, "") else base.decimals
    address_len = (
        _int(f"{source}:address_len", values["address_len"])
        if values.get("address_len") not in (None, "")
        else base.address_len
    )
    if values.get("min_deposit") not in (None, ""):
        min_deposit = parse_units(str(values["min_deposit"]), decimals)
    elif decimals != base.decimals:
        min_deposit = parse_units(format_units(base.min_deposit, base.decimals), decimals)
    else:
        min_deposit = base.min_deposit
    quorum = (
        _decimal(f"{source}:quorum_fraction", values["quorum_fraction"])
        if values.get("quorum_fraction") not in (None, "")
        else base.quorum_fraction
    )
    return replace(
        base,
        min_deposit=min_deposit,
        quorum_fraction=quorum,
        address_len=address_len,
        decimals=decimals,
    )


def from_env(
    base: Optional[FundConfig] = None,
    env: Optional[Mapping[str, str]] = None,
    prefix: str = "FUNDGOV_",
) -> FundConfig:
    """
    Build a FundConfig from environment variables, optionally layering on top of `base`.
    """
    env = os.environ if env is None else env
    values = {
        "min_deposit": env.get(f"{prefix}MIN_DEPOSIT"),
        "quorum_fraction": env.get(f"{prefix}QUORUM_FRACTION"),
        "address_len": env.get(f"{prefix}ADDRESS_LEN"),
        "decimals": env.get(f"{prefix}DECIMALS"),
    }
    cfg = _apply(base or FundConfig(), values, "env")
    cfg.validate()
    return cfg


def from_file(path: str | os.PathLike[str]) -> FundConfig:
    """
    Load configuration from a JSON or YAML file.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(p)

    text = p.read_text(encoding="utf-8")
    if p.suffix.lower() in (".yaml", ".yml"):
        data = yaml.safe_load(text) or {}
    else:
        data = json.loads(text or "{}")
    if not isinstance(data, dict):
        raise ValueError(f"config file {p} must hold a mapping at top level")

    cfg = _apply(FundConfig(), data, str(p))
    cfg.validate()
    return cfg


def load_config(
    env: Optional[Mapping[str, str]] = None,
    *,
    overrides: Optional[Mapping[str, Any]] = None,
) -> FundConfig:
    """
    Load configuration using the following precedence:
      1) File at $FUNDGOV_CONFIG_FILE (JSON/YAML)
      2) Environment variables (FUNDGOV_*), applied on top of defaults or file values
      3) Explicit `overrides` (same keys as the file format)
    """
    env = os.environ if env is None else env
    file_path = env.get("FUNDGOV_CONFIG_FILE")
    base = from_file(file_path) if file_path else FundConfig()
    cfg = from_env(base=base, env=env)
    if overrides:
        cfg = _apply(cfg, overrides, "overrides")
        cfg.validate()
    return cfg


@lru_cache(maxsize=1)
def get_config() -> FundConfig:
    """
    Cached process-wide config. Suitable for application bootstraps.
    """
    return load_config()


def pretty(cfg: Optional[FundConfig] = None) -> str:
    """Return a human-readable JSON string of the current config."""
    obj = (cfg or get_config()).to_dict()
    return json.dumps(obj, indent=2, sort_keys=True)


__all__ = [
    "FundConfig",
    "from_env",
    "from_file",
    "load_config",
    "get_config",
    "pretty",
]
