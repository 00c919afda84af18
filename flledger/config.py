from __future__ import annotations
from dataclasses import fields
from typing import Any, Dict
import logging

import yaml

from .contracts.composed import ContractConfig, ComposedContract
from .core.state import LedgerState

logger = logging.getLogger(__name__)


def _load_yaml(path: str) -> Dict[str, Any]:
    logger.info("loading ledger config from %s", path)
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}

def build_contract_from_dict(cfg: Dict[str, Any], state: LedgerState | None = None) -> ComposedContract:
    def _get(section: str, default_name: str):
        sec = cfg.get(section, default_name)
        if isinstance(sec, dict):
            return sec.get("name", default_name), sec.get("params", {}) or {}
        return str(sec), {}

    names = {}
    params = {}
    for section, default_name in [
        ("reputation", "tiered"),
        ("reward", "multiplier"),
    ]:
        n, p = _get(section, default_name)
        names[section] = n
        params[section] = p

    scalars = {f.name for f in fields(ContractConfig)} - set(names)
    unknown = set(cfg) - scalars - set(names)
    if unknown:
        raise ValueError(f"Unknown config keys: {sorted(unknown)}")

    cc = ContractConfig(
        **{k: (str(v) if k == "operator" else int(v)) for k, v in cfg.items() if k in scalars},
        reputation=names["reputation"],
        reward=names["reward"],
    )
    return ComposedContract(cc, strategy_params=params, state=state)

def build_contract_from_yaml(path: str, state: LedgerState | None = None) -> ComposedContract:
    cfg = _load_yaml(path)
    return build_contract_from_dict(cfg, state=state)
