#!/usr/bin/env python3
from __future__ import annotations
import argparse
import csv
import hashlib
import logging
from typing import Any, Dict, List, Optional

import numpy as np

from .config import build_contract_from_dict, build_contract_from_yaml
from .core.types import Identity
from .metrics import compute_round_statistics, reward_distribution

logger = logging.getLogger(__name__)


def _commitment(round_idx: int, identity: str, rng: np.random.Generator) -> str:
    # stands in for the hash of a locally trained update
    salt = int(rng.integers(0, 2**31))
    return hashlib.sha256(f"{round_idx}:{identity}:{salt}".encode()).hexdigest()


def run(config: Optional[str], participants: int = 5, rounds: int = 3, participation: float = 1.0,
        seed: int = 0, out: Optional[str] = None, stake: Optional[int] = None) -> Dict[str, Any]:
    contract = build_contract_from_yaml(config) if config else build_contract_from_dict({})
    rng = np.random.default_rng(seed)
    operator = Identity(contract.cfg.operator)
    stake = int(stake if stake is not None else contract.cfg.min_stake)

    ids = [Identity(f"node-{i}") for i in range(1, participants + 1)]
    for nid in ids:
        contract.register(nid, stake)
        contract.advance_blocks()

    for r in range(1, rounds + 1):
        res = contract.execute(operator, "start_round")
        if not res.ok:
            logger.warning("round %d not started: %s", r, res.message)
            break
        round_idx = res.value
        mask = rng.random(len(ids)) < float(participation)
        for nid, active in zip(ids, mask):
            if active:
                contract.submit_update(nid, _commitment(round_idx, nid, rng))
                contract.advance_blocks()
        agg_hash = hashlib.sha256(
            "".join(sorted(contract.round_submissions(round_idx))).encode()).hexdigest()
        res = contract.execute(operator, "aggregate", agg_hash)
        if not res.ok:
            # below quorum: the round stays open and the run stops here
            logger.warning("round %d not aggregated: %s", round_idx, res.message)
            break
        contract.advance_blocks()

    round_stats = compute_round_statistics(contract)
    distribution = reward_distribution(contract)

    paid: Dict[str, int] = {}

    def _settle(identity: Identity, amount: int) -> None:
        paid[str(identity)] = amount

    for nid in ids:
        contract.execute(nid, "claim_rewards", payout=_settle)

    if out:
        with open(out, "w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=[
                "round", "submissions", "aggregated", "participant_count",
                "aggregated_at_height", "rewards_credited"])
            writer.writeheader()
            for row in round_stats:
                writer.writerow(row)
        logger.info("round statistics written to %s", out)

    return {
        "rounds": round_stats,
        "distribution": distribution,
        "paid": paid,
        "reputations": {str(n): contract.participant(n).reputation_score for n in ids},
        "height": contract.state.block_height,
    }


def main(argv: Optional[List[str]] = None) -> Dict[str, Any]:
    ap = argparse.ArgumentParser(description="Drive the incentive ledger through simulated training rounds")
    ap.add_argument("--config", default=None, help="Path to YAML ledger config (defaults built in)")
    ap.add_argument("--participants", type=int, default=5)
    ap.add_argument("--rounds", type=int, default=3)
    ap.add_argument("--participation", type=float, default=1.0,
                    help="Per-round probability that a participant submits")
    ap.add_argument("--stake", type=int, default=None, help="Stake per participant (default: min_stake)")
    ap.add_argument("--seed", type=int, default=42)
    ap.add_argument("--out", default=None, help="CSV file for per-round statistics")
    ap.add_argument("--log-level", default="WARNING")
    args = ap.parse_args(argv)

    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    result = run(args.config, participants=args.participants, rounds=args.rounds,
                 participation=args.participation, seed=args.seed, out=args.out, stake=args.stake)

    dist = result["distribution"]
    print(f"Rounds completed: {sum(1 for r in result['rounds'] if r['aggregated'])}/{args.rounds}")
    print(f"Rewards before claims - total: {dist['total']}, mean: {dist['mean']:.1f}, "
          f"Jain's fairness: {dist['fairness']:.4f}, Gini: {dist['gini']:.4f}")
    print(f"Paid out: {sum(result['paid'].values())} to {len(result['paid'])} participants")
    return result


if __name__ == "__main__":
    main()
