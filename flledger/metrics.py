from __future__ import annotations
from typing import Any, Dict, List, Sequence

import numpy as np

from .contracts.composed import ComposedContract


def jain_fairness(values: Sequence[float]) -> float:
    """Compute Jain's fairness index for a sequence of values."""
    arr = np.asarray(list(values), dtype=float)
    if arr.size == 0:
        return 0.0
    num = np.square(arr.sum())
    den = arr.size * np.square(arr).sum() + 1e-8
    return float(num / den)


def gini_coefficient(values: Sequence[float]) -> float:
    arr = np.sort(np.asarray(list(values), dtype=float))
    if arr.size == 0 or arr.sum() <= 0:
        return 0.0
    n = arr.size
    idx = np.arange(1, n + 1)
    return float((2.0 * np.sum(idx * arr)) / (n * arr.sum()) - (n + 1.0) / n)


def reward_distribution(contract: ComposedContract) -> Dict[str, Any]:
    """Summarise pending balances across every registered participant.

    Participants with nothing pending count as zero, so the fairness index
    reflects the whole registry rather than only those owed something.
    """
    with contract.state.lock():
        ids = sorted(contract.participants())
        pending = contract.pending_rewards()
    bal = np.asarray([pending.get(i, 0) for i in ids], dtype=np.int64)
    if bal.size == 0:
        return {"participants": 0, "total": 0, "mean": 0.0, "max": 0, "fairness": 0.0, "gini": 0.0}
    return {
        "participants": int(bal.size),
        "total": int(bal.sum()),
        "mean": float(bal.mean()),
        "max": int(bal.max()),
        "fairness": jain_fairness(bal) if bal.any() else 0.0,
        "gini": gini_coefficient(bal),
    }


def compute_round_statistics(contract: ComposedContract) -> List[Dict[str, Any]]:
    """Collect per-round submission, aggregation and reward statistics.

    Returns
    -------
    List[Dict[str, Any]]
        One entry per started round, in order, with keys ``round``,
        ``submissions``, ``aggregated`` (bool), ``participant_count`` and
        ``aggregated_at_height`` (``None`` while the round is open) and
        ``rewards_credited`` (sum of rewards credited in that round).
    """
    credited: Dict[int, int] = {}
    submitted: Dict[int, int] = {}
    out: List[Dict[str, Any]] = []
    # one locked pass so every row reflects the same committed state
    with contract.state.lock():
        for ev in contract.events("UpdateSubmitted"):
            r = int(ev.data["round"])
            credited[r] = credited.get(r, 0) + int(ev.data["reward"])
            submitted[r] = submitted.get(r, 0) + 1

        for r in range(1, contract.current_round + 1):
            gm = contract.global_model(r)
            out.append({
                "round": r,
                "submissions": submitted.get(r, 0),
                "aggregated": gm is not None,
                "participant_count": gm.participant_count if gm else None,
                "aggregated_at_height": gm.aggregated_at_height if gm else None,
                "rewards_credited": credited.get(r, 0),
            })
    return out
