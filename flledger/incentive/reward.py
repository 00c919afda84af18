from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional
import logging

from ..core.errors import BalanceError
from ..core.registry import REWARD
from ..core.state import LedgerState
from ..core.types import Identity

logger = logging.getLogger(__name__)

Payout = Callable[[Identity, int], None]


@dataclass
class RewardParams:
    base_reward: int = 100_000
    scale: int = 100


@REWARD.register("multiplier")
class MultiplierReward:
    def __init__(self, params: RewardParams | None = None, **kwargs) -> None:
        self.p = params or RewardParams(**kwargs)

    def compute(self, multiplier: int) -> int:
        """floor(base_reward * multiplier / scale), integers only."""
        return (int(self.p.base_reward) * int(multiplier)) // int(self.p.scale)


class RewardLedger:
    """Pending balances: credited per accepted submission, zeroed on claim."""

    def __init__(self, state: LedgerState, policy: MultiplierReward) -> None:
        self.state = state
        self.policy = policy

    def balance(self, identity: Identity) -> int:
        return int(self.state.pending_rewards.get(identity, 0))

    def credit(self, identity: Identity, multiplier: int) -> int:
        amount = self.policy.compute(multiplier)
        self.state.put(self.state.pending_rewards, identity, self.balance(identity) + amount)
        logger.debug("credited %d to %s (multiplier %d)", amount, identity, multiplier)
        return amount

    def withdraw(self, identity: Identity, payout: Optional[Payout] = None) -> int:
        amount = self.balance(identity)
        if amount <= 0:
            raise BalanceError(f"{identity} has no pending rewards")
        # entry is removed before any value leaves the ledger
        self.state.pop(self.state.pending_rewards, identity)
        if payout is not None:
            payout(identity, amount)
        return amount
