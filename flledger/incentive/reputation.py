from __future__ import annotations
from dataclasses import dataclass, replace
import logging

from ..core.registry import REPUTATION
from ..core.state import LedgerState
from ..core.types import Identity

logger = logging.getLogger(__name__)

@dataclass
class ReputationParams:
    # multipliers are scaled by 100 (150 == 1.50x)
    high_threshold: int = 100
    mid_threshold: int = 50
    high_multiplier: int = 150
    mid_multiplier: int = 125
    base_multiplier: int = 100

@REPUTATION.register("tiered")
class TieredReputation:
    def __init__(self, params: ReputationParams | None = None, **kwargs) -> None:
        self.p = params or ReputationParams(**kwargs)

    def multiplier(self, score: int) -> int:
        score = int(score)
        if score >= self.p.high_threshold:
            return self.p.high_multiplier
        if score >= self.p.mid_threshold:
            return self.p.mid_multiplier
        return self.p.base_multiplier

    def bump(self, state: LedgerState, identity: Identity, increment: int) -> bool:
        """Add ``increment`` to the score and count one contribution.

        Returns False without touching state when ``identity`` has no record;
        callers gate on registration first, so that branch is an invariant
        check rather than a live error path.
        """
        node = state.participants.get(identity)
        if node is None:
            logger.warning("reputation bump for unknown participant %s ignored", identity)
            return False
        state.put(state.participants, identity, replace(
            node,
            reputation_score=node.reputation_score + int(increment),
            total_contributions=node.total_contributions + 1,
        ))
        return True


@REPUTATION.register("flat")
class FlatReputation(TieredReputation):
    """Tracks reputation but pays every participant the base multiplier."""

    def multiplier(self, score: int) -> int:
        return self.p.base_multiplier
