from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
import logging

from ..core.errors import ErrorCode, LedgerError
from ..core.registry import REPUTATION, REWARD
from ..core.state import LedgerState
from ..core.types import Event, GlobalModel, Identity, ModelUpdate, Participant, RoundPhase
from ..incentive.reward import Payout, RewardLedger
from ..ledger import ParticipantRegistry, RoundController, UpdateLedger

logger = logging.getLogger(__name__)


@dataclass
class ContractConfig:
    operator: str = "operator"
    min_stake: int = 1000
    quorum: int = 3
    reward_per_update: int = 100_000
    initial_reputation: int = 10
    reputation_increment: int = 5
    max_hash_len: int = 64
    reputation: str = "tiered"
    reward: str = "multiplier"


@dataclass(frozen=True)
class Outcome:
    ok: bool
    value: Any = None
    error: Optional[ErrorCode] = None
    message: str = ""


class ComposedContract:
    """Public surface of the ledger.

    Every operation takes the already-authenticated caller as its first
    argument, runs under the state lock inside one transaction, and either
    commits all of its effects or raises a :class:`LedgerError` with nothing
    written.
    """

    OPERATIONS = ("register", "start_round", "submit_update", "aggregate", "claim_rewards")

    def __init__(self, cfg: ContractConfig | None = None, strategy_params: dict | None = None,
                 state: LedgerState | None = None):
        self.cfg = cfg or ContractConfig()
        params = strategy_params or {}
        self.reputation = REPUTATION.get(self.cfg.reputation)(**params.get("reputation", {}))
        reward_params = {"base_reward": self.cfg.reward_per_update, **params.get("reward", {})}
        self.reward = REWARD.get(self.cfg.reward)(**reward_params)

        self.state = state or LedgerState()
        self.registry = ParticipantRegistry(
            self.state, min_stake=self.cfg.min_stake, initial_reputation=self.cfg.initial_reputation)
        self.rounds = RoundController(
            self.state, operator=Identity(self.cfg.operator), quorum=self.cfg.quorum,
            max_hash_len=self.cfg.max_hash_len)
        self.updates = UpdateLedger(self.state, self.registry, self.rounds)
        self.rewards = RewardLedger(self.state, self.reward)

    #######################
    # Operations
    #######################

    def register(self, caller: Identity, stake_amount: int) -> None:
        with self.state.transaction():
            node = self.registry.register(caller, stake_amount)
            self.state.emit("ParticipantRegistered", identity=str(caller), stake=node.stake)
        logger.info("registered %s with stake %d (%d participants)",
                    caller, node.stake, self.state.total_registered_participants)

    def start_round(self, caller: Identity) -> int:
        with self.state.transaction():
            round_idx = self.rounds.start_round(caller)
            self.state.emit("RoundStarted", round=round_idx)
        logger.info("round %d started at height %d", round_idx, self.state.block_height)
        return round_idx

    def submit_update(self, caller: Identity, update_hash: str) -> None:
        with self.state.transaction():
            upd = self.updates.record(caller, update_hash)
            if not self.reputation.bump(self.state, caller, self.cfg.reputation_increment):
                raise RuntimeError(f"participant record for {caller} vanished mid-submission")
            score = self.state.participants[caller].reputation_score
            mult = self.reputation.multiplier(score)
            amount = self.rewards.credit(caller, mult)
            self.state.emit("UpdateSubmitted", round=upd.round, identity=str(caller),
                            update_hash=upd.update_hash, reward=amount)
        logger.info("round %d: update from %s accepted (reputation %d, reward %d)",
                    upd.round, caller, score, amount)

    def aggregate(self, caller: Identity, aggregated_hash: str) -> None:
        with self.state.transaction():
            gm = self.rounds.aggregate(caller, aggregated_hash)
            self.state.emit("RoundAggregated", round=gm.round, model_hash=gm.model_hash,
                            participant_count=gm.participant_count)
        logger.info("round %d aggregated from %d submissions", gm.round, gm.participant_count)

    def claim_rewards(self, caller: Identity, payout: Optional[Payout] = None) -> int:
        with self.state.transaction():
            self.registry.require_valid(caller)
            amount = self.rewards.withdraw(caller, payout)
            self.state.emit("RewardsClaimed", identity=str(caller), amount=amount)
        logger.info("%s claimed %d", caller, amount)
        return amount

    def execute(self, caller: Identity, op: str, *args: Any, **kwargs: Any) -> Outcome:
        """Dispatch ``op`` and fold any ledger rejection into an Outcome."""
        if op not in self.OPERATIONS:
            raise ValueError(f"Unknown operation: {op} (available: {list(self.OPERATIONS)})")
        try:
            value = getattr(self, op)(caller, *args, **kwargs)
        except LedgerError as e:
            logger.warning("%s by %s rejected: %s", op, caller, e)
            return Outcome(ok=False, error=e.code, message=str(e))
        return Outcome(ok=True, value=value)

    def advance_blocks(self, n: int = 1) -> int:
        if int(n) < 1:
            raise ValueError(f"block height can only advance, got n={n}")
        with self.state.lock():
            self.state.block_height += int(n)
            return self.state.block_height

    #######################
    # Queries
    #######################
    # Readers hold the state lock too, so they only ever observe committed state.

    def participant(self, identity: Identity) -> Optional[Participant]:
        with self.state.lock():
            return self.registry.get(identity)

    def is_valid_participant(self, identity: Identity) -> bool:
        with self.state.lock():
            return self.registry.is_valid(identity)

    def model_update(self, round_idx: int, identity: Identity) -> Optional[ModelUpdate]:
        with self.state.lock():
            return self.updates.get(round_idx, identity)

    def global_model(self, round_idx: int) -> Optional[GlobalModel]:
        with self.state.lock():
            return self.rounds.global_model(round_idx)

    def pending_reward(self, identity: Identity) -> int:
        with self.state.lock():
            return self.rewards.balance(identity)

    def pending_rewards(self) -> Dict[Identity, int]:
        with self.state.lock():
            return dict(self.state.pending_rewards)

    def participants(self) -> List[Identity]:
        with self.state.lock():
            return list(self.state.participants)

    def round_submissions(self, round_idx: int) -> List[Identity]:
        with self.state.lock():
            return self.updates.submitters(round_idx)

    def multiplier(self, score: int) -> int:
        return self.reputation.multiplier(score)

    def events(self, kind: str | None = None) -> List[Event]:
        with self.state.lock():
            return [e for e in self.state.events if kind is None or e.kind == kind]

    @property
    def current_round(self) -> int:
        with self.state.lock():
            return self.state.current_round

    @property
    def round_active(self) -> bool:
        with self.state.lock():
            return self.state.round_active

    @property
    def phase(self) -> RoundPhase:
        with self.state.lock():
            return self.rounds.phase

    @property
    def total_registered_participants(self) -> int:
        with self.state.lock():
            return self.state.total_registered_participants

    @property
    def round_submission_count(self) -> int:
        with self.state.lock():
            return self.state.round_submission_count

    def snapshot(self) -> Dict[str, Any]:
        return self.state.to_dict()
