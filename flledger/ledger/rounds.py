from __future__ import annotations
from typing import Optional

from ..core.errors import AuthorizationError, ErrorCode, QuorumError, StateError
from ..core.state import LedgerState
from ..core.types import GlobalModel, Identity, RoundPhase, UpdateHash


class RoundController:
    """Round lifecycle: Idle -> Active -> Closed -> Active -> ...

    Round numbers start at 1; ``current_round == 0`` means no round has run.
    """

    def __init__(self, state: LedgerState, *, operator: Identity, quorum: int, max_hash_len: int) -> None:
        self.state = state
        self.operator = operator
        self.quorum = int(quorum)
        self.max_hash_len = int(max_hash_len)

    @property
    def phase(self) -> RoundPhase:
        if self.state.round_active:
            return RoundPhase.ACTIVE
        if self.state.current_round == 0:
            return RoundPhase.IDLE
        return RoundPhase.CLOSED

    def require_operator(self, caller: Identity) -> None:
        if caller != self.operator:
            raise AuthorizationError(f"{caller} is not the round operator")

    def require_active(self) -> None:
        if not self.state.round_active:
            raise StateError(f"round {self.state.current_round} is not active")

    def start_round(self, caller: Identity) -> int:
        self.require_operator(caller)
        if self.state.round_active:
            raise StateError(f"round {self.state.current_round} is still active",
                             code=ErrorCode.ROUND_NOT_ACTIVE)
        if self.state.total_registered_participants < self.quorum:
            raise QuorumError(
                f"{self.state.total_registered_participants} registered participants, need {self.quorum}")

        self.state.current_round += 1
        self.state.round_active = True
        self.state.round_submission_count = 0
        return self.state.current_round

    def aggregate(self, caller: Identity, aggregated_hash: str) -> GlobalModel:
        self.require_operator(caller)
        self.require_active()
        if self.state.round_submission_count < self.quorum:
            raise QuorumError(
                f"{self.state.round_submission_count} submissions in round "
                f"{self.state.current_round}, need {self.quorum}")
        model_hash = UpdateHash(aggregated_hash, self.max_hash_len)

        gm = GlobalModel(
            round=self.state.current_round,
            model_hash=str(model_hash),
            participant_count=self.state.round_submission_count,
            total_stake=0,
            aggregated_at_height=self.state.block_height,
        )
        self.state.put(self.state.global_models, gm.round, gm)
        self.state.round_active = False
        return gm

    def global_model(self, round_idx: int) -> Optional[GlobalModel]:
        return self.state.global_models.get(int(round_idx))
