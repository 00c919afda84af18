from __future__ import annotations
from typing import List, Optional

from ..core.errors import DuplicateError, ErrorCode
from ..core.state import LedgerState
from ..core.types import Identity, ModelUpdate, UpdateHash
from .participants import ParticipantRegistry
from .rounds import RoundController


class UpdateLedger:
    """One hash commitment per (round, participant); records are never rewritten."""

    def __init__(self, state: LedgerState, registry: ParticipantRegistry, rounds: RoundController) -> None:
        self.state = state
        self.registry = registry
        self.rounds = rounds

    def get(self, round_idx: int, identity: Identity) -> Optional[ModelUpdate]:
        return self.state.updates.get((int(round_idx), identity))

    def submitters(self, round_idx: int) -> List[Identity]:
        r = int(round_idx)
        with self.state.lock():
            return [ident for (rnd, ident) in self.state.updates if rnd == r]

    def record(self, caller: Identity, update_hash: str) -> ModelUpdate:
        """Validate and store a submission. Reputation and reward follow-up
        is done by the caller inside the same transaction."""
        h = UpdateHash(update_hash, self.rounds.max_hash_len)
        self.rounds.require_active()
        self.registry.require_valid(caller)
        key = (self.state.current_round, caller)
        if key in self.state.updates:
            raise DuplicateError(f"{caller} already submitted in round {key[0]}",
                                 code=ErrorCode.ALREADY_SUBMITTED)

        upd = ModelUpdate(
            round=key[0],
            identity=caller,
            update_hash=str(h),
            submitted_at_height=self.state.block_height,
            verified=True,
        )
        self.state.put(self.state.updates, key, upd)
        self.state.round_submission_count += 1
        return upd
