from __future__ import annotations
from typing import Optional

from ..core.errors import DuplicateError, ErrorCode, NotRegisteredError, ValidationError
from ..core.state import LedgerState
from ..core.types import Identity, Participant


class ParticipantRegistry:
    def __init__(self, state: LedgerState, *, min_stake: int, initial_reputation: int) -> None:
        self.state = state
        self.min_stake = int(min_stake)
        self.initial_reputation = int(initial_reputation)

    def get(self, identity: Identity) -> Optional[Participant]:
        return self.state.participants.get(identity)

    def is_valid(self, identity: Identity) -> bool:
        node = self.get(identity)
        return node is not None and node.is_active

    def require_valid(self, identity: Identity) -> Participant:
        node = self.get(identity)
        if node is None or not node.is_active:
            raise NotRegisteredError(f"{identity} is not an active participant")
        return node

    def register(self, identity: Identity, stake_amount: int) -> Participant:
        if identity in self.state.participants:
            raise DuplicateError(f"{identity} is already registered", code=ErrorCode.ALREADY_REGISTERED)
        if isinstance(stake_amount, bool) or not isinstance(stake_amount, int) or stake_amount < self.min_stake:
            raise ValidationError(f"stake {stake_amount!r} below minimum {self.min_stake}",
                                  code=ErrorCode.INVALID_STAKE)

        node = Participant(
            identity=identity,
            stake=stake_amount,
            reputation_score=self.initial_reputation,
            total_contributions=0,
            is_active=True,
        )
        self.state.put(self.state.participants, identity, node)
        self.state.total_registered_participants += 1
        return node
