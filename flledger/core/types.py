from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Any, NewType

from .errors import ErrorCode, ValidationError

# Pre-authenticated principal supplied by the host for every call.
Identity = NewType("Identity", str)

MAX_HASH_LEN = 64


class UpdateHash(str):
    """Hash commitment bounded to 1..max_len UTF-8 bytes.

    Out-of-range values are rejected, never truncated.
    """

    def __new__(cls, value: str, max_len: int = MAX_HASH_LEN) -> "UpdateHash":
        if not isinstance(value, str):
            raise ValidationError(f"hash must be a string, got {type(value).__name__}",
                                  code=ErrorCode.INVALID_UPDATE)
        size = len(value.encode("utf-8"))
        if size < 1 or size > int(max_len):
            raise ValidationError(f"hash length {size} outside [1, {max_len}] bytes",
                                  code=ErrorCode.INVALID_UPDATE)
        return super().__new__(cls, value)


class RoundPhase(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"
    CLOSED = "closed"


@dataclass(frozen=True)
class Participant:
    identity: Identity
    stake: int
    reputation_score: int
    total_contributions: int = 0
    is_active: bool = True


@dataclass(frozen=True)
class ModelUpdate:
    round: int
    identity: Identity
    update_hash: str
    submitted_at_height: int
    verified: bool = True     # no verification step exists; always set on creation


@dataclass(frozen=True)
class GlobalModel:
    round: int
    model_hash: str
    participant_count: int
    total_stake: int = 0      # per-round stake accumulation is not implemented
    aggregated_at_height: int = 0


@dataclass(frozen=True)
class Event:
    kind: str
    height: int
    data: Dict[str, Any] = field(default_factory=dict)
