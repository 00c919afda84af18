from .config import build_contract_from_dict, build_contract_from_yaml
from .contracts.composed import ComposedContract, ContractConfig, Outcome
from .core.errors import (
    AuthorizationError,
    BalanceError,
    DuplicateError,
    ErrorCode,
    LedgerError,
    NotRegisteredError,
    QuorumError,
    StateError,
    ValidationError,
)
from .core.state import LedgerState
from .core.types import Identity, UpdateHash

__all__ = [
    "build_contract_from_dict", "build_contract_from_yaml",
    "ComposedContract", "ContractConfig", "Outcome", "LedgerState",
    "Identity", "UpdateHash", "ErrorCode", "LedgerError",
    "AuthorizationError", "NotRegisteredError", "StateError", "DuplicateError",
    "ValidationError", "QuorumError", "BalanceError",
]
