from __future__ import annotations
from enum import IntEnum


class ErrorCode(IntEnum):
    NOT_AUTHORIZED = 1
    ALREADY_REGISTERED = 2
    NOT_REGISTERED = 3
    INVALID_UPDATE = 4
    ROUND_NOT_ACTIVE = 5
    INSUFFICIENT_PARTICIPANTS = 6
    ALREADY_SUBMITTED = 7
    INVALID_STAKE = 8
    NO_REWARDS = 9


class LedgerError(Exception):
    """Base class for every rejection a ledger operation can produce.

    Each subclass has a default code; ``code`` may be narrowed per raise site
    (e.g. a DuplicateError is either ALREADY_REGISTERED or ALREADY_SUBMITTED).
    """

    default_code: ErrorCode = ErrorCode.NOT_AUTHORIZED

    def __init__(self, message: str = "", *, code: ErrorCode | None = None) -> None:
        self.code = ErrorCode(code if code is not None else self.default_code)
        super().__init__(message or self.code.name)

    def __str__(self) -> str:
        return f"[{self.code.name}] {super().__str__()}"


class AuthorizationError(LedgerError):
    default_code = ErrorCode.NOT_AUTHORIZED


class NotRegisteredError(AuthorizationError):
    default_code = ErrorCode.NOT_REGISTERED


class StateError(LedgerError):
    default_code = ErrorCode.ROUND_NOT_ACTIVE


class DuplicateError(LedgerError):
    default_code = ErrorCode.ALREADY_REGISTERED


class ValidationError(LedgerError):
    default_code = ErrorCode.INVALID_UPDATE


class QuorumError(LedgerError):
    default_code = ErrorCode.INSUFFICIENT_PARTICIPANTS


class BalanceError(LedgerError):
    default_code = ErrorCode.NO_REWARDS
