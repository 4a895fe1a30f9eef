"""Error taxonomy for the reward ledger.

Every failure raised by the core or the shell is a `LedgerError` subclass with a
stable `ErrorKind` and structured fields. Errors fall into three categories:

- user input errors: the caller asked for something that cannot be done,
- timing / precondition errors: the call may succeed later,
- consistency errors: an internal or external accounting anomaly. These are
  fatal and are never clamped or retried.
"""

from __future__ import annotations

from enum import Enum, unique
from typing import ClassVar


@unique
class ErrorCategory(Enum):
    USER = "user"
    TIMING = "timing"
    CONSISTENCY = "consistency"


@unique
class ErrorKind(Enum):
    ZERO_AMOUNT = "zero_amount"
    INSUFFICIENT_BALANCE = "insufficient_balance"
    NOTHING_TO_CLAIM = "nothing_to_claim"
    INVALID_PAGE_LIMIT = "invalid_page_limit"
    CLAIM_QUEUE_FULL = "claim_queue_full"
    UNAUTHORIZED = "unauthorized"
    UNEXPECTED_FUNDS = "unexpected_funds"
    INVALID_MESSAGE = "invalid_message"
    NOTHING_MATURED = "nothing_matured"
    TOO_EARLY = "too_early"
    NO_STAKED_ASSETS = "no_staked_assets"
    CONTRACT_LOCKED = "contract_locked"
    NOT_INITIALIZED = "not_initialized"
    DECIMAL_UNDERFLOW = "decimal_underflow"
    DECIMAL_OVERFLOW = "decimal_overflow"
    AMOUNT_OVERFLOW = "amount_overflow"
    REWARD_POOL_DECREASED = "reward_pool_decreased"
    REWARD_BALANCE_UNDERFLOW = "reward_balance_underflow"


class LedgerError(Exception):
    """Base class for every ledger failure."""

    kind: ClassVar[ErrorKind]
    category: ClassVar[ErrorCategory]

    @property
    def fatal(self) -> bool:
        return self.category is ErrorCategory.CONSISTENCY

    def fields(self) -> dict[str, object]:
        """Structured payload of the error (used by logs and result objects)."""
        return {}


class UserError(LedgerError):
    category = ErrorCategory.USER


class TimingError(LedgerError):
    category = ErrorCategory.TIMING


class ConsistencyError(LedgerError):
    category = ErrorCategory.CONSISTENCY


# -- User input errors -------------------------------------------------------

class ZeroAmount(UserError):
    kind = ErrorKind.ZERO_AMOUNT

    def __init__(self) -> None:
        super().__init__("amount must be greater than zero")


class InsufficientBalance(UserError):
    """Raised when an unbond asks for more than the holder has bonded."""

    kind = ErrorKind.INSUFFICIENT_BALANCE

    def __init__(self, have: int, want: int) -> None:
        self.have = have
        self.want = want
        super().__init__(f"unbond amount {want} exceeds holder balance {have}")

    def fields(self) -> dict[str, object]:
        return {"have": self.have, "want": self.want}


class NothingToClaim(UserError):
    kind = ErrorKind.NOTHING_TO_CLAIM

    def __init__(self) -> None:
        super().__init__("no whole reward units to claim")


class InvalidPageLimit(UserError):
    kind = ErrorKind.INVALID_PAGE_LIMIT

    def __init__(self, limit: int) -> None:
        self.limit = limit
        super().__init__(f"page limit must be at least 1, got {limit}")

    def fields(self) -> dict[str, object]:
        return {"limit": self.limit}


class ClaimQueueFull(UserError):
    kind = ErrorKind.CLAIM_QUEUE_FULL

    def __init__(self, limit: int) -> None:
        self.limit = limit
        super().__init__(f"holder already has {limit} pending claims")

    def fields(self) -> dict[str, object]:
        return {"limit": self.limit}


class Unauthorized(UserError):
    kind = ErrorKind.UNAUTHORIZED

    def __init__(self, sender: str) -> None:
        self.sender = sender
        super().__init__(f"sender {sender!r} is not allowed to perform this action")

    def fields(self) -> dict[str, object]:
        return {"sender": self.sender}


class UnexpectedFunds(UserError):
    kind = ErrorKind.UNEXPECTED_FUNDS

    def __init__(self) -> None:
        super().__init__("this message does not accept attached funds")


class InvalidMessage(UserError):
    kind = ErrorKind.INVALID_MESSAGE

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"invalid message: {reason}")

    def fields(self) -> dict[str, object]:
        return {"reason": self.reason}


# -- Timing / precondition errors --------------------------------------------

class NothingMatured(TimingError):
    kind = ErrorKind.NOTHING_MATURED

    def __init__(self) -> None:
        super().__init__("no matured claims; wait for the unbonding period")


class TooEarly(TimingError):
    """Raised when accrual is attempted before the period gate opens."""

    kind = ErrorKind.TOO_EARLY

    def __init__(self, now: int, opens_at: int) -> None:
        self.now = now
        self.opens_at = opens_at
        super().__init__(f"accrual opens at {opens_at}, now is {now}")

    def fields(self) -> dict[str, object]:
        return {"now": self.now, "opens_at": self.opens_at}


class NoStakedAssets(TimingError):
    kind = ErrorKind.NO_STAKED_ASSETS

    def __init__(self) -> None:
        super().__init__("no stake is bonded; rewards cannot be distributed")


class ContractLocked(TimingError):
    kind = ErrorKind.CONTRACT_LOCKED

    def __init__(self) -> None:
        super().__init__("ledger is locked")


class NotInitialized(TimingError):
    kind = ErrorKind.NOT_INITIALIZED

    def __init__(self, what: str = "ledger") -> None:
        self.what = what
        super().__init__(f"{what} has not been initialized")

    def fields(self) -> dict[str, object]:
        return {"what": self.what}


# -- Consistency errors (fatal) ----------------------------------------------

class DecimalUnderflow(ConsistencyError):
    kind = ErrorKind.DECIMAL_UNDERFLOW

    def __init__(self, lhs: object, rhs: object) -> None:
        self.lhs = str(lhs)
        self.rhs = str(rhs)
        super().__init__(f"decimal underflow: {lhs} - {rhs}")

    def fields(self) -> dict[str, object]:
        return {"lhs": self.lhs, "rhs": self.rhs}


class DecimalOverflow(ConsistencyError):
    kind = ErrorKind.DECIMAL_OVERFLOW

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(f"decimal overflow in {operation}")

    def fields(self) -> dict[str, object]:
        return {"operation": self.operation}


class AmountOverflow(ConsistencyError):
    kind = ErrorKind.AMOUNT_OVERFLOW

    def __init__(self, what: str) -> None:
        self.what = what
        super().__init__(f"{what} exceeds the unsigned 128-bit domain")

    def fields(self) -> dict[str, object]:
        return {"what": self.what}


class RewardPoolDecreased(ConsistencyError):
    """Raised when the observed reward pool is below the last accrual baseline."""

    kind = ErrorKind.REWARD_POOL_DECREASED

    def __init__(self, previous: int, observed: int) -> None:
        self.previous = previous
        self.observed = observed
        super().__init__(f"reward pool decreased from {previous} to {observed}")

    def fields(self) -> dict[str, object]:
        return {"previous": self.previous, "observed": self.observed}


class RewardBalanceUnderflow(ConsistencyError):
    kind = ErrorKind.REWARD_BALANCE_UNDERFLOW

    def __init__(self, balance: int, payout: int) -> None:
        self.balance = balance
        self.payout = payout
        super().__init__(f"payout {payout} exceeds tracked reward balance {balance}")

    def fields(self) -> dict[str, object]:
        return {"balance": self.balance, "payout": self.payout}
