"""Ledger records and the small value types shared by the kernels.

All records are frozen dataclasses; transitions return new instances
(`dataclasses.replace`) rather than mutating in place.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional, Union

from .wide_decimal import DECIMAL_ZERO, WideDecimal, require_u128

UnbondingBasis = Literal["height", "time"]
ExpirationKind = Literal["at_height", "at_time", "never"]

UNBONDING_BASES: tuple[str, ...] = ("height", "time")


def _require_non_negative_int(value: object, *, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an int")
    if value < 0:
        raise ValueError(f"{name} must be >= 0")
    return value


def _require_optional_positive_int(value: object, *, name: str) -> Optional[int]:
    if value is None:
        return None
    v = _require_non_negative_int(value, name=name)
    if v == 0:
        raise ValueError(f"{name} must be > 0 when set")
    return v


def _require_identifier(value: object, *, name: str) -> str:
    if not isinstance(value, str) or not value:
        raise ValueError(f"{name} must be a non-empty string")
    return value


@dataclass(frozen=True)
class BlockInfo:
    """Execution context of one call: block height and unix time in seconds."""

    height: int
    time: int

    def __post_init__(self) -> None:
        _require_non_negative_int(self.height, name="height")
        _require_non_negative_int(self.time, name="time")


@dataclass(frozen=True)
class Expiration:
    """Release threshold of a claim: an absolute height, an absolute time, or never."""

    kind: ExpirationKind
    value: int = 0

    def __post_init__(self) -> None:
        if self.kind not in ("at_height", "at_time", "never"):
            raise ValueError(f"unknown expiration kind: {self.kind!r}")
        _require_non_negative_int(self.value, name="value")
        if self.kind == "never" and self.value != 0:
            raise ValueError("never-expiring threshold carries no value")

    @classmethod
    def at_height(cls, height: int) -> "Expiration":
        return cls("at_height", height)

    @classmethod
    def at_time(cls, time: int) -> "Expiration":
        return cls("at_time", time)

    @classmethod
    def never(cls) -> "Expiration":
        return cls("never")

    def is_expired(self, block: BlockInfo) -> bool:
        if self.kind == "at_height":
            return block.height >= self.value
        if self.kind == "at_time":
            return block.time >= self.value
        return False


@dataclass(frozen=True)
class Config:
    staked_asset: str
    reward_asset: str
    unbonding_period: int
    unbonding_basis: UnbondingBasis = "height"
    reward_cap_per_period: Optional[int] = None
    accrual_period: Optional[int] = None
    max_claims_per_holder: Optional[int] = None
    admin: Optional[str] = None
    locked: bool = False

    def __post_init__(self) -> None:
        _require_identifier(self.staked_asset, name="staked_asset")
        _require_identifier(self.reward_asset, name="reward_asset")
        _require_non_negative_int(self.unbonding_period, name="unbonding_period")
        if self.unbonding_basis not in UNBONDING_BASES:
            raise ValueError("unbonding_basis must be 'height' or 'time'")
        if self.reward_cap_per_period is not None:
            require_u128(self.reward_cap_per_period, name="reward_cap_per_period")
        _require_optional_positive_int(self.accrual_period, name="accrual_period")
        if self.reward_cap_per_period is not None and self.accrual_period is None:
            raise ValueError("reward_cap_per_period requires accrual_period")
        _require_optional_positive_int(self.max_claims_per_holder, name="max_claims_per_holder")
        if self.admin is not None:
            _require_identifier(self.admin, name="admin")
        if not isinstance(self.locked, bool):
            raise TypeError("locked must be a bool")

    @property
    def period_gated(self) -> bool:
        return self.accrual_period is not None


@dataclass(frozen=True)
class GlobalState:
    global_index: WideDecimal = DECIMAL_ZERO
    total_balance: int = 0
    prev_reward_balance: int = 0
    next_accrual_time: Optional[int] = None

    def __post_init__(self) -> None:
        if not isinstance(self.global_index, WideDecimal):
            raise TypeError("global_index must be a WideDecimal")
        require_u128(self.total_balance, name="total_balance")
        require_u128(self.prev_reward_balance, name="prev_reward_balance")
        if self.next_accrual_time is not None:
            _require_non_negative_int(self.next_accrual_time, name="next_accrual_time")


@dataclass(frozen=True)
class Holder:
    """Per-address stake record. An absent holder reads as `Holder()`."""

    balance: int = 0
    index: WideDecimal = DECIMAL_ZERO
    pending_rewards: WideDecimal = DECIMAL_ZERO

    def __post_init__(self) -> None:
        require_u128(self.balance, name="balance")
        if not isinstance(self.index, WideDecimal):
            raise TypeError("index must be a WideDecimal")
        if not isinstance(self.pending_rewards, WideDecimal):
            raise TypeError("pending_rewards must be a WideDecimal")


@dataclass(frozen=True)
class Claim:
    amount: int
    release_at: Expiration

    def __post_init__(self) -> None:
        require_u128(self.amount, name="amount")
        if not isinstance(self.release_at, Expiration):
            raise TypeError("release_at must be an Expiration")


# -- Outbound instructions ---------------------------------------------------

@dataclass(frozen=True)
class PaymentInstruction:
    """Pay `amount` units of `asset` out of custody to `recipient`."""

    asset: str
    recipient: str
    amount: int


@dataclass(frozen=True)
class CustodyTransferIn:
    """Pull `amount` units of `asset` from `owner` into custody."""

    asset: str
    owner: str
    amount: int


Instruction = Union[PaymentInstruction, CustodyTransferIn]
