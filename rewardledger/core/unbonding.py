"""Unbonding queue: per-holder claims released after a delay.

Claims are kept in insertion order. Withdrawal walks the list once and
partitions it into claims paid now and claims that stay queued.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from .errors import AmountOverflow, ClaimQueueFull, NothingMatured, ZeroAmount
from .types import BlockInfo, Claim, Config, Expiration
from .wide_decimal import U128_MAX, require_u128


@dataclass(frozen=True)
class WithdrawResult:
    payable: int
    still_waiting: tuple[Claim, ...]
    released: tuple[Claim, ...]


def release_at_for(config: Config, block: BlockInfo) -> Expiration:
    """Threshold for a claim created at *block* under the configured basis."""
    if config.unbonding_basis == "time":
        return Expiration.at_time(block.time + config.unbonding_period)
    return Expiration.at_height(block.height + config.unbonding_period)


def create_claim(
    claims: Sequence[Claim],
    amount: int,
    release_at: Expiration,
    *,
    max_claims: Optional[int] = None,
) -> tuple[Claim, ...]:
    """Append a claim to the queue, refusing once `max_claims` are pending."""
    if require_u128(amount, name="amount") == 0:
        raise ZeroAmount()
    if max_claims is not None and len(claims) >= max_claims:
        raise ClaimQueueFull(limit=max_claims)
    return tuple(claims) + (Claim(amount=amount, release_at=release_at),)


def withdraw_matured(
    claims: Sequence[Claim],
    block: BlockInfo,
    cap: Optional[int] = None,
) -> WithdrawResult:
    """Release matured claims greedily in list order, up to an optional `cap`.

    A matured claim that would push the running total over `cap` is skipped and
    stays queued; later (smaller) matured claims may still fit.
    """
    if cap is not None:
        require_u128(cap, name="cap")

    payable = 0
    waiting: list[Claim] = []
    released: list[Claim] = []
    for claim in claims:
        if not claim.release_at.is_expired(block):
            waiting.append(claim)
            continue
        if cap is not None and payable + claim.amount > cap:
            waiting.append(claim)
            continue
        payable += claim.amount
        released.append(claim)

    if payable > U128_MAX:
        raise AmountOverflow("withdraw payable")
    if payable == 0:
        raise NothingMatured()
    return WithdrawResult(payable=payable, still_waiting=tuple(waiting), released=tuple(released))
