"""Settlement engine: reconcile a holder against the global index.

Every operation that changes a holder's balance settles first, so rewards
accrued under the old balance are credited to `pending_rewards` before the
balance moves. Settlement under an unchanged index is a no-op.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Sequence

from .errors import AmountOverflow, InsufficientBalance, NothingToClaim, RewardBalanceUnderflow, ZeroAmount
from .types import BlockInfo, Claim, Config, GlobalState, Holder, PaymentInstruction
from .unbonding import create_claim, release_at_for
from .wide_decimal import U128_MAX, WideDecimal, require_u128


@dataclass(frozen=True)
class BondResult:
    state: GlobalState
    holder: Holder
    settled: WideDecimal


@dataclass(frozen=True)
class UnbondResult:
    state: GlobalState
    holder: Holder
    claims: tuple[Claim, ...]
    settled: WideDecimal


@dataclass(frozen=True)
class ClaimRewardsResult:
    state: GlobalState
    holder: Holder
    payment: PaymentInstruction


# -- Settlement --------------------------------------------------------------

def compute_owed(global_index: WideDecimal, holder: Holder) -> WideDecimal:
    """`(global_index - holder.index) * balance`, in the wide domain.

    A holder index ahead of the global index is a consistency failure and
    surfaces as `DecimalUnderflow`.
    """
    return global_index.sub(holder.index).mul_int(holder.balance)


def settle(global_index: WideDecimal, holder: Holder) -> tuple[Holder, WideDecimal]:
    owed = compute_owed(global_index, holder)
    settled = replace(
        holder,
        index=global_index,
        pending_rewards=holder.pending_rewards.add(owed),
    )
    return settled, owed


def accrued_rewards(global_index: WideDecimal, holder: Holder) -> int:
    """Whole reward units the holder could claim now (read-only)."""
    settled, _ = settle(global_index, holder)
    return settled.pending_rewards.floor()


# -- Holder operations -------------------------------------------------------

def bond(state: GlobalState, holder: Holder, amount: int) -> BondResult:
    if require_u128(amount, name="amount") == 0:
        raise ZeroAmount()
    settled, owed = settle(state.global_index, holder)

    new_balance = settled.balance + amount
    if new_balance > U128_MAX:
        raise AmountOverflow("holder balance")
    new_total = state.total_balance + amount
    if new_total > U128_MAX:
        raise AmountOverflow("total balance")

    return BondResult(
        state=replace(state, total_balance=new_total),
        holder=replace(settled, balance=new_balance),
        settled=owed,
    )


def unbond(
    config: Config,
    state: GlobalState,
    holder: Holder,
    claims: Sequence[Claim],
    amount: int,
    block: BlockInfo,
) -> UnbondResult:
    """Move `amount` out of the holder's balance into a delayed claim."""
    if require_u128(amount, name="amount") == 0:
        raise ZeroAmount()
    if amount > holder.balance:
        raise InsufficientBalance(have=holder.balance, want=amount)

    settled, owed = settle(state.global_index, holder)
    new_claims = create_claim(
        claims,
        amount,
        release_at_for(config, block),
        max_claims=config.max_claims_per_holder,
    )
    return UnbondResult(
        state=replace(state, total_balance=state.total_balance - amount),
        holder=replace(settled, balance=settled.balance - amount),
        claims=new_claims,
        settled=owed,
    )


def claim_rewards(
    state: GlobalState,
    holder: Holder,
    *,
    reward_asset: str,
    recipient: str,
) -> ClaimRewardsResult:
    """Pay out the whole-unit part of the holder's rewards.

    The fractional remainder stays in `pending_rewards`. The payout is also
    removed from `prev_reward_balance`, since it is about to leave the pool.
    """
    settled, _ = settle(state.global_index, holder)
    payable, remainder = settled.pending_rewards.split()
    if payable == 0:
        raise NothingToClaim()
    if payable > state.prev_reward_balance:
        raise RewardBalanceUnderflow(balance=state.prev_reward_balance, payout=payable)

    return ClaimRewardsResult(
        state=replace(state, prev_reward_balance=state.prev_reward_balance - payable),
        holder=replace(settled, pending_rewards=remainder),
        payment=PaymentInstruction(asset=reward_asset, recipient=recipient, amount=payable),
    )
