"""Accrual engine: fold newly observed rewards into the global index.

`accrue()` is pure. The caller reads the external reward pool balance and
passes it in; the new `GlobalState` comes back in an `AccrualResult` for the
shell to persist.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from .errors import AmountOverflow, NoStakedAssets, RewardPoolDecreased, TooEarly
from .types import BlockInfo, Config, GlobalState
from .wide_decimal import U128_MAX, WideDecimal, require_u128


@dataclass(frozen=True)
class AccrualResult:
    state: GlobalState
    claimed_rewards: int
    observed_balance: int
    clamped_balance: int
    index_delta: WideDecimal


def clamp_observed_balance(config: Config, state: GlobalState, observed_balance: int) -> int:
    """Apply the per-period reward cap, if configured."""
    observed = require_u128(observed_balance, name="observed_balance")
    cap = config.reward_cap_per_period
    if cap is None:
        return observed
    ceiling = state.prev_reward_balance + cap
    if ceiling > U128_MAX:
        ceiling = U128_MAX
    return min(observed, ceiling)


def ensure_accrual_open(config: Config, state: GlobalState, block: BlockInfo) -> None:
    if not config.period_gated or state.next_accrual_time is None:
        return
    if block.time < state.next_accrual_time:
        raise TooEarly(now=block.time, opens_at=state.next_accrual_time)


def accrue(
    config: Config,
    state: GlobalState,
    observed_balance: int,
    block: BlockInfo,
) -> AccrualResult:
    """Distribute `observed - prev_reward_balance` over the bonded stake.

    Raises:
        NoStakedAssets: nothing is bonded.
        TooEarly: the period gate has not opened yet.
        RewardPoolDecreased: the (capped) observation is below the baseline.
    """
    if state.total_balance == 0:
        raise NoStakedAssets()
    ensure_accrual_open(config, state, block)

    clamped = clamp_observed_balance(config, state, observed_balance)
    if clamped < state.prev_reward_balance:
        raise RewardPoolDecreased(previous=state.prev_reward_balance, observed=clamped)

    claimed = clamped - state.prev_reward_balance
    delta = WideDecimal.from_ratio(claimed, state.total_balance)
    next_time = state.next_accrual_time
    if config.accrual_period is not None and next_time is not None:
        next_time = next_time + config.accrual_period
        if next_time > U128_MAX:
            raise AmountOverflow("next_accrual_time")

    new_state = replace(
        state,
        global_index=state.global_index.add(delta),
        prev_reward_balance=clamped,
        next_accrual_time=next_time,
    )
    return AccrualResult(
        state=new_state,
        claimed_rewards=claimed,
        observed_balance=observed_balance,
        clamped_balance=clamped,
        index_delta=delta,
    )
