"""Tests for rewardledger/core/invariants.py."""

from rewardledger.core.invariants import (
    INVARIANT_REGISTRY,
    check_all,
    inv_holder_index_not_ahead,
    inv_rewards_covered,
    inv_total_balance_matches,
)
from rewardledger.core.types import GlobalState, Holder
from rewardledger.core.wide_decimal import DECIMAL_ONE, WideDecimal


def test_registry_names():
    assert set(INVARIANT_REGISTRY) == {"total_balance_matches", "holder_index_not_ahead", "rewards_covered"}


def test_empty_ledger_passes():
    assert check_all(GlobalState(), {}) == []


def test_consistent_ledger_passes():
    s = GlobalState(global_index=DECIMAL_ONE, total_balance=300, prev_reward_balance=300)
    holders = {"a": Holder(balance=100), "b": Holder(balance=200, index=DECIMAL_ONE, pending_rewards=WideDecimal.from_int(200))}
    assert check_all(s, holders) == []


def test_total_balance_mismatch():
    assert not inv_total_balance_matches(GlobalState(total_balance=5), {"a": Holder(balance=4)})
    assert check_all(GlobalState(total_balance=5), {"a": Holder(balance=4)}) == ["total_balance_matches"]


def test_index_ahead():
    s = GlobalState(global_index=DECIMAL_ONE)
    holders = {"a": Holder(index=WideDecimal.from_int(2))}
    assert not inv_holder_index_not_ahead(s, holders)
    assert not inv_rewards_covered(s, holders)


def test_rewards_not_covered():
    s = GlobalState(global_index=DECIMAL_ONE, total_balance=10, prev_reward_balance=9)
    assert check_all(s, {"a": Holder(balance=10)}) == ["rewards_covered"]
