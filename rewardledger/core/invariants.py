"""Ledger-wide invariant checkers.

Each `inv_*` function takes the global state and the full holder table and
returns True when the invariant holds; `check_all()` returns the names of the
violated invariants (empty = all pass). These walk every holder, so they are
meant for tests, audits and snapshot verification, not for the hot path.
"""

from __future__ import annotations

from typing import Callable, Mapping

from .settlement import compute_owed
from .types import GlobalState, Holder

HolderTable = Mapping[str, Holder]


def inv_total_balance_matches(state: GlobalState, holders: HolderTable) -> bool:
    return state.total_balance == sum(h.balance for h in holders.values())


def inv_holder_index_not_ahead(state: GlobalState, holders: HolderTable) -> bool:
    return all(h.index <= state.global_index for h in holders.values())


def inv_rewards_covered(state: GlobalState, holders: HolderTable) -> bool:
    """Whole units owed to all holders never exceed the tracked reward balance."""
    if not inv_holder_index_not_ahead(state, holders):
        return False
    owed = 0
    for h in holders.values():
        owed += h.pending_rewards.add(compute_owed(state.global_index, h)).floor()
    return owed <= state.prev_reward_balance


# ---------------------------------------------------------------------------
# Registry + check_all
# ---------------------------------------------------------------------------

INVARIANT_REGISTRY: dict[str, Callable[[GlobalState, HolderTable], bool]] = {
    "total_balance_matches": inv_total_balance_matches,
    "holder_index_not_ahead": inv_holder_index_not_ahead,
    "rewards_covered": inv_rewards_covered,
}


def check_all(state: GlobalState, holders: HolderTable) -> list[str]:
    """Return list of violated invariant names (empty = all pass)."""
    return [
        name
        for name, check_fn in INVARIANT_REGISTRY.items()
        if not check_fn(state, holders)
    ]
