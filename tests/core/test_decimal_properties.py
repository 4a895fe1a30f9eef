"""Property tests: WideDecimal against an exact `fractions.Fraction` reference."""

from __future__ import annotations

import importlib.util
import math
from fractions import Fraction

import pytest

if importlib.util.find_spec("hypothesis") is None:  # pragma: no cover
    pytest.skip("hypothesis not installed", allow_module_level=True)

import hypothesis.strategies as st
from hypothesis import given, settings

from rewardledger.core.errors import DecimalOverflow
from rewardledger.core.types import Holder
from rewardledger.core.settlement import settle
from rewardledger.core.wide_decimal import DECIMAL_FRACTION, U128_MAX, U256_MAX, WideDecimal

atomics = st.integers(min_value=0, max_value=U128_MAX)
amounts = st.integers(min_value=0, max_value=U128_MAX)
# Realistic token amounts (up to 1e30 base units) and indices.
balances = st.integers(min_value=0, max_value=10**30)
indices = st.integers(min_value=0, max_value=10**30)


def _exact(x: WideDecimal) -> Fraction:
    return Fraction(x.atomics, DECIMAL_FRACTION)


@given(a=atomics, b=atomics)
@settings(max_examples=300)
def test_mul_matches_reference(a: int, b: int) -> None:
    assert a * b <= U256_MAX
    expected = _exact(WideDecimal(a)) * _exact(WideDecimal(b))
    expected_atomics = math.floor(expected * DECIMAL_FRACTION)
    if expected_atomics > U128_MAX:
        with pytest.raises(DecimalOverflow):
            WideDecimal(a).mul(WideDecimal(b))
        return
    assert WideDecimal(a).mul(WideDecimal(b)).atomics == expected_atomics


@given(a=atomics, n=amounts)
@settings(max_examples=300)
def test_mul_int_matches_reference(a: int, n: int) -> None:
    exact = _exact(WideDecimal(a)) * n
    if exact * DECIMAL_FRACTION > U128_MAX:
        with pytest.raises(DecimalOverflow):
            WideDecimal(a).mul_int(n)
        return
    assert _exact(WideDecimal(a).mul_int(n)) == exact


@given(n=st.integers(min_value=0, max_value=10**20), den=st.integers(min_value=1, max_value=U128_MAX))
def test_from_ratio_is_floor(n: int, den: int) -> None:
    got = WideDecimal.from_ratio(n, den)
    exact = Fraction(n, den)
    assert _exact(got) <= exact < _exact(got) + Fraction(1, DECIMAL_FRACTION)


@given(a=atomics)
def test_split_recombines(a: int) -> None:
    whole, rem = WideDecimal(a).split()
    assert whole * DECIMAL_FRACTION + rem.atomics == a
    assert rem.atomics < DECIMAL_FRACTION
    assert WideDecimal.from_str(str(WideDecimal(a))) == WideDecimal(a)


@given(balance=balances, holder_index=indices, bump=indices)
def test_settle_is_idempotent(balance: int, holder_index: int, bump: int) -> None:
    global_index = WideDecimal(holder_index + bump)
    holder = Holder(balance=balance, index=WideDecimal(holder_index))
    try:
        once, owed = settle(global_index, holder)
    except DecimalOverflow:
        return
    twice, owed_again = settle(global_index, once)
    assert twice == once
    assert owed_again.is_zero()
    assert _exact(owed) == _exact(WideDecimal(bump)) * balance
