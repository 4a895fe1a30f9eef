"""Tests for rewardledger/core/wide_decimal.py: construction, arithmetic, domain bounds."""

import pytest

from rewardledger.core.errors import DecimalOverflow, DecimalUnderflow, ErrorKind
from rewardledger.core.wide_decimal import (
    DECIMAL_FRACTION,
    DECIMAL_ONE,
    DECIMAL_ZERO,
    U128_MAX,
    WideDecimal,
    to_decimal,
)


def d(text: str) -> WideDecimal:
    return WideDecimal.from_str(text)


# ---------------------------------------------------------------------------
# construction
# ---------------------------------------------------------------------------

class TestConstruction:
    def test_zero_and_one(self):
        assert WideDecimal.zero() == DECIMAL_ZERO
        assert WideDecimal.one() == DECIMAL_ONE
        assert DECIMAL_ONE.atomics == DECIMAL_FRACTION

    def test_from_int(self):
        assert WideDecimal.from_int(100).atomics == 100 * DECIMAL_FRACTION

    def test_from_int_overflow(self):
        with pytest.raises(DecimalOverflow):
            WideDecimal.from_int(U128_MAX)

    def test_from_ratio_exact(self):
        assert WideDecimal.from_ratio(100, 100) == DECIMAL_ONE
        assert WideDecimal.from_ratio(1, 4) == d("0.25")

    def test_from_ratio_truncates(self):
        assert WideDecimal.from_ratio(100000, 11) == d("9090.909090909090909090")
        assert WideDecimal.from_ratio(2, 3) == d("0.666666666666666666")

    def test_from_ratio_zero_denominator(self):
        with pytest.raises(ZeroDivisionError):
            WideDecimal.from_ratio(1, 0)

    def test_from_ratio_overflow(self):
        with pytest.raises(DecimalOverflow):
            WideDecimal.from_ratio(U128_MAX, 1)

    def test_negative_atomics_rejected(self):
        with pytest.raises(DecimalUnderflow):
            WideDecimal(-1)

    def test_bool_rejected(self):
        with pytest.raises(TypeError):
            WideDecimal(True)  # type: ignore[arg-type]


class TestParsing:
    @pytest.mark.parametrize(
        "text,atomics",
        [
            ("0", 0),
            ("1", DECIMAL_FRACTION),
            ("1.5", 15 * 10**17),
            ("0.000000000000000001", 1),
            ("123.450", 12345 * 10**16),
        ],
    )
    def test_valid(self, text, atomics):
        assert WideDecimal.from_str(text).atomics == atomics

    @pytest.mark.parametrize("text", ["", ".5", "1.", "-1", "+1", "1e5", "1.2.3", " 1", "0.0000000000000000001", "١"])
    def test_invalid(self, text):
        with pytest.raises(ValueError):
            WideDecimal.from_str(text)

    def test_str_trims_trailing_zeros(self):
        assert str(d("1.500")) == "1.5"
        assert str(d("100")) == "100"
        assert str(d("0.909090909090909090")) == "0.90909090909090909"
        assert repr(d("2.25")) == "WideDecimal('2.25')"

    def test_str_round_trip(self):
        for text in ["0", "1", "0.000000000000000001", "9090.90909090909090909", "340282366920938463463.374607431768211455"]:
            assert str(WideDecimal.from_str(text)) == text

    def test_to_decimal(self):
        assert to_decimal(3) == WideDecimal.from_int(3)
        assert to_decimal("0.5") == d("0.5")
        assert to_decimal(DECIMAL_ONE) is DECIMAL_ONE
        with pytest.raises(TypeError):
            to_decimal(1.5)  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# arithmetic
# ---------------------------------------------------------------------------

class TestArithmetic:
    def test_add_sub(self):
        assert d("1.25") + d("0.75") == d("2")
        assert d("2") - d("0.5") == d("1.5")

    def test_add_overflow(self):
        with pytest.raises(DecimalOverflow) as exc:
            WideDecimal(U128_MAX).add(WideDecimal(1))
        assert exc.value.kind is ErrorKind.DECIMAL_OVERFLOW

    def test_sub_underflow_not_clamped(self):
        with pytest.raises(DecimalUnderflow) as exc:
            d("1") - d("1.000000000000000001")
        assert exc.value.fatal

    def test_mul_truncates(self):
        assert d("0.5") * d("0.5") == d("0.25")
        assert d("0.000000000000000001") * d("0.5") == DECIMAL_ZERO
        assert d("0.333333333333333333") * d("3") == d("0.999999999999999999")

    def test_mul_uses_wide_intermediate(self):
        # atomics * atomics exceeds 128 bits even though the result fits.
        big = WideDecimal.from_int(10**20)
        assert big * d("0.000000000000000001") == WideDecimal.from_int(100)
        assert (big.atomics * DECIMAL_FRACTION) > U128_MAX
        assert big * DECIMAL_ONE == big

    def test_mul_overflow(self):
        with pytest.raises(DecimalOverflow):
            WideDecimal.from_int(10**20) * WideDecimal.from_int(10**20)

    def test_mul_int(self):
        idx = WideDecimal.from_ratio(100000, 11)
        owed = idx.mul_int(11)
        assert owed == d("99999.99999999999999999")
        assert idx * 11 == owed

    def test_mul_int_large_balance(self):
        # A balance this large cannot be lifted into a decimal (1e21 * 1e18 > u128),
        # but multiplying a small index by it still works.
        balance = 10**21
        with pytest.raises(DecimalOverflow):
            WideDecimal.from_int(balance)
        assert d("0.000000000000000002").mul_int(balance) == WideDecimal.from_int(2000)

    def test_operators_reject_other_types(self):
        with pytest.raises(TypeError):
            d("1") + 1  # type: ignore[operator]
        with pytest.raises(TypeError):
            d("1") * 1.5  # type: ignore[operator]


class TestParts:
    def test_split(self):
        whole, rem = WideDecimal.from_ratio(100000, 11).split()
        assert whole == 9090
        assert rem == d("0.90909090909090909")
        assert rem < DECIMAL_ONE

    def test_floor_and_fraction(self):
        x = d("12.75")
        assert x.floor() == 12
        assert x.fraction() == d("0.75")

    def test_ordering_and_hashing(self):
        assert d("0.1") < d("0.2") <= d("0.2")
        assert len({d("1"), DECIMAL_ONE, d("1.0")}) == 1
        assert DECIMAL_ZERO.is_zero()
