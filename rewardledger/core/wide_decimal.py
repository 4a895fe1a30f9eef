"""Fixed-point decimal with 18 fractional digits over an unsigned 128-bit domain.

A `WideDecimal` is stored as an integer count of *atomics* (units of 1e-18).
Values live in `[0, 2**128 - 1]` atomics. Products are formed in a 256-bit
intermediate domain and truncated (floor) back into 128 bits:

    narrow(widen(a) * widen(b) // 10**18)

Python ints never overflow, so the domain bounds are enforced explicitly:
every operation that leaves the 128-bit range raises `DecimalOverflow`, and every
subtraction that would go negative raises `DecimalUnderflow`. Nothing is
clamped or wrapped.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .errors import DecimalOverflow, DecimalUnderflow

DECIMAL_PLACES: int = 18
DECIMAL_FRACTION: int = 10**DECIMAL_PLACES
U128_MAX: int = (1 << 128) - 1
U256_MAX: int = (1 << 256) - 1


# -- Domain helpers ----------------------------------------------------------

def _require_int(value: object, *, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an int")
    return value


def require_u128(value: object, *, name: str) -> int:
    """Validate that *value* is an int inside the unsigned 128-bit domain."""
    v = _require_int(value, name=name)
    if v < 0 or v > U128_MAX:
        raise ValueError(f"{name} must be within [0, 2**128 - 1]")
    return v


def _widen(value: int) -> int:
    # Operands are u128, so any product of two of them fits in u256.
    if value < 0 or value > U128_MAX:
        raise DecimalOverflow("widen")
    return value


def _narrow(value: int, *, operation: str) -> int:
    if value > U128_MAX:
        raise DecimalOverflow(operation)
    return value


# -- WideDecimal -------------------------------------------------------------

@dataclass(frozen=True, order=True)
class WideDecimal:
    """Non-negative fixed-point number with 18 decimal places."""

    atomics: int

    def __post_init__(self) -> None:
        v = _require_int(self.atomics, name="atomics")
        if v < 0:
            raise DecimalUnderflow(v, 0)
        if v > U128_MAX:
            raise DecimalOverflow("construct")

    # Constructors

    @classmethod
    def zero(cls) -> "WideDecimal":
        return cls(0)

    @classmethod
    def one(cls) -> "WideDecimal":
        return cls(DECIMAL_FRACTION)

    @classmethod
    def from_int(cls, value: int) -> "WideDecimal":
        v = require_u128(value, name="value")
        return cls(_narrow(v * DECIMAL_FRACTION, operation="from_int"))

    @classmethod
    def from_ratio(cls, numerator: int, denominator: int) -> "WideDecimal":
        """`numerator / denominator`, floored to 18 decimal places."""
        n = require_u128(numerator, name="numerator")
        d = require_u128(denominator, name="denominator")
        if d == 0:
            raise ZeroDivisionError("from_ratio denominator must be non-zero")
        return cls(_narrow(_widen(n) * DECIMAL_FRACTION // d, operation="from_ratio"))

    @classmethod
    def from_str(cls, text: str) -> "WideDecimal":
        """Parse `"123"`, `"0.5"`, `"9090.909090909090909090"` (at most 18 decimals)."""
        if not isinstance(text, str):
            raise TypeError("decimal text must be a str")
        whole, sep, frac = text.partition(".")
        if not whole or not whole.isdigit() or not whole.isascii():
            raise ValueError(f"invalid decimal: {text!r}")
        if sep and (not frac or not frac.isdigit() or not frac.isascii()):
            raise ValueError(f"invalid decimal: {text!r}")
        if len(frac) > DECIMAL_PLACES:
            raise ValueError(f"decimal has more than {DECIMAL_PLACES} fractional digits: {text!r}")
        atomics = int(whole) * DECIMAL_FRACTION + int(frac.ljust(DECIMAL_PLACES, "0"))
        return cls(_narrow(atomics, operation="from_str"))

    # Arithmetic

    def add(self, other: "WideDecimal") -> "WideDecimal":
        return WideDecimal(_narrow(self.atomics + other.atomics, operation="add"))

    def sub(self, other: "WideDecimal") -> "WideDecimal":
        if other.atomics > self.atomics:
            raise DecimalUnderflow(self, other)
        return WideDecimal(self.atomics - other.atomics)

    def mul(self, other: "WideDecimal") -> "WideDecimal":
        """Decimal product, truncated to 18 places."""
        wide = _widen(self.atomics) * _widen(other.atomics)
        return WideDecimal(_narrow(wide // DECIMAL_FRACTION, operation="mul"))

    def mul_int(self, amount: int) -> "WideDecimal":
        """Decimal times a whole-unit amount (exact; no truncation needed)."""
        a = require_u128(amount, name="amount")
        wide = _widen(self.atomics) * _widen(a)
        return WideDecimal(_narrow(wide, operation="mul_int"))

    def __add__(self, other: object) -> "WideDecimal":
        if not isinstance(other, WideDecimal):
            return NotImplemented
        return self.add(other)

    def __sub__(self, other: object) -> "WideDecimal":
        if not isinstance(other, WideDecimal):
            return NotImplemented
        return self.sub(other)

    def __mul__(self, other: object) -> "WideDecimal":
        if isinstance(other, WideDecimal):
            return self.mul(other)
        if isinstance(other, int) and not isinstance(other, bool):
            return self.mul_int(other)
        return NotImplemented

    # Whole / fractional parts

    def floor(self) -> int:
        return self.atomics // DECIMAL_FRACTION

    def fraction(self) -> "WideDecimal":
        return WideDecimal(self.atomics % DECIMAL_FRACTION)

    def split(self) -> tuple[int, "WideDecimal"]:
        """Return `(whole_units, remainder)` with `remainder < 1`."""
        whole, rem = divmod(self.atomics, DECIMAL_FRACTION)
        return whole, WideDecimal(rem)

    def is_zero(self) -> bool:
        return self.atomics == 0

    # Formatting

    def __str__(self) -> str:
        whole, rem = divmod(self.atomics, DECIMAL_FRACTION)
        if rem == 0:
            return str(whole)
        frac = str(rem).rjust(DECIMAL_PLACES, "0").rstrip("0")
        return f"{whole}.{frac}"

    def __repr__(self) -> str:
        return f"WideDecimal('{self}')"


DecimalLike = Union[WideDecimal, str, int]


def to_decimal(value: DecimalLike) -> WideDecimal:
    """Coerce a decimal, its canonical string, or a whole int into a `WideDecimal`."""
    if isinstance(value, WideDecimal):
        return value
    if isinstance(value, str):
        return WideDecimal.from_str(value)
    if isinstance(value, int) and not isinstance(value, bool):
        return WideDecimal.from_int(value)
    raise TypeError("expected WideDecimal, decimal string, or int")


DECIMAL_ZERO = WideDecimal(0)
DECIMAL_ONE = WideDecimal(DECIMAL_FRACTION)
