"""
Arithmetic -- Checked fixed-width integers.

Responsibility:
    Provides the single numeric-safety wrapper used by every accrual and
    settlement computation.  Python integers never overflow on their own, so
    the representable ranges of the persisted fields (signed 128-bit amounts
    and rates, unsigned 64-bit timestamps) are enforced here explicitly.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Imported by wage, accrual, settlement, lifecycle and batch.

Invariants enforced:
    - Every result is inside its declared range or ArithmeticOverflowError
      is raised.  Nothing saturates, nothing wraps.
    - Division truncates toward zero; no floats are ever produced.

Failure modes:
    - ArithmeticOverflowError when a value or a result leaves its range.
    - TypeError when mixing incompatible widths or non-integers.
    - ZeroDivisionError on division by zero.
"""

from __future__ import annotations

from dataclasses import dataclass

from wagestream_kernel.exceptions import ArithmeticOverflowError


@dataclass(frozen=True, slots=True)
class IntRange:
    """Inclusive bounds of a fixed-width integer type."""

    name: str
    bits: int
    signed: bool

    @property
    def min_value(self) -> int:
        return -(1 << (self.bits - 1)) if self.signed else 0

    @property
    def max_value(self) -> int:
        return (1 << (self.bits - 1)) - 1 if self.signed else (1 << self.bits) - 1

    def contains(self, value: int) -> bool:
        return self.min_value <= value <= self.max_value

    def check(self, value: int, operation: str, operands: tuple[int, ...]) -> int:
        if not self.contains(value):
            raise ArithmeticOverflowError(operation, operands, self.bits)
        return value


I128 = IntRange("i128", 128, True)
U64 = IntRange("u64", 64, False)

I128_MAX = I128.max_value
U64_MAX = U64.max_value


def _truncating_div(a: int, b: int) -> int:
    quotient = abs(a) // abs(b)
    return quotient if (a >= 0) == (b > 0) else -quotient


@dataclass(frozen=True, slots=True)
class CheckedInt:
    """
    Integer value pinned to a fixed-width range.

    Contract:
        Construction validates the value against its range; every arithmetic
        operator re-validates its result.  Operands must share the same range
        or be plain ``int`` (coerced into this range first).

    Guarantees:
        - Immutable and hashable (frozen dataclass with slots)
        - ``value`` is always inside ``range``
        - ``//`` truncates toward zero, matching fixed-width machine division

    Non-goals:
        - Does NOT saturate or wrap on overflow
    """

    value: int
    range: IntRange = I128

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise TypeError(f"CheckedInt requires int, got {type(self.value).__name__}")
        self.range.check(self.value, "construct", (self.value,))

    def _coerce(self, other: CheckedInt | int) -> int:
        if isinstance(other, CheckedInt):
            if other.range != self.range:
                raise TypeError(
                    f"Cannot combine {self.range.name} with {other.range.name}"
                )
            return other.value
        if isinstance(other, bool) or not isinstance(other, int):
            return NotImplemented  # type: ignore[return-value]
        return CheckedInt(other, self.range).value

    def _result(self, value: int, operation: str, other: int) -> CheckedInt:
        return CheckedInt(
            self.range.check(value, operation, (self.value, other)), self.range
        )

    def __add__(self, other: CheckedInt | int) -> CheckedInt:
        rhs = self._coerce(other)
        if rhs is NotImplemented:
            return NotImplemented
        return self._result(self.value + rhs, "add", rhs)

    def __sub__(self, other: CheckedInt | int) -> CheckedInt:
        rhs = self._coerce(other)
        if rhs is NotImplemented:
            return NotImplemented
        return self._result(self.value - rhs, "sub", rhs)

    def __mul__(self, other: CheckedInt | int) -> CheckedInt:
        rhs = self._coerce(other)
        if rhs is NotImplemented:
            return NotImplemented
        return self._result(self.value * rhs, "mul", rhs)

    def __floordiv__(self, other: CheckedInt | int) -> CheckedInt:
        rhs = self._coerce(other)
        if rhs is NotImplemented:
            return NotImplemented
        if rhs == 0:
            raise ZeroDivisionError(f"{self.range.name} division by zero")
        return self._result(_truncating_div(self.value, rhs), "div", rhs)

    def __int__(self) -> int:
        return self.value

    def __index__(self) -> int:
        return self.value

    def __str__(self) -> str:
        return str(self.value)


def i128(value: int) -> CheckedInt:
    """Wrap ``value`` as a checked signed 128-bit integer."""
    return CheckedInt(value, I128)


def u64(value: int) -> CheckedInt:
    """Wrap ``value`` as a checked unsigned 64-bit integer."""
    return CheckedInt(value, U64)


def checked_add(a: int, b: int, int_range: IntRange = I128) -> int:
    return (CheckedInt(a, int_range) + b).value


def checked_sub(a: int, b: int, int_range: IntRange = I128) -> int:
    return (CheckedInt(a, int_range) - b).value


def checked_mul(a: int, b: int, int_range: IntRange = I128) -> int:
    return (CheckedInt(a, int_range) * b).value


def checked_mul_div(a: int, b: int, divisor: int, int_range: IntRange = I128) -> int:
    """
    Compute ``a * b / divisor`` truncated, with the product range-checked.

    The full product is formed before dividing so no precision is lost; if
    the product itself is not representable the operation fails rather than
    falling back to a lossy ordering.
    """
    return ((CheckedInt(a, int_range) * b) // divisor).value


def checked_mul_div_ceil(a: int, b: int, divisor: int, int_range: IntRange = I128) -> int:
    """
    Compute ``a * b / divisor`` rounded up, for non-negative ``a``, ``b`` and
    positive ``divisor``, with the product range-checked.
    """
    if a < 0 or b < 0 or divisor <= 0:
        raise ValueError("checked_mul_div_ceil requires a, b >= 0 and divisor > 0")
    product = CheckedInt(a, int_range) * b
    quotient = product // divisor
    if quotient.value * divisor == product.value:
        return quotient.value
    return (quotient + 1).value
