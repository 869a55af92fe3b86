"""
Wage -- Time & rate model.

Responsibility:
    Maps each wage period to its fixed length in seconds and validates wage
    period and wage rate inputs at the point they are assigned.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    POSITIVE_WAGE_RATE -- ``validate_wage_rate`` rejects rates <= 0 and
        rates outside the signed 128-bit range.

Failure modes:
    - InvalidWagePeriodError for anything that is not a known period.
    - InvalidWageRateError for non-positive or out-of-range rates.

Notes:
    MONTH is a fixed 30-day approximation (2,592,000 seconds), not a
    calendar month.  Callers must accept that.
"""

from __future__ import annotations

from enum import Enum

from wagestream_kernel.domain.arithmetic import I128
from wagestream_kernel.exceptions import InvalidWagePeriodError, InvalidWageRateError


class WagePeriod(str, Enum):
    """Duration basis for a wage rate.

    Contract: immutable on an account once hired.  ``wire_code`` is the
    integer form (0..3) used by external callers and persisted records.
    """

    HOUR = "hour"
    DAY = "day"
    WEEK = "week"
    MONTH = "month"

    @property
    def seconds(self) -> int:
        return _PERIOD_SECONDS[self]

    @property
    def wire_code(self) -> int:
        return _WIRE_ORDER.index(self)


_PERIOD_SECONDS: dict[WagePeriod, int] = {
    WagePeriod.HOUR: 3_600,
    WagePeriod.DAY: 86_400,
    WagePeriod.WEEK: 604_800,
    WagePeriod.MONTH: 2_592_000,
}

_WIRE_ORDER: tuple[WagePeriod, ...] = (
    WagePeriod.HOUR,
    WagePeriod.DAY,
    WagePeriod.WEEK,
    WagePeriod.MONTH,
)


def period_seconds(period: WagePeriod) -> int:
    """Return the fixed number of seconds in one ``period``."""
    return _PERIOD_SECONDS[period]


def parse_wage_period(value: WagePeriod | str | int) -> WagePeriod:
    """
    Resolve ``value`` to a WagePeriod, rejecting anything unknown.

    Accepts a WagePeriod, its name or value in any case ("HOUR", "hour"),
    or its wire code (0..3).  Never defaults.
    """
    if isinstance(value, WagePeriod):
        return value
    if isinstance(value, bool):
        raise InvalidWagePeriodError(value)
    if isinstance(value, int):
        if 0 <= value < len(_WIRE_ORDER):
            return _WIRE_ORDER[value]
        raise InvalidWagePeriodError(value)
    if isinstance(value, str):
        normalized = value.strip().lower()
        for period in WagePeriod:
            if period.value == normalized:
                return period
    raise InvalidWagePeriodError(value)


def validate_wage_rate(wage_rate: int) -> int:
    """Return ``wage_rate`` if it is a positive signed 128-bit integer."""
    if isinstance(wage_rate, bool) or not isinstance(wage_rate, int):
        raise InvalidWageRateError(wage_rate)
    if wage_rate <= 0 or not I128.contains(wage_rate):
        raise InvalidWageRateError(wage_rate)
    return wage_rate
