"""
Account -- The per-employee accrual record.

Responsibility:
    Defines EmployeeAccount, the immutable value object every accrual,
    settlement and lifecycle function consumes and returns, plus its
    conversion to and from the plain record shape kept in the store.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    POSITIVE_WAGE_RATE   -- wage_rate > 0 at construction.
    NON_NEGATIVE_BALANCE -- 0 <= accrued_balance <= i128 max.
    Checkpoint is a valid u64 (0 is the "uninitialized" sentinel).

Failure modes:
    - InvalidWageRateError for a non-positive rate.
    - InvalidWagePeriodError for an unknown period.
    - ValueError for a negative balance or a checkpoint outside u64.
    - KeyError from ``from_record`` when a required field is missing.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any

from wagestream_kernel.domain.arithmetic import I128, U64
from wagestream_kernel.domain.wage import (
    WagePeriod,
    parse_wage_period,
    validate_wage_rate,
)

UNINITIALIZED_CHECKPOINT = 0


class EmployeeStatus(str, Enum):
    """Lifecycle state of a stored account.

    Contract: ACTIVE accrues, FROZEN keeps its record but accrues nothing.
    A removed employee has no record at all, so there is no REMOVED member.
    """

    ACTIVE = "active"
    FROZEN = "frozen"


@dataclass(frozen=True, slots=True)
class EmployeeAccount:
    """
    Wage parameters and accrual state of one employee.

    Contract:
        Instances are never mutated; every transition returns a new account
        via ``evolve``.  A value that violates an invariant cannot be built.

    Guarantees:
        - wage_rate is a positive i128
        - accrued_balance is a non-negative i128
        - last_accrual_timestamp is a u64

    Non-goals:
        - Does NOT compute accrual (see domain.accrual)
        - Does NOT know about the pool or the registry
    """

    employee_id: str
    wage_rate: int
    wage_period: WagePeriod
    last_accrual_timestamp: int
    accrued_balance: int = 0
    active: bool = True

    def __post_init__(self) -> None:
        validate_wage_rate(self.wage_rate)
        object.__setattr__(self, "wage_period", parse_wage_period(self.wage_period))
        if not U64.contains(self.last_accrual_timestamp):
            raise ValueError(
                f"Checkpoint out of u64 range: {self.last_accrual_timestamp}"
            )
        # INVARIANT: NON_NEGATIVE_BALANCE
        if self.accrued_balance < 0 or not I128.contains(self.accrued_balance):
            raise ValueError(f"Invalid accrued balance: {self.accrued_balance}")

    @property
    def status(self) -> EmployeeStatus:
        return EmployeeStatus.ACTIVE if self.active else EmployeeStatus.FROZEN

    @property
    def has_checkpoint(self) -> bool:
        return self.last_accrual_timestamp != UNINITIALIZED_CHECKPOINT

    def evolve(self, **changes: Any) -> EmployeeAccount:
        """Return a copy with ``changes`` applied (re-validated)."""
        return replace(self, **changes)

    def to_record(self) -> dict[str, Any]:
        """Serialize to the store record shape (amounts as decimal strings)."""
        return {
            "wage_rate": str(self.wage_rate),
            "wage_period": self.wage_period.value,
            "last_accrual_timestamp": self.last_accrual_timestamp,
            "accrued_balance": str(self.accrued_balance),
            "active": self.active,
        }

    @classmethod
    def from_record(cls, employee_id: str, record: dict[str, Any]) -> EmployeeAccount:
        """Rebuild an account from its store record."""
        return cls(
            employee_id=employee_id,
            wage_rate=int(record["wage_rate"]),
            wage_period=parse_wage_period(record["wage_period"]),
            last_accrual_timestamp=int(record["last_accrual_timestamp"]),
            accrued_balance=int(record["accrued_balance"]),
            active=bool(record["active"]),
        )
