"""
Kernel Invariants Contract.

These invariants are structural law. They are hardcoded in the accrual and
settlement functions and in the stream service's invocation scope. No
configuration value may override them.

This module exists solely to declare these invariants explicitly. The
enforcement is distributed across domain.accrual, domain.settlement,
domain.lifecycle, domain.batch and services.stream_service.
"""

from enum import Enum, unique


@unique
class KernelInvariant(str, Enum):
    """Non-configurable invariants enforced by the kernel."""

    POSITIVE_WAGE_RATE = "positive_wage_rate"
    """No account persists with wage_rate <= 0. Enforced by EmployeeAccount
    construction and by lifecycle.hire / lifecycle.update_rate."""

    NON_NEGATIVE_BALANCE = "non_negative_balance"
    """accrued_balance >= 0 at all times. Enforced by EmployeeAccount
    construction and by settlement.apply_withdrawal."""

    NO_OVERDRAW = "no_overdraw"
    """No employee is paid more than accrued_balance + live accrual.
    Enforced by settlement.apply_withdrawal."""

    CHECKPOINT_MONOTONICITY = "checkpoint_monotonicity"
    """last_accrual_timestamp never decreases. Enforced by settlement and
    lifecycle, which only ever move the checkpoint forward."""

    FROZEN_ACCRUES_NOTHING = "frozen_accrues_nothing"
    """Inactive accounts accrue zero, and activation restarts the clock.
    Enforced by accrual.live_accrual and lifecycle.activate."""

    CHECKED_ARITHMETIC = "checked_arithmetic"
    """Every arithmetic step stays inside its 128-bit / 64-bit range or
    raises ArithmeticOverflowError. Enforced by domain.arithmetic."""

    ATOMIC_INVOCATION = "atomic_invocation"
    """An operation commits all of its store, pool and journal writes or
    none of them. Enforced by WageStreamService's invocation scope."""

    POOL_COVERAGE = "pool_coverage"
    """Payouts are checked against the queried pool balance before any
    write. Enforced by WageStreamService and batch.plan_batch_sweep."""


# All invariants as a frozenset for programmatic checks.
ALL_KERNEL_INVARIANTS: frozenset[KernelInvariant] = frozenset(KernelInvariant)

# The kernel package may not import from these packages.
FORBIDDEN_KERNEL_IMPORTS: tuple[str, ...] = (
    "wagestream_config",
    "wagestream_cli",
)
