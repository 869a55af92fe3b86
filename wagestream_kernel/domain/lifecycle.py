"""
Lifecycle -- Employee state machine.

Responsibility:
    Pure transitions between ACTIVE, FROZEN and removed, with their guards:
    hire, update_rate, freeze, activate, removal checks and checkpoint
    repair.  Authorization, registry updates, pool checks and transfers are
    the stream service's job; these functions only compute the next account.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

    hire ──► ACTIVE ──freeze──► FROZEN ──remove──► (no record)
               ▲                  │
               └────activate──────┘
    update_rate keeps the current state.

Invariants enforced:
    POSITIVE_WAGE_RATE     -- hire and update_rate validate the rate.
    FROZEN_ACCRUES_NOTHING -- activate restarts the clock at now, so the
                              frozen interval is never paid.
    No value is created or destroyed by update_rate: live accrual under the
    old rate is banked before the rate changes.

Failure modes:
    - InvalidWageRateError, InvalidWagePeriodError on hire / update_rate.
    - CannotRemoveActiveEmployeeError from ensure_removable.
    - ArithmeticOverflowError from any accrual step.
"""

from __future__ import annotations

from wagestream_kernel.domain.account import EmployeeAccount
from wagestream_kernel.domain.accrual import total_owed
from wagestream_kernel.domain.settlement import Settlement, materialize, settle_all
from wagestream_kernel.domain.wage import (
    WagePeriod,
    parse_wage_period,
    validate_wage_rate,
)
from wagestream_kernel.exceptions import CannotRemoveActiveEmployeeError


def hire(
    employee_id: str,
    wage_rate: int,
    wage_period: WagePeriod | str | int,
    now: int,
) -> EmployeeAccount:
    """New ACTIVE account with an empty balance and its checkpoint at now."""
    return EmployeeAccount(
        employee_id=employee_id,
        wage_rate=validate_wage_rate(wage_rate),
        wage_period=parse_wage_period(wage_period),
        last_accrual_timestamp=now,
        accrued_balance=0,
        active=True,
    )


def update_rate(account: EmployeeAccount, new_wage_rate: int, now: int) -> EmployeeAccount:
    """Bank accrual under the old rate, then switch to ``new_wage_rate``."""
    validate_wage_rate(new_wage_rate)
    return materialize(account, now).evolve(wage_rate=new_wage_rate)


def freeze(account: EmployeeAccount, now: int) -> Settlement:
    """
    Settle everything owed and stop accrual.

    ``paid`` is what the pool must cover; when it is 0 the balance and
    checkpoint are left as they were and only ``active`` changes.
    """
    owed = total_owed(account, now)
    if owed > 0:
        settled = settle_all(account, now)
        return Settlement(account=settled.account.evolve(active=False), paid=settled.paid)
    return Settlement(account=account.evolve(active=False), paid=0)


def activate(account: EmployeeAccount, now: int) -> EmployeeAccount:
    """
    Resume accrual from ``now``.

    Activating an already ACTIVE account changes nothing; moving its
    checkpoint would discard live accrual.
    """
    if account.active:
        return account
    return account.evolve(
        active=True,
        last_accrual_timestamp=max(account.last_accrual_timestamp, now),
    )


def ensure_removable(account: EmployeeAccount, now: int) -> None:
    """Raise unless the account is FROZEN with nothing owed."""
    if account.active:
        raise CannotRemoveActiveEmployeeError(account.employee_id, "active")
    owed = total_owed(account, now)
    if owed > 0:
        raise CannotRemoveActiveEmployeeError(account.employee_id, "balance_owed", owed)


def fix_timestamp(account: EmployeeAccount, now: int) -> EmployeeAccount:
    """Repair an uninitialized (zero) checkpoint by moving it to ``now``."""
    if account.has_checkpoint:
        return account
    return account.evolve(last_accrual_timestamp=now)
