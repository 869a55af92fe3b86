"""
Settlement -- Consuming accrued value.

Responsibility:
    Applies withdrawals (employee withdrawal and employer partial payment),
    full settlements (sweep, freeze payout) and materialization (rate
    changes) to an EmployeeAccount, advancing the accrual checkpoint so that
    no value is paid twice and no unpaid fraction is lost.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Builds on domain.accrual; used by domain.lifecycle, domain.batch and
    services.stream_service.

Invariants enforced:
    NO_OVERDRAW             -- a withdrawal never exceeds balance + live accrual.
    NON_NEGATIVE_BALANCE    -- the fast path only subtracts what is banked;
                               the slow path banks a non-negative surplus.
    CHECKPOINT_MONOTONICITY -- the checkpoint only moves forward, and on the
                               slow path never past now.
    CHECKED_ARITHMETIC      -- every step goes through domain.arithmetic.

Failure modes:
    - InvalidAmountError when amount <= 0 or is not an i128.
    - WithdrawalExceedsAccruedError when amount > available.
    - ArithmeticOverflowError from any checked step.
    All failures happen before a new account is built; inputs are never
    mutated, so a failure leaves nothing partially applied.

The proportional advance:
    Drawing ``from_current`` out of live accrual moves the checkpoint by
    ``ceil(from_current * period_seconds / wage_rate)`` seconds, not to
    ``now``.  Rounding up keeps a partial second from being drawn twice when
    one second is worth more than one unit; since ``from_current`` never
    exceeds live accrual the advance never passes ``now``.  The advanced
    seconds are worth ``floor(wage_rate * seconds_paid / period_seconds)``,
    at least ``from_current``; the difference is banked in
    ``accrued_balance``.  The total owed therefore drops by ``amount`` or
    ``amount + 1``, never more.
"""

from __future__ import annotations

from dataclasses import dataclass

from wagestream_kernel.domain.account import EmployeeAccount
from wagestream_kernel.domain.accrual import live_accrual
from wagestream_kernel.domain.arithmetic import (
    I128,
    U64,
    checked_add,
    checked_mul_div,
    checked_mul_div_ceil,
    checked_sub,
)
from wagestream_kernel.exceptions import (
    InvalidAmountError,
    WithdrawalExceedsAccruedError,
)


@dataclass(frozen=True, slots=True)
class Settlement:
    """Result of a settlement: the updated account and the amount paid."""

    account: EmployeeAccount
    paid: int


def validate_amount(amount: int) -> int:
    """Return ``amount`` if it is a positive i128, else raise InvalidAmountError."""
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidAmountError(amount)
    if amount <= 0 or not I128.contains(amount):
        raise InvalidAmountError(amount)
    return amount


def _forward_checkpoint(account: EmployeeAccount, now: int) -> int:
    return max(account.last_accrual_timestamp, now)


def apply_withdrawal(account: EmployeeAccount, amount: int, now: int) -> EmployeeAccount:
    """
    Spend ``amount`` from the account's accrued value.

    Banked balance is consumed first.  Only the part drawn from live
    accrual moves the checkpoint, and only by the time it pays for.
    """
    validate_amount(amount)

    current_live = live_accrual(account, now)
    available = checked_add(account.accrued_balance, current_live)
    # INVARIANT: NO_OVERDRAW
    if amount > available:
        raise WithdrawalExceedsAccruedError(account.employee_id, amount, available)

    if amount <= account.accrued_balance:
        return account.evolve(
            accrued_balance=checked_sub(account.accrued_balance, amount)
        )

    from_current = checked_sub(amount, account.accrued_balance)
    seconds_paid = checked_mul_div_ceil(
        from_current, account.wage_period.seconds, account.wage_rate
    )
    new_checkpoint = checked_add(
        account.last_accrual_timestamp, seconds_paid, U64
    )
    # The rounded-up seconds are worth at least from_current; bank the rest
    surplus = checked_sub(
        checked_mul_div(account.wage_rate, seconds_paid, account.wage_period.seconds),
        from_current,
    )
    return account.evolve(
        accrued_balance=surplus,
        last_accrual_timestamp=new_checkpoint,
    )


def settle_all(account: EmployeeAccount, now: int) -> Settlement:
    """Pay out everything owed at ``now``: zero the balance, checkpoint to now."""
    paid = checked_add(account.accrued_balance, live_accrual(account, now))
    settled = account.evolve(
        accrued_balance=0,
        last_accrual_timestamp=_forward_checkpoint(account, now),
    )
    return Settlement(account=settled, paid=paid)


def materialize(account: EmployeeAccount, now: int) -> EmployeeAccount:
    """Bank live accrual into accrued_balance and move the checkpoint to now."""
    banked = checked_add(account.accrued_balance, live_accrual(account, now))
    return account.evolve(
        accrued_balance=banked,
        last_accrual_timestamp=_forward_checkpoint(account, now),
    )
