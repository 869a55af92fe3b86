"""
Accrual -- Live (unmaterialized) wage accrual.

Responsibility:
    Computes what an account has earned since its checkpoint, and the total
    owed (materialized balance plus live accrual) at a given instant.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    FROZEN_ACCRUES_NOTHING -- inactive accounts return 0.
    CHECKED_ARITHMETIC     -- rate * elapsed is formed in full and range
                              checked before dividing by the period length.

Failure modes:
    - ArithmeticOverflowError when rate * elapsed exceeds i128, or when
      balance + live accrual does.
"""

from wagestream_kernel.domain.account import EmployeeAccount
from wagestream_kernel.domain.arithmetic import checked_add, checked_mul_div


def live_accrual(account: EmployeeAccount, now: int) -> int:
    """
    Amount earned since the checkpoint, truncated to whole units.

    Returns 0 for an inactive account, an uninitialized checkpoint, or a
    clock that has not moved past the checkpoint.  Never mutates ``account``.
    """
    if not account.active:
        return 0
    if not account.has_checkpoint:
        return 0
    if now <= account.last_accrual_timestamp:
        return 0

    elapsed = now - account.last_accrual_timestamp
    return checked_mul_div(
        account.wage_rate, elapsed, account.wage_period.seconds
    )


def total_owed(account: EmployeeAccount, now: int) -> int:
    """Materialized balance plus live accrual at ``now``."""
    return checked_add(account.accrued_balance, live_accrual(account, now))
