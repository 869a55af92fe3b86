"""
Batch -- Planning an all-or-nothing multi-employee sweep.

Responsibility:
    The check pass of a batch sweep.  Given the requested identifiers and a
    way to load accounts, it settles every qualifying account in memory and
    totals the payout, without touching the store or the pool.  The stream
    service commits the plan only after the pool check passes.

Architecture position:
    Kernel > Domain -- pure functional core.  The account loader is a plain
    callable supplied by the service.

Invariants enforced:
    POOL_COVERAGE -- ``require_coverage`` compares the aggregate total to
        the queried pool balance before anything is committed.
    Duplicate and unknown identifiers are skipped, never errors.

Failure modes:
    - NothingToWithdrawError when the aggregate total is zero.
    - InsufficientContractBalanceError when the pool cannot cover it.
    - ArithmeticOverflowError when the total leaves the i128 range.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from wagestream_kernel.domain.account import EmployeeAccount
from wagestream_kernel.domain.arithmetic import checked_add
from wagestream_kernel.domain.settlement import Settlement, settle_all
from wagestream_kernel.exceptions import (
    InsufficientContractBalanceError,
    NothingToWithdrawError,
)


@dataclass(frozen=True)
class BatchSweepResult:
    """Outcome reported to the caller of a batch sweep."""

    paid_count: int
    total_amount: int


@dataclass(frozen=True)
class BatchPlan:
    """
    Settlements computed by the check pass, in request order.

    Contract:
        ``settlements`` holds one entry per distinct known employee whose
        owed amount is positive.  ``total`` is their checked sum.
    """

    requested: tuple[str, ...]
    settlements: tuple[Settlement, ...] = field(default_factory=tuple)
    total: int = 0
    skipped: tuple[str, ...] = field(default_factory=tuple)

    @property
    def paid_count(self) -> int:
        return len(self.settlements)

    def result(self) -> BatchSweepResult:
        return BatchSweepResult(paid_count=self.paid_count, total_amount=self.total)

    def require_payable(self) -> None:
        if self.total <= 0:
            raise NothingToWithdrawError(self.requested)

    def require_coverage(self, pool_balance: int) -> None:
        # INVARIANT: POOL_COVERAGE -- checked before any commit
        if pool_balance < self.total:
            raise InsufficientContractBalanceError(self.total, pool_balance)


def plan_batch_sweep(
    employee_ids: Iterable[str],
    load_account: Callable[[str], EmployeeAccount | None],
    now: int,
) -> BatchPlan:
    """Settle each distinct known employee in memory and total the payout."""
    requested = tuple(employee_ids)
    seen: set[str] = set()
    settlements: list[Settlement] = []
    skipped: list[str] = []
    total = 0

    for employee_id in requested:
        if employee_id in seen:
            skipped.append(employee_id)
            continue
        seen.add(employee_id)

        account = load_account(employee_id)
        if account is None:
            skipped.append(employee_id)
            continue

        settlement = settle_all(account, now)
        if settlement.paid <= 0:
            continue
        total = checked_add(total, settlement.paid)
        settlements.append(settlement)

    return BatchPlan(
        requested=requested,
        settlements=tuple(settlements),
        total=total,
        skipped=tuple(skipped),
    )
