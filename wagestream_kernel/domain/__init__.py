"""
Pure domain layer.

This module contains the accrual and settlement model with NO dependencies
on:
- ORM (SQLAlchemy)
- Database
- Time/clock (callers pass ``now`` explicitly)
- I/O

All domain objects are immutable and deterministic.
"""

from wagestream_kernel.domain.account import EmployeeAccount, EmployeeStatus
from wagestream_kernel.domain.accrual import live_accrual, total_owed
from wagestream_kernel.domain.arithmetic import CheckedInt, i128, u64
from wagestream_kernel.domain.batch import BatchPlan, BatchSweepResult, plan_batch_sweep
from wagestream_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from wagestream_kernel.domain.events import StreamAction, StreamEvent
from wagestream_kernel.domain.settlement import (
    Settlement,
    apply_withdrawal,
    materialize,
    settle_all,
)
from wagestream_kernel.domain.wage import WagePeriod, parse_wage_period, period_seconds

__all__ = [
    "BatchPlan",
    "BatchSweepResult",
    "CheckedInt",
    "Clock",
    "DeterministicClock",
    "EmployeeAccount",
    "EmployeeStatus",
    "Settlement",
    "StreamAction",
    "StreamEvent",
    "SystemClock",
    "WagePeriod",
    "apply_withdrawal",
    "i128",
    "live_accrual",
    "materialize",
    "parse_wage_period",
    "period_seconds",
    "plan_batch_sweep",
    "settle_all",
    "total_owed",
    "u64",
]
