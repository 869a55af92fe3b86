"""
Tests for the employee state machine.

Verifies:
- hire starts an ACTIVE account at the current time with nothing owed
- update_rate is value-neutral at the moment of change
- freeze settles and stops accrual; activate skips the frozen interval
- removal guards and checkpoint repair
"""

import pytest

from wagestream_kernel.domain import lifecycle
from wagestream_kernel.domain.account import EmployeeAccount, EmployeeStatus
from wagestream_kernel.domain.accrual import live_accrual, total_owed
from wagestream_kernel.domain.wage import WagePeriod
from wagestream_kernel.exceptions import (
    CannotRemoveActiveEmployeeError,
    InvalidWagePeriodError,
    InvalidWageRateError,
)

T0 = 1_704_110_400


@pytest.fixture
def hired() -> EmployeeAccount:
    return lifecycle.hire("alice", 100, WagePeriod.HOUR, T0)


class TestHire:

    def test_initial_state(self, hired):
        assert hired.status is EmployeeStatus.ACTIVE
        assert hired.accrued_balance == 0
        assert hired.last_accrual_timestamp == T0
        assert total_owed(hired, T0) == 0

    def test_accepts_period_names(self):
        assert lifecycle.hire("bob", 5, "week", T0).wage_period is WagePeriod.WEEK

    def test_invalid_rate(self):
        with pytest.raises(InvalidWageRateError):
            lifecycle.hire("bob", -1, WagePeriod.HOUR, T0)

    def test_invalid_period(self):
        with pytest.raises(InvalidWagePeriodError):
            lifecycle.hire("bob", 1, "year", T0)


class TestUpdateRate:

    def test_banks_old_rate_then_switches(self, hired):
        updated = lifecycle.update_rate(hired, 200, T0 + 3600)
        assert updated.accrued_balance == 100
        assert updated.wage_rate == 200
        assert updated.last_accrual_timestamp == T0 + 3600
        assert total_owed(updated, T0 + 7200) == 300

    def test_neutral_at_change_time(self, hired):
        now = T0 + 5000
        before = total_owed(hired, now)
        assert total_owed(lifecycle.update_rate(hired, 999, now), now) == before

    def test_rejects_non_positive(self, hired):
        with pytest.raises(InvalidWageRateError):
            lifecycle.update_rate(hired, 0, T0 + 1)


class TestFreezeActivate:

    def test_freeze_settles_everything(self, hired):
        settlement = lifecycle.freeze(hired, T0 + 7200)
        assert settlement.paid == 200
        assert settlement.account.active is False
        assert settlement.account.accrued_balance == 0
        assert settlement.account.last_accrual_timestamp == T0 + 7200

    def test_freeze_with_nothing_owed_only_deactivates(self, hired):
        settlement = lifecycle.freeze(hired, T0)
        assert settlement.paid == 0
        assert settlement.account == hired.evolve(active=False)

    def test_frozen_interval_not_paid(self, hired):
        frozen = lifecycle.freeze(hired, T0 + 3600).account
        resumed = lifecycle.activate(frozen, T0 + 36_000)
        assert resumed.active is True
        assert resumed.last_accrual_timestamp == T0 + 36_000
        assert live_accrual(resumed, T0 + 36_000 + 3600) == 100

    def test_activate_active_is_noop(self, hired):
        assert lifecycle.activate(hired, T0 + 3600) is hired

    def test_activate_never_rewinds_checkpoint(self, hired):
        frozen = hired.evolve(active=False, last_accrual_timestamp=T0 + 100)
        assert lifecycle.activate(frozen, T0).last_accrual_timestamp == T0 + 100


class TestEnsureRemovable:

    def test_active_rejected(self, hired):
        with pytest.raises(CannotRemoveActiveEmployeeError) as exc_info:
            lifecycle.ensure_removable(hired, T0)
        assert exc_info.value.reason == "active"

    def test_balance_owed_rejected(self, hired):
        frozen = hired.evolve(active=False, accrued_balance=12)
        with pytest.raises(CannotRemoveActiveEmployeeError) as exc_info:
            lifecycle.ensure_removable(frozen, T0)
        assert exc_info.value.reason == "balance_owed"
        assert exc_info.value.owed == 12

    def test_frozen_and_settled_allowed(self, hired):
        frozen = lifecycle.freeze(hired, T0 + 60).account
        lifecycle.ensure_removable(frozen, T0 + 10_000)


class TestFixTimestamp:

    def test_repairs_zero_checkpoint(self, hired):
        broken = hired.evolve(last_accrual_timestamp=0)
        assert live_accrual(broken, T0 + 3600) == 0
        repaired = lifecycle.fix_timestamp(broken, T0 + 3600)
        assert repaired.last_accrual_timestamp == T0 + 3600

    def test_valid_checkpoint_untouched(self, hired):
        assert lifecycle.fix_timestamp(hired, T0 + 3600) is hired
