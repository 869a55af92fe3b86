"""
Tests for withdrawal, full settlement and materialization.

Verifies:
- Fast path consumes banked balance without touching the checkpoint
- Slow path advances the checkpoint by the seconds the amount pays for,
  rounded up and never past now
- Overdraw and invalid amounts are rejected before anything changes
- Full settlement never moves the checkpoint backwards
"""

import pytest

from wagestream_kernel.domain.account import EmployeeAccount
from wagestream_kernel.domain.accrual import live_accrual, total_owed
from wagestream_kernel.domain.settlement import (
    apply_withdrawal,
    materialize,
    settle_all,
    validate_amount,
)
from wagestream_kernel.domain.wage import WagePeriod
from wagestream_kernel.exceptions import (
    InvalidAmountError,
    WithdrawalExceedsAccruedError,
)

T0 = 1_704_110_400


def make_account(**overrides) -> EmployeeAccount:
    fields = {
        "employee_id": "alice",
        "wage_rate": 100,
        "wage_period": WagePeriod.HOUR,
        "last_accrual_timestamp": T0,
    }
    fields.update(overrides)
    return EmployeeAccount(**fields)


class TestValidateAmount:

    @pytest.mark.parametrize("bad", [0, -1, True, 2**127])
    def test_rejected(self, bad):
        with pytest.raises(InvalidAmountError) as exc_info:
            validate_amount(bad)
        assert exc_info.value.code == "INVALID_AMOUNT"

    def test_accepted(self):
        assert validate_amount(1) == 1


class TestApplyWithdrawal:

    def test_scenario_checkpoint_advances_by_paid_seconds(self):
        account = make_account()
        now = T0 + 3610

        updated = apply_withdrawal(account, 100, now)

        assert updated.accrued_balance == 0
        assert updated.last_accrual_timestamp == T0 + 3600
        # The 10-second remainder keeps accruing
        assert live_accrual(updated, T0 + 3600 + 36) == 1

    def test_fast_path_leaves_checkpoint(self):
        account = make_account(accrued_balance=500)
        updated = apply_withdrawal(account, 200, T0 + 3600)
        assert updated.accrued_balance == 300
        assert updated.last_accrual_timestamp == T0

    def test_slow_path_drains_balance_first(self):
        account = make_account(accrued_balance=50)
        updated = apply_withdrawal(account, 100, T0 + 3600)
        # 50 from balance, 50 from live accrual = 1800 seconds
        assert updated.accrued_balance == 0
        assert updated.last_accrual_timestamp == T0 + 1800

    def test_exact_total_allowed(self):
        account = make_account(accrued_balance=7)
        now = T0 + 7200
        updated = apply_withdrawal(account, total_owed(account, now), now)
        assert total_owed(updated, now) == 0

    def test_overdraw_rejected(self):
        account = make_account()
        with pytest.raises(WithdrawalExceedsAccruedError) as exc_info:
            apply_withdrawal(account, 101, T0 + 3600)
        assert exc_info.value.requested == 101
        assert exc_info.value.available == 100
        assert exc_info.value.employee == "alice"

    def test_frozen_account_can_spend_only_balance(self):
        account = make_account(accrued_balance=30, active=False)
        with pytest.raises(WithdrawalExceedsAccruedError):
            apply_withdrawal(account, 31, T0 + 10_000)
        assert apply_withdrawal(account, 30, T0 + 10_000).accrued_balance == 0

    def test_input_untouched_on_failure(self):
        account = make_account(accrued_balance=10)
        with pytest.raises(WithdrawalExceedsAccruedError):
            apply_withdrawal(account, 10_000, T0 + 60)
        assert account.accrued_balance == 10

    def test_non_dividing_rate_never_overpays(self):
        # 7 per day: each unit is worth 12342.857 seconds
        account = make_account(wage_rate=7, wage_period=WagePeriod.DAY)
        now = T0 + 86_400
        paid = 0
        while total_owed(account, now) > 0:
            owed = total_owed(account, now)
            account = apply_withdrawal(account, 1, now)
            assert owed - 2 <= total_owed(account, now) <= owed - 1
            paid += 1
        assert paid <= 7
        assert account.last_accrual_timestamp <= now

    def test_high_rate_banks_value_of_rounded_up_second(self):
        # 10**9 per hour: one second is worth 277777.7 units
        account = make_account(wage_rate=10**9)
        now = T0 + 10
        assert total_owed(account, now) == 2_777_777

        account = apply_withdrawal(account, 1, now)
        assert account.last_accrual_timestamp == T0 + 1
        assert account.accrued_balance == 277_776
        assert total_owed(account, now) == 2_777_776

        account = apply_withdrawal(account, 2_777_776, now)
        assert total_owed(account, now) == 0
        assert account.last_accrual_timestamp == now

    def test_high_rate_loses_at_most_one_unit_per_draw(self):
        account = make_account(wage_rate=10**9, wage_period=WagePeriod.DAY)
        now = T0 + 5_000
        amount = 10**6
        while total_owed(account, now) >= amount:
            owed = total_owed(account, now)
            account = apply_withdrawal(account, amount, now)
            assert owed - amount - 1 <= total_owed(account, now) <= owed - amount
            assert account.last_accrual_timestamp <= now


class TestSettleAll:

    def test_pays_everything(self):
        account = make_account(accrued_balance=25)
        settlement = settle_all(account, T0 + 3600)
        assert settlement.paid == 125
        assert settlement.account.accrued_balance == 0
        assert settlement.account.last_accrual_timestamp == T0 + 3600

    def test_checkpoint_never_moves_backwards(self):
        account = make_account(last_accrual_timestamp=T0 + 500)
        settlement = settle_all(account, T0)
        assert settlement.paid == 0
        assert settlement.account.last_accrual_timestamp == T0 + 500


class TestMaterialize:

    def test_banks_live_accrual(self):
        account = make_account(accrued_balance=5)
        banked = materialize(account, T0 + 7200)
        assert banked.accrued_balance == 205
        assert banked.last_accrual_timestamp == T0 + 7200
        assert total_owed(banked, T0 + 7200) == total_owed(account, T0 + 7200)
