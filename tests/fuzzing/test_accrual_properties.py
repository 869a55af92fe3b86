"""
Hypothesis property tests for the accrual and settlement engine.

Properties checked:
- total owed is non-decreasing in time while active, constant while frozen
- live accrual is idempotent and never mutates the account
- a withdrawal larger than the total owed never succeeds
- any successful withdrawal reduces the total owed by its amount, or by one
  unit more, and never moves the checkpoint past now
- a rate change is value-neutral at the moment it happens
- across a random sequence of service operations, funds are conserved and
  no employee is paid more than accrued
"""

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from wagestream_kernel.domain import lifecycle
from wagestream_kernel.domain.account import EmployeeAccount
from wagestream_kernel.domain.accrual import live_accrual, total_owed
from wagestream_kernel.domain.clock import DeterministicClock
from wagestream_kernel.domain.settlement import apply_withdrawal
from wagestream_kernel.domain.wage import WagePeriod
from wagestream_kernel.exceptions import WageStreamError, WithdrawalExceedsAccruedError
from wagestream_kernel.services.wiring import in_memory_stream

T0 = 1_704_110_400

rates = st.integers(min_value=1, max_value=10**18)
periods = st.sampled_from(list(WagePeriod))
elapsed = st.integers(min_value=0, max_value=10 * 365 * 86_400)
balances = st.integers(min_value=0, max_value=10**18)


@st.composite
def accounts(draw, active=None):
    return EmployeeAccount(
        employee_id="alice",
        wage_rate=draw(rates),
        wage_period=draw(periods),
        last_accrual_timestamp=T0,
        accrued_balance=draw(balances),
        active=draw(st.booleans()) if active is None else active,
    )


class TestAccrualProperties:

    @given(account=accounts(active=True), a=elapsed, b=elapsed)
    def test_owed_non_decreasing_while_active(self, account, a, b):
        early, late = sorted((a, b))
        assert total_owed(account, T0 + early) <= total_owed(account, T0 + late)

    @given(account=accounts(active=False), a=elapsed, b=elapsed)
    def test_owed_constant_while_frozen(self, account, a, b):
        assert total_owed(account, T0 + a) == total_owed(account, T0 + b) == account.accrued_balance

    @given(account=accounts(), t=elapsed)
    def test_live_accrual_idempotent(self, account, t):
        snapshot = account
        assert live_accrual(account, T0 + t) == live_accrual(account, T0 + t)
        assert account == snapshot

    @given(account=accounts(), t=elapsed, excess=st.integers(min_value=1, max_value=10**6))
    def test_overdraw_never_succeeds(self, account, t, excess):
        now = T0 + t
        with pytest.raises(WithdrawalExceedsAccruedError):
            apply_withdrawal(account, total_owed(account, now) + excess, now)

    @given(account=accounts(), t=elapsed, data=st.data())
    def test_withdrawal_reduces_owed_by_amount_within_one_unit(self, account, t, data):
        now = T0 + t
        owed = total_owed(account, now)
        if owed == 0:
            return
        amount = data.draw(st.integers(min_value=1, max_value=owed))
        updated = apply_withdrawal(account, amount, now)
        assert updated.last_accrual_timestamp <= now
        assert updated.last_accrual_timestamp >= account.last_accrual_timestamp
        remaining = total_owed(updated, now)
        assert max(0, owed - amount - 1) <= remaining <= owed - amount

    @given(account=accounts(active=True), t=elapsed, new_rate=rates)
    def test_rate_change_neutral(self, account, t, new_rate):
        now = T0 + t
        updated = lifecycle.update_rate(account, new_rate, now)
        assert total_owed(updated, now) == total_owed(account, now)


operations = st.lists(
    st.tuples(
        st.sampled_from(
            ["advance", "withdraw", "pay_partial", "sweep", "sweep_many", "freeze", "activate", "update_rate"]
        ),
        st.sampled_from(["alice", "bob"]),
        st.integers(min_value=1, max_value=50_000),
    ),
    max_size=40,
)


class TestServiceSequences:

    @settings(max_examples=60, suppress_health_check=[HealthCheck.too_slow])
    @given(ops=operations, pool=st.integers(min_value=0, max_value=200_000))
    def test_funds_conserved_and_never_overpaid(self, ops, pool):
        clock = DeterministicClock(T0)
        stack = in_memory_stream(clock=clock)
        service, ledger, authorizer = stack.service, stack.ledger, stack.authorizer

        with authorizer.signed_by("employer"):
            service.init("employer", "USDC")
        with ledger.transaction():
            ledger.mint("employer", 1_000_000)
        if pool:
            with authorizer.signed_by("employer"):
                service.deposit(pool)
        with authorizer.signed_by("employer"):
            service.hire("alice", 360, WagePeriod.HOUR)
            service.hire("bob", 7, WagePeriod.DAY)

        for op, who, value in ops:
            if op == "advance":
                clock.advance(value)
                continue
            signer = who if op == "withdraw" else "employer"
            try:
                with authorizer.signed_by(signer):
                    if op in ("withdraw", "pay_partial"):
                        getattr(service, op)(who, value % 500 + 1)
                    elif op == "sweep_many":
                        service.sweep_many(["alice", "bob"])
                    elif op == "update_rate":
                        service.update_rate(who, value)
                    else:
                        getattr(service, op)(who)
            except WageStreamError:
                pass

            total = sum(ledger.balance(h) for h in ("employer", "contract", "alice", "bob"))
            assert total == 1_000_000
            assert ledger.balance("contract") >= 0

        for employee in ("alice", "bob"):
            paid = ledger.balance(employee)
            accrued = sum(
                e.amount
                for e in service.history(employee)
                if e.action.value in ("withdrawn", "partial_paid", "swept", "employee_frozen")
            )
            assert paid == accrued
            assert service.live_balance(employee) >= 0
