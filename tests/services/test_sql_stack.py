"""
Tests for the SQLAlchemy-backed stack on in-memory SQLite.

Verifies:
- The service behaves the same on the SQL collaborators
- Rejections roll back the shared session
- Store, transfer log and journal rows are append-only
- Integrity checks over stored values and the event chain
"""

import pytest
from sqlalchemy import select

from wagestream_kernel.domain.arithmetic import I128_MAX
from wagestream_kernel.domain.wage import WagePeriod
from wagestream_kernel.exceptions import (
    ImmutabilityViolationError,
    InsufficientContractBalanceError,
    WithdrawalExceedsAccruedError,
)
from wagestream_kernel.models import StoreEntry, StreamEventRecord, TokenTransfer
from wagestream_kernel.services.store import SqlKeyValueStore

EMPLOYER = "employer"
POOL = 1_000_000


class TestSqlStreamService:

    def test_hire_accrue_withdraw(self, sql_stack, clock, as_employer, as_identity):
        as_employer(sql_stack, sql_stack.service.hire, "alice", 100, WagePeriod.HOUR)
        clock.advance(3610)

        as_identity(sql_stack, "alice", sql_stack.service.withdraw, "alice", 100)

        assert sql_stack.ledger.balance("alice") == 100
        assert sql_stack.service.balance_of_contract() == POOL - 100
        info = sql_stack.service.employee_info("alice")
        assert info.last_accrual_timestamp == clock.now() - 10
        assert info.total_owed == 0

    def test_rejection_rolls_back_session(self, sql_stack, clock, as_employer, as_identity):
        as_employer(sql_stack, sql_stack.service.hire, "alice", 100, WagePeriod.HOUR)
        clock.advance(3600)
        events_before = len(sql_stack.service.history())

        with pytest.raises(WithdrawalExceedsAccruedError):
            as_identity(sql_stack, "alice", sql_stack.service.withdraw, "alice", 1000)

        assert sql_stack.service.live_balance("alice") == 100
        assert len(sql_stack.service.history()) == events_before

    def test_batch_sweep_atomic(self, sql_stack, clock, as_employer):
        as_employer(sql_stack, sql_stack.service.withdraw_surplus, POOL - 120)
        as_employer(sql_stack, sql_stack.service.hire, "alice", 100, WagePeriod.HOUR)
        as_employer(sql_stack, sql_stack.service.hire, "bob", 50, WagePeriod.HOUR)
        clock.advance(3600)

        with pytest.raises(InsufficientContractBalanceError):
            as_employer(sql_stack, sql_stack.service.sweep_many, ["alice", "bob"])

        assert sql_stack.service.live_balance("alice") == 100
        assert sql_stack.service.live_balance("bob") == 50
        assert sql_stack.service.balance_of_contract() == 120

    def test_remove_leaves_tombstone(self, sql_stack, as_employer, sqlite_session):
        as_employer(sql_stack, sql_stack.service.hire, "alice", 100, WagePeriod.HOUR)
        as_employer(sql_stack, sql_stack.service.freeze, "alice")
        as_employer(sql_stack, sql_stack.service.remove, "alice")

        assert sql_stack.service.list_employees() == []
        versions = sql_stack.store.history("employee:alice")
        assert versions[-1].is_tombstone
        assert len(versions) == 3

    def test_large_amounts_persist_exactly(self, sql_stack, as_employer):
        account = as_employer(
            sql_stack, sql_stack.service.hire, "whale", I128_MAX, WagePeriod.MONTH
        )
        assert sql_stack.service.employee_info("whale").wage_rate == account.wage_rate

    def test_history_chain_verifies(self, sql_stack, clock, as_employer):
        as_employer(sql_stack, sql_stack.service.hire, "alice", 100, WagePeriod.HOUR)
        clock.advance(7200)
        as_employer(sql_stack, sql_stack.service.sweep, "alice")
        events = sql_stack.service.history("alice")
        assert [e.amount for e in events] == [0, 200]
        assert sql_stack.service.verify_history() is None


class TestAppendOnly:

    def test_store_entry_update_blocked(self, sql_stack, sqlite_session):
        entry = sqlite_session.execute(select(StoreEntry).limit(1)).scalar_one()
        entry.value = "tampered"
        with pytest.raises(ImmutabilityViolationError):
            sqlite_session.flush()
        sqlite_session.rollback()

    def test_transfer_delete_blocked(self, sql_stack, sqlite_session):
        transfer = sqlite_session.execute(select(TokenTransfer).limit(1)).scalar_one()
        sqlite_session.delete(transfer)
        with pytest.raises(ImmutabilityViolationError):
            sqlite_session.flush()
        sqlite_session.rollback()

    def test_event_update_blocked(self, sql_stack, sqlite_session):
        record = sqlite_session.execute(select(StreamEventRecord).limit(1)).scalar_one()
        record.amount = "1"
        with pytest.raises(ImmutabilityViolationError):
            sqlite_session.flush()
        sqlite_session.rollback()


class TestSqlKeyValueStore:

    def test_verify_clean_store(self, sqlite_session):
        store = SqlKeyValueStore(sqlite_session)
        with store.transaction():
            store.set("k", {"v": 1})
            store.set("k", {"v": 2})
            store.delete("k")
        assert store.verify() == []
        assert store.get("k") is None

    def test_transaction_rolls_back(self, sqlite_session):
        store = SqlKeyValueStore(sqlite_session)
        with pytest.raises(RuntimeError):
            with store.transaction():
                store.set("k", 1)
                raise RuntimeError("boom")
        assert not store.exists("k")
