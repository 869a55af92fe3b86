"""
WageStreamService -- The operation surface of a wage stream.

Responsibility:
    Every externally invocable operation: configuration (init), the
    employee lifecycle (hire, update_rate, freeze, activate, remove,
    fix_timestamp), pool management (deposit, withdraw_surplus), payouts
    (withdraw, pay_partial, sweep, sweep_many) and read-only queries.

Architecture position:
    Kernel > Services -- imperative shell.  Each operation:
        1. authorizes the required identity (Authorizer)
        2. loads account(s) from the KeyValueStore
        3. runs the pure domain logic at ``clock.now()``
        4. checks the pool balance (FundTransferService) before any payout
        5. persists the new record(s), moves funds, appends a StreamEvent

Invariants enforced:
    ATOMIC_INVOCATION -- the outermost call of every operation runs inside
        one InvocationScope; any exception rolls back the store, the ledger
        and the journal together.
    POOL_COVERAGE     -- the pool balance is queried and compared before any
        transfer out of the pool.
    Single writer     -- invocations are serialized by a re-entrant lock.

Failure modes:
    See wagestream_kernel.exceptions.  Rejections are logged at WARNING as
    ``operation_rejected`` with the error code, then re-raised.

Audit relevance:
    Every committed mutating operation leaves exactly one StreamEvent in the
    hash-chained journal.
"""

from __future__ import annotations

import threading
from collections.abc import Generator, Iterable
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any
from uuid import uuid4

from wagestream_kernel.domain import lifecycle
from wagestream_kernel.domain.account import EmployeeAccount, EmployeeStatus
from wagestream_kernel.domain.accrual import live_accrual, total_owed
from wagestream_kernel.domain.batch import BatchSweepResult, plan_batch_sweep
from wagestream_kernel.domain.clock import Clock
from wagestream_kernel.domain.events import StreamAction, StreamEvent
from wagestream_kernel.domain.settlement import apply_withdrawal, settle_all, validate_amount
from wagestream_kernel.domain.wage import WagePeriod
from wagestream_kernel.exceptions import (
    AlreadyInitializedError,
    EmployeeAlreadyExistsError,
    EmployeeNotFoundError,
    InsufficientContractBalanceError,
    InvalidEmployeeError,
    NotInitializedError,
    NothingToWithdrawError,
    TokenNotConfiguredError,
    WageStreamError,
)
from wagestream_kernel.logging_config import LogContext, get_logger
from wagestream_kernel.services.authorization import Authorizer
from wagestream_kernel.services.event_journal import EventJournal
from wagestream_kernel.services.registry import EmployeeRegistry
from wagestream_kernel.services.store import KeyValueStore
from wagestream_kernel.services.token_ledger import FundTransferService
from wagestream_kernel.services.unit_of_work import InvocationScope

logger = get_logger("services.stream")

EMPLOYER_KEY = "employer"
TOKEN_KEY = "token"
DEFAULT_POOL_HOLDER = "contract"


def employee_key(employee_id: str) -> str:
    return f"employee:{employee_id}"


@dataclass(frozen=True)
class EmployeeInfo:
    """Account snapshot with accrual evaluated at ``as_of``."""

    employee_id: str
    wage_rate: int
    wage_period: WagePeriod
    last_accrual_timestamp: int
    accrued_balance: int
    active: bool
    status: EmployeeStatus
    live_accrual: int
    total_owed: int
    as_of: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "employee_id": self.employee_id,
            "wage_rate": str(self.wage_rate),
            "wage_period": self.wage_period.value,
            "last_accrual_timestamp": self.last_accrual_timestamp,
            "accrued_balance": str(self.accrued_balance),
            "active": self.active,
            "status": self.status.value,
            "live_accrual": str(self.live_accrual),
            "total_owed": str(self.total_owed),
            "as_of": self.as_of,
        }


class WageStreamService:
    """
    One wage stream: an employer, a pool token and its employees.

    Contract:
        The collaborators are injected; the service never reads the wall
        clock or the pool balance from anywhere else.  The pool is the
        ledger holder named ``pool_holder``.

    Guarantees:
        - No employee is ever paid more than accrued.
        - A rejected operation changes nothing.

    Non-goals:
        - Does NOT retry.  Every error aborts the invocation.
        - Does NOT track the pool balance itself.
    """

    def __init__(
        self,
        store: KeyValueStore,
        ledger: FundTransferService,
        authorizer: Authorizer,
        clock: Clock,
        journal: EventJournal,
        unit_of_work: InvocationScope | None = None,
        pool_holder: str = DEFAULT_POOL_HOLDER,
    ):
        self._store = store
        self._ledger = ledger
        self._authorizer = authorizer
        self._clock = clock
        self._journal = journal
        self._unit_of_work = unit_of_work or InvocationScope(store, ledger, journal)
        self._registry = EmployeeRegistry(store)
        self._lock = threading.RLock()
        self._depth = 0
        self.pool_holder = pool_holder

    # ------------------------------------------------------------------
    # Invocation scope
    # ------------------------------------------------------------------

    @contextmanager
    def _invocation(
        self, operation: str, employee_id: str | None = None
    ) -> Generator[None, None, None]:
        with self._lock:
            outermost = self._depth == 0
            self._depth += 1
            try:
                with LogContext.bind(
                    correlation_id=str(uuid4()) if outermost else None,
                    operation=operation,
                    employee_id=employee_id,
                ):
                    if outermost:
                        with self._unit_of_work.transaction():
                            yield
                    else:
                        yield
            except WageStreamError as exc:
                if outermost:
                    logger.warning(
                        "operation_rejected",
                        extra={"error_code": exc.code, "error": str(exc)},
                    )
                raise
            finally:
                self._depth -= 1

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_employer(self, operation: str) -> str:
        employer = self._store.get(EMPLOYER_KEY)
        if employer is None:
            raise NotInitializedError(operation)
        self._authorizer.require_auth(employer)
        return employer

    def _token(self) -> str:
        token = self._store.get(TOKEN_KEY)
        if token is None:
            raise TokenNotConfiguredError()
        return token

    def _find(self, employee_id: str) -> EmployeeAccount | None:
        record = self._store.get(employee_key(employee_id))
        if record is None:
            return None
        return EmployeeAccount.from_record(employee_id, record)

    def _load(self, employee_id: str) -> EmployeeAccount:
        account = self._find(employee_id)
        if account is None:
            raise EmployeeNotFoundError(employee_id)
        return account

    def _save(self, account: EmployeeAccount) -> None:
        self._store.set(employee_key(account.employee_id), account.to_record())

    def _pool_balance(self) -> int:
        return self._ledger.balance(self.pool_holder)

    def _require_pool(self, amount: int) -> None:
        available = self._pool_balance()
        if available < amount:
            raise InsufficientContractBalanceError(amount, available)

    def _pay(self, employee_id: str, amount: int) -> None:
        self._token()
        self._ledger.transfer(self.pool_holder, employee_id, amount)

    def _record(
        self,
        action: StreamAction,
        employee_id: str | None,
        amount: int,
        now: int,
        **details: Any,
    ) -> StreamEvent:
        return self._journal.append(action, employee_id, amount, now, details)

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def init(self, employer: str, token_ref: str) -> None:
        """Set the employer and pool token; allowed exactly once."""
        with self._invocation("init"):
            self._authorizer.require_auth(employer)
            existing = self._store.get(EMPLOYER_KEY)
            if existing is not None:
                raise AlreadyInitializedError(existing)
            now = self._clock.now()
            self._store.set(EMPLOYER_KEY, employer)
            self._store.set(TOKEN_KEY, token_ref)
            self._record(StreamAction.INITIALIZED, None, 0, now, employer=employer, token=token_ref)
            logger.info("stream_initialized", extra={"employer": employer, "token": token_ref})

    def employer(self) -> str:
        with self._invocation("employer"):
            employer = self._store.get(EMPLOYER_KEY)
            if employer is None:
                raise NotInitializedError("employer")
            return employer

    def token(self) -> str:
        with self._invocation("token"):
            return self._token()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def hire(
        self, employee: str, wage_rate: int, wage_period: WagePeriod | str | int
    ) -> EmployeeAccount:
        with self._invocation("hire", employee):
            self._require_employer("hire")
            if employee == self.pool_holder:
                raise InvalidEmployeeError(employee, "reserved for the pool")
            if self._store.exists(employee_key(employee)):
                raise EmployeeAlreadyExistsError(employee)
            now = self._clock.now()
            account = lifecycle.hire(employee, wage_rate, wage_period, now)
            self._save(account)
            self._registry.add(employee)
            self._record(
                StreamAction.EMPLOYEE_HIRED,
                employee,
                0,
                now,
                wage_rate=str(account.wage_rate),
                wage_period=account.wage_period.value,
            )
            logger.info(
                "employee_hired",
                extra={
                    "wage_rate": str(account.wage_rate),
                    "wage_period": account.wage_period.value,
                },
            )
            return account

    def update_rate(self, employee: str, new_wage_rate: int) -> EmployeeAccount:
        with self._invocation("update_rate", employee):
            self._require_employer("update_rate")
            account = self._load(employee)
            now = self._clock.now()
            updated = lifecycle.update_rate(account, new_wage_rate, now)
            self._save(updated)
            self._record(
                StreamAction.WAGE_RATE_UPDATED,
                employee,
                0,
                now,
                old_wage_rate=str(account.wage_rate),
                new_wage_rate=str(updated.wage_rate),
                banked=str(updated.accrued_balance),
            )
            logger.info(
                "wage_rate_updated",
                extra={
                    "old_wage_rate": str(account.wage_rate),
                    "new_wage_rate": str(updated.wage_rate),
                },
            )
            return updated

    def set_salary(self, employee: str, new_wage_rate: int) -> EmployeeAccount:
        """Alias of ``update_rate``."""
        with self._invocation("set_salary", employee):
            return self.update_rate(employee, new_wage_rate)

    def freeze(self, employee: str) -> int:
        """Pay out everything owed and stop accrual.  Returns the amount paid."""
        with self._invocation("freeze", employee):
            self._require_employer("freeze")
            account = self._load(employee)
            now = self._clock.now()
            settlement = lifecycle.freeze(account, now)
            if settlement.paid > 0:
                self._token()
                self._require_pool(settlement.paid)
            self._save(settlement.account)
            if settlement.paid > 0:
                self._pay(employee, settlement.paid)
            self._record(StreamAction.EMPLOYEE_FROZEN, employee, settlement.paid, now)
            logger.info("employee_frozen", extra={"paid": str(settlement.paid)})
            return settlement.paid

    def activate(self, employee: str) -> EmployeeAccount:
        with self._invocation("activate", employee):
            self._require_employer("activate")
            account = self._load(employee)
            now = self._clock.now()
            activated = lifecycle.activate(account, now)
            if activated == account:
                return account
            self._save(activated)
            self._record(StreamAction.EMPLOYEE_ACTIVATED, employee, 0, now)
            logger.info(
                "employee_activated",
                extra={"checkpoint": activated.last_accrual_timestamp},
            )
            return activated

    def remove(self, employee: str) -> None:
        with self._invocation("remove", employee):
            self._require_employer("remove")
            account = self._load(employee)
            now = self._clock.now()
            lifecycle.ensure_removable(account, now)
            self._store.delete(employee_key(employee))
            self._registry.remove(employee)
            self._record(StreamAction.EMPLOYEE_REMOVED, employee, 0, now)
            logger.info("employee_removed")

    def fix_timestamp(self, employee: str) -> EmployeeAccount:
        """Repair a zero checkpoint left by a legacy record."""
        with self._invocation("fix_timestamp", employee):
            self._require_employer("fix_timestamp")
            account = self._load(employee)
            now = self._clock.now()
            repaired = lifecycle.fix_timestamp(account, now)
            if repaired != account:
                self._save(repaired)
                self._record(
                    StreamAction.TIMESTAMP_FIXED,
                    employee,
                    0,
                    now,
                    last_accrual_timestamp=repaired.last_accrual_timestamp,
                )
                logger.info("timestamp_fixed", extra={"checkpoint": now})
            return repaired

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_employees(self) -> list[str]:
        with self._invocation("list_employees"):
            return self._registry.list()

    def live_balance(self, employee: str) -> int:
        """Total owed at now: materialized balance plus live accrual."""
        with self._invocation("live_balance", employee):
            return total_owed(self._load(employee), self._clock.now())

    def employee_info(self, employee: str) -> EmployeeInfo:
        with self._invocation("employee_info", employee):
            account = self._load(employee)
            now = self._clock.now()
            live = live_accrual(account, now)
            return EmployeeInfo(
                employee_id=account.employee_id,
                wage_rate=account.wage_rate,
                wage_period=account.wage_period,
                last_accrual_timestamp=account.last_accrual_timestamp,
                accrued_balance=account.accrued_balance,
                active=account.active,
                status=account.status,
                live_accrual=live,
                total_owed=total_owed(account, now),
                as_of=now,
            )

    def balance_of_contract(self) -> int:
        with self._invocation("balance_of_contract"):
            return self._pool_balance()

    def history(self, employee: str | None = None) -> list[StreamEvent]:
        with self._invocation("history", employee):
            return self._journal.events(employee)

    def verify_history(self) -> int | None:
        """Seq of the first broken journal event, or None when intact."""
        with self._invocation("verify_history"):
            return self._journal.verify()

    # ------------------------------------------------------------------
    # Pool
    # ------------------------------------------------------------------

    def deposit(self, amount: int) -> None:
        """Move ``amount`` from the employer into the pool."""
        with self._invocation("deposit"):
            employer = self._require_employer("deposit")
            validate_amount(amount)
            self._token()
            now = self._clock.now()
            self._ledger.transfer(employer, self.pool_holder, amount)
            self._record(StreamAction.DEPOSITED, None, amount, now)
            logger.info("pool_deposited", extra={"amount": str(amount)})

    def withdraw_surplus(self, amount: int) -> None:
        """Return ``amount`` from the pool to the employer."""
        with self._invocation("withdraw_surplus"):
            employer = self._require_employer("withdraw_surplus")
            validate_amount(amount)
            self._token()
            self._require_pool(amount)
            now = self._clock.now()
            self._ledger.transfer(self.pool_holder, employer, amount)
            self._record(StreamAction.SURPLUS_WITHDRAWN, None, amount, now)
            logger.info("surplus_withdrawn", extra={"amount": str(amount)})

    # ------------------------------------------------------------------
    # Payouts
    # ------------------------------------------------------------------

    def _draw(self, employee: str, amount: int, action: StreamAction) -> EmployeeAccount:
        # Reject a bad amount before the employee lookup can fail
        validate_amount(amount)
        account = self._load(employee)
        now = self._clock.now()
        updated = apply_withdrawal(account, amount, now)
        self._token()
        self._require_pool(amount)
        self._save(updated)
        self._pay(employee, amount)
        self._record(
            action,
            employee,
            amount,
            now,
            last_accrual_timestamp=updated.last_accrual_timestamp,
        )
        logger.info(
            "withdrawal_applied",
            extra={
                "amount": str(amount),
                "action": action.value,
                "checkpoint": updated.last_accrual_timestamp,
            },
        )
        return updated

    def withdraw(self, employee: str, amount: int) -> EmployeeAccount:
        """Employee-initiated withdrawal of part of what has accrued."""
        with self._invocation("withdraw", employee):
            self._authorizer.require_auth(employee)
            return self._draw(employee, amount, StreamAction.WITHDRAWN)

    def pay_partial(self, employee: str, amount: int) -> EmployeeAccount:
        """Employer-initiated partial payment; same rules as ``withdraw``."""
        with self._invocation("pay_partial", employee):
            self._require_employer("pay_partial")
            return self._draw(employee, amount, StreamAction.PARTIAL_PAID)

    def sweep(self, employee: str) -> int:
        """Pay out everything owed to one employee.  Returns the amount paid."""
        with self._invocation("sweep", employee):
            self._require_employer("sweep")
            account = self._load(employee)
            now = self._clock.now()
            settlement = settle_all(account, now)
            if settlement.paid <= 0:
                raise NothingToWithdrawError((employee,))
            self._token()
            self._require_pool(settlement.paid)
            self._save(settlement.account)
            self._pay(employee, settlement.paid)
            self._record(StreamAction.SWEPT, employee, settlement.paid, now)
            logger.info("employee_swept", extra={"paid": str(settlement.paid)})
            return settlement.paid

    def sweep_many(self, employees: Iterable[str]) -> BatchSweepResult:
        """
        All-or-nothing sweep over ``employees``.

        Pass one settles every distinct known employee in memory and totals
        the payout; nothing is written unless the pool covers the total.
        Pass two persists each settlement and transfers its amount.
        """
        with self._invocation("sweep_many"):
            self._require_employer("sweep_many")
            now = self._clock.now()
            plan = plan_batch_sweep(employees, self._find, now)
            plan.require_payable()
            self._token()
            plan.require_coverage(self._pool_balance())

            for settlement in plan.settlements:
                employee_id = settlement.account.employee_id
                self._save(settlement.account)
                self._pay(employee_id, settlement.paid)
                self._record(StreamAction.SWEPT, employee_id, settlement.paid, now, batch=True)

            result = plan.result()
            logger.info(
                "batch_sweep_completed",
                extra={
                    "requested": len(plan.requested),
                    "paid_count": result.paid_count,
                    "total_amount": str(result.total_amount),
                    "skipped": list(plan.skipped),
                },
            )
            return result
