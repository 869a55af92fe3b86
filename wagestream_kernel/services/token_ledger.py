"""
FundTransferService -- The token channel that moves funds.

Responsibility:
    Answers ``balance(holder)`` and executes ``transfer(source, destination,
    amount)`` for the single pool token.  The stream service never keeps its
    own ledger for the pool; it always asks this service.

Architecture position:
    Kernel > Services -- imperative shell.  ``FundTransferService`` is the
    port; ``InMemoryTokenLedger`` and ``SqlTokenLedger`` are the adapters.

Invariants enforced:
    - No holder's balance ever goes negative (InsufficientFundsError).
    - Every movement is logged; the SQL transfer log is append-only.
    - Balances stay inside the signed 128-bit range (checked arithmetic).

Failure modes:
    - InvalidAmountError for amount <= 0.
    - InsufficientFundsError when the source cannot cover the amount.
    - ArithmeticOverflowError when a destination balance would overflow.
"""

from __future__ import annotations

from contextlib import AbstractContextManager
from dataclasses import dataclass
from typing import Any, Protocol

from sqlalchemy import select

from wagestream_kernel.domain.arithmetic import checked_add, checked_sub
from wagestream_kernel.domain.settlement import validate_amount
from wagestream_kernel.exceptions import InsufficientFundsError
from wagestream_kernel.logging_config import get_logger
from wagestream_kernel.models.token_balance import TokenBalance, TokenTransfer
from wagestream_kernel.services.base import SessionBoundService
from wagestream_kernel.services.unit_of_work import snapshot_transaction

logger = get_logger("services.token_ledger")


class FundTransferService(Protocol):
    """Port for the payment channel."""

    def balance(self, holder: str) -> int: ...

    def transfer(self, source: str, destination: str, amount: int) -> None: ...

    def transaction(self) -> AbstractContextManager[Any]: ...


@dataclass(frozen=True)
class TransferRecord:
    source: str | None
    destination: str
    amount: int


class InMemoryTokenLedger:
    """Process-local token ledger with snapshot/restore for rollback."""

    def __init__(self) -> None:
        self._balances: dict[str, int] = {}
        self._transfers: list[TransferRecord] = []

    def balance(self, holder: str) -> int:
        return self._balances.get(holder, 0)

    def mint(self, holder: str, amount: int) -> None:
        validate_amount(amount)
        self._balances[holder] = checked_add(self.balance(holder), amount)
        self._transfers.append(TransferRecord(None, holder, amount))
        logger.debug("tokens_minted", extra={"holder": holder, "amount": str(amount)})

    def transfer(self, source: str, destination: str, amount: int) -> None:
        validate_amount(amount)
        available = self.balance(source)
        if available < amount:
            raise InsufficientFundsError(source, amount, available)
        if source == destination:
            self._transfers.append(TransferRecord(source, destination, amount))
            return
        new_destination = checked_add(self.balance(destination), amount)
        self._balances[source] = checked_sub(available, amount)
        self._balances[destination] = new_destination
        self._transfers.append(TransferRecord(source, destination, amount))
        logger.debug(
            "tokens_transferred",
            extra={"source": source, "destination": destination, "amount": str(amount)},
        )

    @property
    def transfers(self) -> tuple[TransferRecord, ...]:
        return tuple(self._transfers)

    def snapshot(self) -> tuple[dict[str, int], int]:
        return dict(self._balances), len(self._transfers)

    def restore(self, state: tuple[dict[str, int], int]) -> None:
        balances, transfer_count = state
        self._balances = dict(balances)
        del self._transfers[transfer_count:]

    def transaction(self) -> AbstractContextManager[Any]:
        return snapshot_transaction(self)


class SqlTokenLedger(SessionBoundService):
    """
    Token ledger on ``token_balances`` / ``token_transfers``.

    Contract:
        Flushes within the caller's session; only ``transaction()`` commits.
    """

    def _row(self, holder: str) -> TokenBalance | None:
        stmt = select(TokenBalance).where(TokenBalance.holder == holder)
        return self.session.execute(stmt).scalar_one_or_none()

    def _row_for_update(self, holder: str) -> TokenBalance:
        row = self._row(holder)
        if row is None:
            row = TokenBalance(holder=holder, balance="0")
            self.session.add(row)
        return row

    def balance(self, holder: str) -> int:
        row = self._row(holder)
        return int(row.balance) if row is not None else 0

    def mint(self, holder: str, amount: int) -> None:
        validate_amount(amount)
        row = self._row_for_update(holder)
        row.balance = str(checked_add(int(row.balance or "0"), amount))
        self.session.add(TokenTransfer(source=None, destination=holder, amount=str(amount)))
        self.session.flush()
        logger.debug("tokens_minted", extra={"holder": holder, "amount": str(amount)})

    def transfer(self, source: str, destination: str, amount: int) -> None:
        validate_amount(amount)
        available = self.balance(source)
        if available < amount:
            raise InsufficientFundsError(source, amount, available)
        if source != destination:
            destination_row = self._row_for_update(destination)
            new_destination = checked_add(int(destination_row.balance or "0"), amount)
            source_row = self._row_for_update(source)
            source_row.balance = str(checked_sub(available, amount))
            destination_row.balance = str(new_destination)
        self.session.add(
            TokenTransfer(source=source, destination=destination, amount=str(amount))
        )
        self.session.flush()
        logger.debug(
            "tokens_transferred",
            extra={"source": source, "destination": destination, "amount": str(amount)},
        )

    @property
    def transfers(self) -> tuple[TransferRecord, ...]:
        stmt = select(TokenTransfer).order_by(TokenTransfer.id)
        return tuple(
            TransferRecord(t.source, t.destination, int(t.amount))
            for t in self.session.execute(stmt).scalars()
        )
