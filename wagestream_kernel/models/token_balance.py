"""
Module: wagestream_kernel.models.token_balance
Responsibility: ORM persistence for the token ledger used as the fund
    transfer service: current balance per holder plus an append-only log of
    every mint and transfer.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Balances are stored as decimal text (AmountText) so the full signed
      128-bit range survives any backend.
    - TokenTransfer rows are append-only (db/immutability.py).

Failure modes:
    - IntegrityError on a duplicate holder row.
    - ImmutabilityViolationError on UPDATE/DELETE of a TokenTransfer.
"""

from sqlalchemy import Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from wagestream_kernel.db.base import AmountText, RecordedBase


class TokenBalance(RecordedBase):
    """Current balance of one holder."""

    __tablename__ = "token_balances"

    __table_args__ = (
        UniqueConstraint("holder", name="uq_token_balance_holder"),
    )

    holder: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )

    balance: Mapped[str] = mapped_column(
        AmountText,
        nullable=False,
        default="0",
    )

    def __repr__(self) -> str:
        return f"<TokenBalance {self.holder}: {self.balance}>"


class TokenTransfer(RecordedBase):
    """
    One movement of funds.

    A mint has ``source`` None.
    """

    __tablename__ = "token_transfers"

    __table_args__ = (
        Index("idx_token_transfer_source", "source"),
        Index("idx_token_transfer_destination", "destination"),
    )

    source: Mapped[str | None] = mapped_column(
        String(200),
        nullable=True,
    )

    destination: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )

    amount: Mapped[str] = mapped_column(
        AmountText,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<TokenTransfer {self.source} -> {self.destination}: {self.amount}>"
