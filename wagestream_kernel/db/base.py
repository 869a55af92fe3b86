"""
Module: wagestream_kernel.db.base
Responsibility: Declarative base class for all SQLAlchemy ORM models.  Provides
    the surrogate integer primary key convention and the type annotation map
    for consistent column types.
Architecture position: Kernel > DB.  This is the lowest-level import target
    within the kernel.  ALL model files import from here.  This module MUST NOT
    import from models/, services/, domain/, or outer layers.

Invariants enforced:
    - Amounts are NEVER stored in native integer columns.  A signed 128-bit
      value does not fit BIGINT, so amounts live in String columns holding
      decimal text (see AmountText) and are converted with int().
    - Timestamps that are part of the accrual model are plain unsigned
      seconds; datetime columns are audit metadata only.

Failure modes:
    - IntegrityError on unique constraint violations declared by models.
"""

from datetime import datetime
from typing import ClassVar

from sqlalchemy import BigInteger, DateTime, Integer, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# SQLite only autoincrements INTEGER PRIMARY KEY columns.
PrimaryKeyType = BigInteger().with_variant(Integer(), "sqlite")

# Decimal text of a signed 128-bit integer: 39 digits plus sign.
AmountText = String(40)


class Base(DeclarativeBase):
    """
    Declarative base for all SQLAlchemy models.

    Guarantees:
        - id is an autoincrementing surrogate key.
        - datetime maps to DateTime(timezone=True) -- always timezone-aware.
        - int maps to BigInteger -- safe for u64-range sequences and seconds
          up to 2**63 - 1.
    """

    type_annotation_map: ClassVar[dict] = {
        datetime: DateTime(timezone=True),
        int: BigInteger,
    }

    id: Mapped[int] = mapped_column(
        PrimaryKeyType,
        primary_key=True,
        autoincrement=True,
    )


class RecordedBase(Base):
    """
    Abstract base with an insertion timestamp.

    Guarantees:
        - recorded_at is set to server NOW() on INSERT and never changes.
    """

    __abstract__ = True

    recorded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
