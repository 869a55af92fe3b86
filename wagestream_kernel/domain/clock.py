"""
Clock -- Ledger time as whole unix seconds.

Responsibility:
    The only source of ``now`` for accrual.  Domain functions take ``now``
    as an argument; services receive a Clock by injection and never read
    wall time themselves.

Architecture position:
    Kernel > Domain.  SystemClock is the one sanctioned read of wall time.

Invariants enforced:
    Every value returned by ``now()`` is a u64.  A clock may still move
    backwards (a rewound DeterministicClock, an NTP step); accrual treats
    a ``now`` before the checkpoint as zero elapsed time.

Failure modes:
    - ArithmeticOverflowError when a DeterministicClock is set or advanced
      outside the u64 range.
"""

import time
from abc import ABC, abstractmethod

from wagestream_kernel.domain.arithmetic import U64, u64

# 2024-01-01T12:00:00Z
DEFAULT_EPOCH_SECONDS = 1_704_110_400


class Clock(ABC):
    """Injected into every service that needs the current ledger time."""

    @abstractmethod
    def now(self) -> int:
        """Current time in whole unix seconds."""


class SystemClock(Clock):
    def now(self) -> int:
        return int(time.time())


class DeterministicClock(Clock):
    """
    Hand-driven clock for tests and for replaying CLI invocations with
    ``--now``.  It only moves when told to.
    """

    def __init__(self, start: int = DEFAULT_EPOCH_SECONDS):
        self._now = u64(start)

    def now(self) -> int:
        return self._now.value

    def advance(self, seconds: int) -> None:
        """Move forward by ``seconds`` (must be non-negative)."""
        if seconds < 0:
            raise ValueError("advance() only moves forward; use set_time() to rewind")
        self._now = self._now + seconds

    def set_time(self, timestamp: int) -> None:
        """Jump to ``timestamp``, forwards or backwards."""
        self._now = u64(timestamp)

    def __repr__(self) -> str:
        return f"DeterministicClock(now={self._now.value}, range={U64.name})"
