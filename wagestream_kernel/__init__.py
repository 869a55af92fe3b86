"""
WageStream Kernel

A continuous wage streaming engine with:
- Exact integer accrual with explicit overflow checks
- Proportional checkpoint advance on partial withdrawals
- Atomic, check-then-commit settlement (single and batch)
- Append-only persistence and a hash-chained event journal
"""

__version__ = "0.1.0"
