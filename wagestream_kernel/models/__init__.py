"""ORM models for the wage stream kernel."""

from wagestream_kernel.models.store_entry import StoreEntry
from wagestream_kernel.models.stream_event import StreamEventRecord
from wagestream_kernel.models.token_balance import TokenBalance, TokenTransfer

__all__ = [
    "StoreEntry",
    "StreamEventRecord",
    "TokenBalance",
    "TokenTransfer",
]
