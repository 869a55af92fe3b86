"""
Imperative shell of the wage stream kernel.

The stream service and the collaborators it is wired to: record store,
token ledger, authorizer, event journal and invocation scope.
"""

from wagestream_kernel.services.authorization import (
    AllowAllAuthorizer,
    Authorizer,
    InvocationAuthorizer,
)
from wagestream_kernel.services.event_journal import (
    EventJournal,
    InMemoryEventJournal,
    SqlEventJournal,
)
from wagestream_kernel.services.store import InMemoryStore, KeyValueStore, SqlKeyValueStore
from wagestream_kernel.services.stream_service import EmployeeInfo, WageStreamService
from wagestream_kernel.services.token_ledger import (
    FundTransferService,
    InMemoryTokenLedger,
    SqlTokenLedger,
)
from wagestream_kernel.services.unit_of_work import InvocationScope
from wagestream_kernel.services.wiring import StreamStack, in_memory_stream, sql_stream

__all__ = [
    "AllowAllAuthorizer",
    "Authorizer",
    "EmployeeInfo",
    "EventJournal",
    "FundTransferService",
    "InMemoryEventJournal",
    "InMemoryStore",
    "InMemoryTokenLedger",
    "InvocationAuthorizer",
    "InvocationScope",
    "KeyValueStore",
    "SqlEventJournal",
    "SqlKeyValueStore",
    "SqlTokenLedger",
    "StreamStack",
    "WageStreamService",
    "in_memory_stream",
    "sql_stream",
]
