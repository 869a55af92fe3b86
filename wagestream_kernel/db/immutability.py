"""
ORM-Level Append-Only Enforcement.

===============================================================================
WHY THIS EXISTS
===============================================================================

The key/value store, the token transfer log and the stream event journal
are append-only: history is never rewritten, only extended.  A changed
value is a new version row; a deleted key is a tombstone row.

SQLAlchemy fires events before UPDATE/DELETE operations reach the database.
We register listeners that intercept these events for the append-only
models:

    session.flush()
         |
         v
    [before_update event] --> _block_update() --> ImmutabilityViolationError
         |
         v
    [before_delete event] --> _block_delete() --> ImmutabilityViolationError
         |
         v
    SQL sent to database (only if checks pass)

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity              | When Immutable      | Why
--------------------|---------------------|-----------------------------------
StoreEntry          | ALWAYS              | Store history is the record of truth
TokenTransfer       | ALWAYS              | Movements of funds are evidence
StreamEventRecord   | ALWAYS              | Hash chain breaks on any edit

TokenBalance is deliberately NOT protected; it is the running projection of
the transfer log.
"""

from sqlalchemy import event

from wagestream_kernel.exceptions import ImmutabilityViolationError
from wagestream_kernel.logging_config import get_logger

logger = get_logger("db.immutability")


def _append_only_models() -> tuple[type, ...]:
    from wagestream_kernel.models.store_entry import StoreEntry
    from wagestream_kernel.models.stream_event import StreamEventRecord
    from wagestream_kernel.models.token_balance import TokenTransfer

    return (StoreEntry, TokenTransfer, StreamEventRecord)


def _block(operation: str, target) -> None:
    entity_type = type(target).__name__
    entity_id = str(target.id)
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": entity_id,
            "operation": operation,
        },
    )
    raise ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=entity_id,
        reason=f"{entity_type} rows are append-only and cannot be {operation.lower()}d",
    )


def _block_update(mapper, connection, target):
    _block("UPDATE", target)


def _block_delete(mapper, connection, target):
    _block("DELETE", target)


def register_immutability_listeners() -> None:
    """Register append-only listeners (idempotent)."""
    for model in _append_only_models():
        if not event.contains(model, "before_update", _block_update):
            event.listen(model, "before_update", _block_update)
        if not event.contains(model, "before_delete", _block_delete):
            event.listen(model, "before_delete", _block_delete)


def unregister_immutability_listeners() -> None:
    """Remove append-only listeners. FOR TESTING ONLY."""
    for model in _append_only_models():
        if event.contains(model, "before_update", _block_update):
            event.remove(model, "before_update", _block_update)
        if event.contains(model, "before_delete", _block_delete):
            event.remove(model, "before_delete", _block_delete)
