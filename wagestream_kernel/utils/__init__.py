"""Utility modules for the wage stream kernel."""

from wagestream_kernel.utils.hashing import (
    canonicalize_json,
    hash_payload,
    hash_stream_event,
)

__all__ = [
    "canonicalize_json",
    "hash_payload",
    "hash_stream_event",
]
