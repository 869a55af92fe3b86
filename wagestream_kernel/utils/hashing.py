"""
Canonical hashing for stored records and journal links.

Records are hashed over a canonical JSON rendering: sorted keys, compact
separators, UTF-8.  Floats are refused outright; every amount in the
kernel is an integer (or its decimal string), and a float in a hashed
record means precision has already been lost somewhere upstream.
"""

import hashlib
import json
from collections.abc import Mapping
from typing import Any

GENESIS = "GENESIS"


def _normalize(value: Any, path: str = "$") -> Any:
    if isinstance(value, float):
        raise TypeError(f"{path}: floats cannot be hashed, use an integer amount")
    if isinstance(value, Mapping):
        return {str(k): _normalize(v, f"{path}.{k}") for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_normalize(v, f"{path}[{i}]") for i, v in enumerate(value)]
    if isinstance(value, (set, frozenset)):
        return sorted(_normalize(v, path) for v in value)
    if value is None or isinstance(value, (str, int)):
        return value
    raise TypeError(f"{path}: {type(value).__name__} is not hashable as JSON")


def canonicalize_json(data: Any) -> str:
    return json.dumps(_normalize(data), sort_keys=True, separators=(",", ":"))


def _sha256(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def hash_payload(payload: Any) -> str:
    """Hex SHA-256 of the canonical JSON form of ``payload``."""
    return _sha256(canonicalize_json(payload))


def hash_stream_event(
    seq: int,
    action: str,
    employee_id: str | None,
    payload_hash: str,
    prev_hash: str | None,
) -> str:
    """
    Hash one journal link.

    The link commits to its position, its action, the employee it concerns,
    its payload hash and the previous link's hash, so editing, dropping or
    reordering any event changes every hash after it.
    """
    return hash_payload(
        {
            "seq": seq,
            "action": action,
            "employee_id": employee_id,
            "payload_hash": payload_hash,
            "prev_hash": prev_hash or GENESIS,
        }
    )
