"""
Configuration Loader (``wagestream_config.loader``).

Responsibility
--------------
Loads a YAML configuration file and parses it into a frozen
``StreamConfig``.  Callers go through ``wagestream_config.get_active_config()``.

Invariants enforced
-------------------
* No silent defaults for required fields: ``config_id``, ``version`` and
  ``database.url`` must be present.
* ``compute_checksum`` produces a deterministic SHA-256 hash of the parsed
  document for change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing or invalid values  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from wagestream_config.schema import StreamConfig


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the document is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top-level YAML document must be a mapping")
    return data


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ValueError(f"'{name}' must be a mapping")
    return section


def _required(data: dict[str, Any], key: str, where: str) -> Any:
    if key not in data or data[key] is None:
        raise ValueError(f"missing required key '{where}'")
    return data[key]


def parse_config(data: dict[str, Any]) -> StreamConfig:
    """Parse a loaded document into a StreamConfig."""
    database = _section(data, "database")
    logging_section = _section(data, "logging")
    stream = _section(data, "stream")

    return StreamConfig(
        config_id=str(_required(data, "config_id", "config_id")),
        version=_required(data, "version", "version"),
        database_url=str(_required(database, "url", "database.url")),
        log_level=str(logging_section.get("level", "INFO")).upper(),
        sql_echo=database.get("echo", False),
        pool_holder=str(stream.get("pool_holder", "contract")),
        checksum=compute_checksum(data),
    )


def load_config(path: Path | str) -> StreamConfig:
    """Load and validate the configuration file at ``path``."""
    return parse_config(load_yaml_file(Path(path)))


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
