"""
wagestream_config -- single public entrypoint for runtime configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads configuration files.

Architecture position:
    Configuration -- sits above ``wagestream_kernel`` and beside
    ``wagestream_cli``.  The kernel MUST NEVER import from
    ``wagestream_config``; callers pass the values it needs explicitly.

Failure modes:
    - ``FileNotFoundError`` -- the requested configuration file is missing.
    - ``ValueError`` -- schema validation failures.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``WAGESTREAM_CONFIG_TRACE`` log entry with the config id, version and
    checksum.
"""

from __future__ import annotations

import logging
from pathlib import Path

from wagestream_config.loader import compute_checksum, load_config
from wagestream_config.schema import StreamConfig

_logger = logging.getLogger("wagestream.config")

_DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"


def get_active_config(config_path: Path | str | None = None) -> StreamConfig:
    """The ONLY public configuration entrypoint.

    Args:
        config_path: Override path to a YAML configuration file.
            Defaults to wagestream_config/sets/default.yaml.

    Raises:
        FileNotFoundError: If the configuration file does not exist.
        ValueError: If configuration validation fails.
    """
    path = Path(config_path) if config_path is not None else _DEFAULT_CONFIG_PATH
    config = load_config(path)

    _logger.info(
        "WAGESTREAM_CONFIG_TRACE",
        extra={
            "trace_type": "WAGESTREAM_CONFIG_TRACE",
            "config_id": config.config_id,
            "config_version": config.version,
            "checksum": config.checksum,
            "source": str(path),
        },
    )
    return config


__all__ = [
    "StreamConfig",
    "compute_checksum",
    "get_active_config",
    "load_config",
]
