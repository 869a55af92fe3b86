"""
StreamConfig schema.

The runtime configuration of a wage stream deployment.  YAML files are
parsed into this type by the loader; nothing else reads configuration.
"""

from __future__ import annotations

from dataclasses import dataclass

VALID_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


@dataclass(frozen=True)
class StreamConfig:
    """Validated, frozen configuration."""

    config_id: str
    version: int
    database_url: str
    log_level: str = "INFO"
    sql_echo: bool = False
    pool_holder: str = "contract"
    checksum: str = ""

    def __post_init__(self) -> None:
        if not self.config_id:
            raise ValueError("config_id must be a non-empty string")
        if isinstance(self.version, bool) or not isinstance(self.version, int) or self.version < 1:
            raise ValueError(f"version must be a positive integer, got {self.version!r}")
        if not self.database_url:
            raise ValueError("database.url must be a non-empty string")
        if self.log_level not in VALID_LOG_LEVELS:
            raise ValueError(
                f"logging.level must be one of {sorted(VALID_LOG_LEVELS)}, "
                f"got {self.log_level!r}"
            )
        if not isinstance(self.sql_echo, bool):
            raise ValueError(f"database.echo must be a boolean, got {self.sql_echo!r}")
        if not self.pool_holder:
            raise ValueError("stream.pool_holder must be a non-empty string")
