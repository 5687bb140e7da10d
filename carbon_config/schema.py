"""
MarketplaceConfig schema.

The runtime settings of a marketplace node.  YAML configuration sets are
parsed into this type by the loader; nothing else in the system reads
configuration files.
"""

from __future__ import annotations

from dataclasses import dataclass

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class MarketplaceConfig:
    """Validated, immutable node configuration."""

    name: str
    database_url: str
    echo_sql: bool = False
    log_level: str = "INFO"
    government_identity: str | None = None
    max_attempts: int = 3
    checksum: str = ""

    def __post_init__(self) -> None:
        if not self.database_url:
            raise ValueError(f"Config '{self.name}': database_url must not be empty")
        if self.log_level not in LOG_LEVELS:
            raise ValueError(
                f"Config '{self.name}': log_level must be one of {LOG_LEVELS}, "
                f"got {self.log_level!r}"
            )
        if isinstance(self.max_attempts, bool) or not isinstance(self.max_attempts, int):
            raise ValueError(
                f"Config '{self.name}': max_attempts must be an integer, "
                f"got {self.max_attempts!r}"
            )
        if self.max_attempts < 1:
            raise ValueError(
                f"Config '{self.name}': max_attempts must be at least 1, "
                f"got {self.max_attempts}"
            )
        if self.government_identity is not None and not self.government_identity:
            raise ValueError(
                f"Config '{self.name}': government_identity must be omitted or non-empty"
            )
