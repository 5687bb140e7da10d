"""
Configuration Loader (``carbon_config.loader``).

Responsibility
--------------
Loads a YAML configuration set and parses it into a frozen
``MarketplaceConfig``.  Runtime callers go through
``carbon_config.get_active_config()`` instead of calling this directly.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown keys or invalid values  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from carbon_config.schema import MarketplaceConfig

_KNOWN_KEYS = frozenset(
    {"database_url", "echo_sql", "log_level", "government_identity", "max_attempts"}
)


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
        raise ValueError(f"{path}: expected a mapping at the top level")
    return data


def parse_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.lower() in ("true", "false", "1", "0", "yes", "no"):
        return value.lower() in ("true", "1", "yes")
    raise ValueError(f"{name} must be a boolean, got {value!r}")


def parse_config(
    name: str,
    data: dict[str, Any],
    overrides: dict[str, Any] | None = None,
) -> MarketplaceConfig:
    """
    Parse a ``MarketplaceConfig`` from a dict.

    ``overrides`` (e.g. from the environment) replace keys from ``data``
    before validation.  The checksum covers the merged values.

    Raises:
        KeyError: if ``database_url`` is missing.
        ValueError: for unknown keys or invalid values.
    """
    merged = dict(data)
    if overrides:
        merged.update(overrides)

    unknown = sorted(set(merged) - _KNOWN_KEYS)
    if unknown:
        raise ValueError(f"Config '{name}': unknown keys {unknown}")

    government_identity = merged.get("government_identity")
    if government_identity is not None:
        government_identity = str(government_identity)

    return MarketplaceConfig(
        name=name,
        database_url=merged["database_url"],
        echo_sql=parse_bool("echo_sql", merged.get("echo_sql", False)),
        log_level=str(merged.get("log_level", "INFO")).upper(),
        government_identity=government_identity,
        max_attempts=merged.get("max_attempts", 3),
        checksum=compute_checksum(merged),
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
