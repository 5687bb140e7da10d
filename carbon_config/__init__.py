"""
carbon_config -- single public entrypoint for marketplace configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads configuration files
    or environment variables directly.

Architecture position:
    Configuration -- sits beside ``carbon_kernel``.  The kernel never imports
    from ``carbon_config``; callers pass the resulting ``MarketplaceConfig``
    values (database URL, government identity, retry limit) into the kernel.

Invariants enforced:
    - Single entrypoint: all runtime config flows through ``get_active_config()``.
    - ``CARBON_MARKET_DATABASE_URL`` overrides ``database_url`` when set.

Failure modes:
    - ``FileNotFoundError`` -- no configuration set with the requested name.
    - ``ValueError`` -- unknown keys or invalid values.

Audit relevance:
    Every successful ``get_active_config()`` call emits a ``config_loaded``
    log entry with the set name, checksum and whether the database URL was
    overridden from the environment.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from carbon_config.loader import load_yaml_file, parse_config
from carbon_config.schema import MarketplaceConfig

_logger = logging.getLogger("carbon_kernel.config")

_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"

DATABASE_URL_ENV = "CARBON_MARKET_DATABASE_URL"


def get_active_config(
    name: str = "default",
    config_dir: Path | None = None,
) -> MarketplaceConfig:
    """The ONLY public configuration entrypoint.

    Args:
        name: Configuration set name; resolves to ``<config_dir>/<name>.yaml``.
        config_dir: Override path to the configuration sets directory.
            Defaults to carbon_config/sets/.

    Raises:
        FileNotFoundError: If no configuration set named ``name`` exists.
        ValueError: If the configuration fails validation.
    """
    sets_dir = Path(config_dir) if config_dir is not None else _DEFAULT_CONFIG_DIR
    path = sets_dir / f"{name}.yaml"
    if not path.is_file():
        raise FileNotFoundError(f"Configuration set '{name}' not found in {sets_dir}")

    data = load_yaml_file(path)

    overrides = {}
    env_url = os.environ.get(DATABASE_URL_ENV)
    if env_url:
        overrides["database_url"] = env_url

    config = parse_config(name, data, overrides)

    _logger.info(
        "config_loaded",
        extra={
            "config_name": config.name,
            "checksum": config.checksum,
            "database_url_from_env": bool(overrides),
            "government_identity_set": config.government_identity is not None,
            "max_attempts": config.max_attempts,
        },
    )
    return config


__all__ = [
    "DATABASE_URL_ENV",
    "MarketplaceConfig",
    "get_active_config",
]
