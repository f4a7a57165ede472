"""
inventory_config -- single public entrypoint for ledger configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads configuration files
    or environment variables.  The kernel (``inventory_ledger``) MUST NEVER
    import from this package; ``inventory_config.bridges`` translates the
    config into kernel inputs.

Resolution order:
    1. ``defaults.yaml`` shipped with the package
    2. the YAML file at ``path`` or ``$INVENTORY_LEDGER_CONFIG``
    3. ``INVENTORY_LEDGER_<SECTION>_<KEY>`` environment variables

Failure modes:
    - ``FileNotFoundError`` -- the override file does not exist.
    - ``ValueError`` -- unknown section/key or an invalid value.

Audit relevance:
    Every successful ``get_active_config()`` call emits an
    ``INVENTORY_CONFIG_TRACE`` log entry with the checksum of the effective
    configuration.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Mapping

from inventory_config.loader import (
    CONFIG_PATH_ENV,
    DEFAULTS_PATH,
    env_overrides,
    load_yaml_file,
    merge_sections,
    parse_config,
)
from inventory_config.schema import (
    DatabaseConfig,
    InventoryLedgerConfig,
    LedgerConfig,
    LoggingConfig,
)

_logger = logging.getLogger("inventory_ledger.config")

__all__ = [
    "DatabaseConfig",
    "InventoryLedgerConfig",
    "LedgerConfig",
    "LoggingConfig",
    "get_active_config",
]


def get_active_config(
    path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> InventoryLedgerConfig:
    """The ONLY public configuration entrypoint.

    Args:
        path: YAML override file.  Defaults to ``$INVENTORY_LEDGER_CONFIG``
            when set, otherwise no file.
        environ: Environment mapping (defaults to ``os.environ``).

    Returns:
        A validated, frozen InventoryLedgerConfig.

    Raises:
        FileNotFoundError: If the override file does not exist.
        ValueError: If any section, key or value is invalid.
    """
    env = os.environ if environ is None else environ

    data = load_yaml_file(DEFAULTS_PATH)
    source = None
    override_path = path or env.get(CONFIG_PATH_ENV)
    if override_path:
        source = str(override_path)
        data = merge_sections(data, load_yaml_file(Path(override_path)))
    data = merge_sections(data, env_overrides(env))

    config = parse_config(data, source=source)

    _logger.info(
        "INVENTORY_CONFIG_TRACE",
        extra={
            "trace_type": "INVENTORY_CONFIG_TRACE",
            "checksum": config.checksum,
            "source": source,
            "dialect": config.database.url.split(":", 1)[0],
            "lock_timeout_ms": config.ledger.lock_timeout_ms,
            "log_level": config.logging.level,
        },
    )
    return config
