"""
Configuration Loader (``inventory_config.loader``).

Responsibility
--------------
Reads the packaged defaults, an optional YAML override file and
``INVENTORY_LEDGER_<SECTION>_<KEY>`` environment variables, merges them in
that order and parses the result into ``inventory_config.schema``
dataclasses.  The public entry point is
``inventory_config.get_active_config()``.

Invariants enforced
-------------------
* Unknown sections or keys raise ``ValueError``; nothing is silently ignored.
* Environment values are coerced using the schema field's type.
* ``compute_checksum`` produces a deterministic SHA-256 hash of the
  effective configuration.

Failure modes
-------------
* Missing override file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown key, bad type or value  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import fields
from pathlib import Path
from typing import Any, Mapping

import yaml

from inventory_config.schema import SECTIONS, InventoryLedgerConfig

DEFAULTS_PATH = Path(__file__).parent / "defaults.yaml"
ENV_PREFIX = "INVENTORY_LEDGER_"
CONFIG_PATH_ENV = "INVENTORY_LEDGER_CONFIG"

_TRUE = frozenset({"1", "true", "yes", "on"})
_FALSE = frozenset({"0", "false", "no", "off"})


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the top level is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping, got {type(data).__name__}")
    return data


def merge_sections(base: dict[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Shallow-merge per section.  Unknown sections/keys raise ValueError."""
    merged = {section: dict(values) for section, values in base.items()}
    for section, values in override.items():
        if values is None:
            continue
        if section not in SECTIONS:
            raise ValueError(f"Unknown configuration section: {section!r}")
        if not isinstance(values, Mapping):
            raise ValueError(f"Section {section!r} must be a mapping")
        known = {f.name for f in fields(SECTIONS[section])}
        for key, value in values.items():
            if key not in known:
                raise ValueError(f"Unknown configuration key: {section}.{key}")
            merged.setdefault(section, {})[key] = value
    return merged


def _coerce(section: str, key: str, raw: str) -> Any:
    field_types = {f.name: f.type for f in fields(SECTIONS[section])}
    if key not in field_types:
        raise ValueError(f"Unknown configuration key: {section}.{key}")
    kind = field_types[key]
    if kind == "bool":
        lowered = raw.strip().lower()
        if lowered in _TRUE:
            return True
        if lowered in _FALSE:
            return False
        raise ValueError(f"{section}.{key} must be a boolean, got {raw!r}")
    if kind == "int":
        try:
            return int(raw.strip())
        except ValueError:
            raise ValueError(f"{section}.{key} must be an integer, got {raw!r}") from None
    return raw


def env_overrides(environ: Mapping[str, str]) -> dict[str, dict[str, Any]]:
    """
    Collect ``INVENTORY_LEDGER_<SECTION>_<KEY>`` variables.

    ``INVENTORY_LEDGER_CONFIG`` names the override file and is not a setting.
    """
    overrides: dict[str, dict[str, Any]] = {}
    for name, raw in environ.items():
        if not name.startswith(ENV_PREFIX) or name == CONFIG_PATH_ENV:
            continue
        rest = name[len(ENV_PREFIX):].lower()
        section, _, key = rest.partition("_")
        if section not in SECTIONS or not key:
            raise ValueError(f"Unknown configuration variable: {name}")
        overrides.setdefault(section, {})[key] = _coerce(section, key, raw)
    return overrides


def parse_config(data: Mapping[str, Any], source: str | None = None) -> InventoryLedgerConfig:
    """Build and validate the frozen config from merged section dicts."""
    sections = {
        name: cls(**data.get(name, {})) for name, cls in SECTIONS.items()
    }
    provisional = InventoryLedgerConfig(**sections)
    provisional.validate()
    return InventoryLedgerConfig(
        **sections,
        checksum=compute_checksum(provisional.to_dict()),
        source=source,
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
