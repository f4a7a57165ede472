"""
Configuration loading: packaged defaults, YAML overrides, environment
variables, validation, checksum, and the bridges into the ledger.
"""

import json
import logging
from io import StringIO

import pytest
import yaml

from inventory_config import get_active_config
from inventory_config.bridges import build_ledger_limits, initialize_ledger
from inventory_config.loader import (
    compute_checksum,
    env_overrides,
    load_yaml_file,
    merge_sections,
)
from inventory_ledger.db.engine import create_tables, get_engine, reset_engine
from inventory_ledger.domain.limits import DEFAULT_LIMITS
from inventory_ledger.logging_config import StructuredFormatter
from inventory_ledger.services.ledger_service import TransactionLedgerService


def _write_yaml(tmp_path, data, name="override.yaml"):
    path = tmp_path / name
    path.write_text(yaml.safe_dump(data))
    return path


class TestDefaults:

    def test_defaults_match_ledger_limits(self):
        config = get_active_config(environ={})
        assert build_ledger_limits(config) == DEFAULT_LIMITS

    def test_default_database_is_sqlite(self):
        config = get_active_config(environ={})
        assert config.database.url.startswith("sqlite:///")
        assert config.database.echo is False
        assert config.source is None

    def test_default_log_level(self):
        config = get_active_config(environ={})
        assert config.logging.level == "INFO"
        assert config.logging.level_number == logging.INFO


class TestOverrides:

    def test_yaml_file_overrides_defaults(self, tmp_path):
        path = _write_yaml(tmp_path, {"ledger": {"default_page_size": 50}})
        config = get_active_config(path=path, environ={})
        assert config.ledger.default_page_size == 50
        assert config.ledger.max_page_size == 100
        assert config.source == str(path)

    def test_config_path_from_environment(self, tmp_path):
        path = _write_yaml(tmp_path, {"logging": {"level": "DEBUG"}})
        config = get_active_config(environ={"INVENTORY_LEDGER_CONFIG": str(path)})
        assert config.logging.level == "DEBUG"

    def test_environment_beats_file(self, tmp_path):
        path = _write_yaml(tmp_path, {"ledger": {"lock_timeout_ms": 1000}})
        config = get_active_config(
            path=path,
            environ={"INVENTORY_LEDGER_LEDGER_LOCK_TIMEOUT_MS": "250"},
        )
        assert config.ledger.lock_timeout_ms == 250

    def test_env_values_coerced_by_field_type(self):
        overrides = env_overrides({
            "INVENTORY_LEDGER_DATABASE_ECHO": "yes",
            "INVENTORY_LEDGER_DATABASE_POOL_SIZE": " 7 ",
            "INVENTORY_LEDGER_DATABASE_URL": "postgresql://u:p@h/db",
            "UNRELATED": "ignored",
        })
        assert overrides == {
            "database": {"echo": True, "pool_size": 7, "url": "postgresql://u:p@h/db"}
        }

    def test_empty_section_in_file_is_ignored(self, tmp_path):
        path = _write_yaml(tmp_path, {"ledger": None})
        config = get_active_config(path=path, environ={})
        assert config.ledger.lock_timeout_ms == 5000


class TestRejection:

    def test_unknown_section(self):
        with pytest.raises(ValueError, match="Unknown configuration section"):
            merge_sections({}, {"cache": {"size": 1}})

    def test_unknown_key(self, tmp_path):
        path = _write_yaml(tmp_path, {"ledger": {"page_size": 10}})
        with pytest.raises(ValueError, match="ledger.page_size"):
            get_active_config(path=path, environ={})

    def test_unknown_env_variable(self):
        with pytest.raises(ValueError, match="INVENTORY_LEDGER_CACHE_SIZE"):
            env_overrides({"INVENTORY_LEDGER_CACHE_SIZE": "1"})

    def test_bad_integer_env(self):
        with pytest.raises(ValueError, match="must be an integer"):
            env_overrides({"INVENTORY_LEDGER_LEDGER_MAX_PAGE_SIZE": "lots"})

    def test_bad_boolean_env(self):
        with pytest.raises(ValueError, match="must be a boolean"):
            env_overrides({"INVENTORY_LEDGER_DATABASE_ECHO": "maybe"})

    @pytest.mark.parametrize(
        "section,values,fragment",
        [
            ("ledger", {"lock_timeout_ms": 0}, "ledger.lock_timeout_ms"),
            ("ledger", {"default_page_size": 200}, "exceeds"),
            ("ledger", {"max_quantity": 2**31}, "ledger.max_quantity"),
            ("database", {"url": "  "}, "database.url"),
            ("database", {"max_overflow": -1}, "database.max_overflow"),
            ("logging", {"level": "LOUD"}, "logging.level"),
        ],
    )
    def test_invalid_values(self, tmp_path, section, values, fragment):
        path = _write_yaml(tmp_path, {section: values})
        with pytest.raises(ValueError, match=fragment):
            get_active_config(path=path, environ={})

    def test_top_level_must_be_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ValueError, match="top level must be a mapping"):
            load_yaml_file(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_active_config(path=tmp_path / "absent.yaml", environ={})


class TestChecksum:

    def test_checksum_is_deterministic(self):
        assert compute_checksum({"b": 1, "a": 2}) == compute_checksum({"a": 2, "b": 1})

    def test_checksum_tracks_content(self, tmp_path):
        base = get_active_config(environ={})
        again = get_active_config(environ={})
        changed = get_active_config(
            environ={"INVENTORY_LEDGER_LEDGER_MAX_PAGE_SIZE": "150"}
        )
        assert base.checksum == again.checksum
        assert base.checksum != changed.checksum
        assert len(base.checksum) == 64

    def test_config_trace_logged(self):
        stream = StringIO()
        handler = logging.StreamHandler(stream)
        handler.setFormatter(StructuredFormatter())
        trace_logger = logging.getLogger("inventory_ledger.config")
        previous_level = trace_logger.level
        trace_logger.setLevel(logging.INFO)
        trace_logger.addHandler(handler)
        try:
            config = get_active_config(environ={})
        finally:
            trace_logger.removeHandler(handler)
            trace_logger.setLevel(previous_level)

        records = [json.loads(line) for line in stream.getvalue().splitlines() if line]
        trace = [r for r in records if r["message"] == "INVENTORY_CONFIG_TRACE"]
        assert len(trace) == 1
        assert trace[0]["checksum"] == config.checksum
        assert trace[0]["dialect"] == "sqlite"
        assert trace[0]["lock_timeout_ms"] == 5000


class TestBridges:

    def test_initialize_ledger_returns_configured_service(self, tmp_path):
        url = f"sqlite:///{tmp_path / 'bridge.db'}"
        config = get_active_config(
            environ={
                "INVENTORY_LEDGER_DATABASE_URL": url,
                "INVENTORY_LEDGER_LEDGER_DEFAULT_PAGE_SIZE": "5",
            }
        )
        try:
            service = initialize_ledger(config)
            create_tables()
            assert isinstance(service, TransactionLedgerService)
            assert service.limits.default_page_size == 5
            assert get_engine().dialect.name == "sqlite"
            assert service.list_movements().total_count == 0
        finally:
            reset_engine()
