"""
Tests for configuration loading.
"""

import json

import pytest

from sqlquality.config import (
    Config,
    FailOn,
    get_config,
    load_config_from_env,
    load_config_from_file,
    reset_config,
)
from sqlquality.exceptions import ConfigurationError


class TestConfig:
    """Tests for the Config model."""

    def test_defaults(self):
        config = Config()
        assert config.low_selectivity_filtered_pct == 90.0
        assert config.low_selectivity_min_rows == 100
        assert config.disabled_rules == frozenset()
        assert config.fail_on is FailOn.ROOT

    def test_frozen(self):
        config = Config()
        with pytest.raises(Exception):
            config.low_selectivity_min_rows = 5

    def test_rule_enabled(self):
        config = Config(disabled_rules=frozenset({"FullTableScan"}))
        assert not config.is_rule_enabled("FullTableScan")
        assert config.is_rule_enabled("full_table_scan")

    def test_unknown_field_rejected(self):
        with pytest.raises(Exception):
            Config(low_selectivity_pct=10)


class TestEnvLoading:
    """Tests for load_config_from_env()."""

    def test_empty_env(self):
        assert load_config_from_env({}) == Config()

    def test_values(self):
        config = load_config_from_env({
            "SQLQUALITY_LOW_SELECTIVITY_FILTERED_PCT": "80",
            "SQLQUALITY_LOW_SELECTIVITY_MIN_ROWS": "1000",
            "SQLQUALITY_DISABLED_RULES": "ImplicitTypeConversion, low_selectivity,",
            "SQLQUALITY_FAIL_ON": "ANY",
        })
        assert config.low_selectivity_filtered_pct == 80.0
        assert config.low_selectivity_min_rows == 1000
        assert config.disabled_rules == frozenset({"ImplicitTypeConversion", "low_selectivity"})
        assert config.fail_on is FailOn.ANY

    def test_bad_integer(self):
        with pytest.raises(ConfigurationError) as exc_info:
            load_config_from_env({"SQLQUALITY_LOW_SELECTIVITY_MIN_ROWS": "many"})
        assert exc_info.value.config_key == "SQLQUALITY_LOW_SELECTIVITY_MIN_ROWS"

    def test_out_of_range(self):
        with pytest.raises(ConfigurationError):
            load_config_from_env({"SQLQUALITY_LOW_SELECTIVITY_FILTERED_PCT": "150"})

    def test_bad_fail_on(self):
        with pytest.raises(ConfigurationError):
            load_config_from_env({"SQLQUALITY_FAIL_ON": "sometimes"})


class TestFileLoading:
    """Tests for load_config_from_file()."""

    def test_yaml(self, tmp_path):
        path = tmp_path / "sqlquality.yaml"
        path.write_text(
            "low_selectivity_min_rows: 500\n"
            "disabled_rules:\n"
            "  - IneffectiveJoin\n"
            "fail_on: none\n"
        )
        config = load_config_from_file(path)
        assert config.low_selectivity_min_rows == 500
        assert config.disabled_rules == frozenset({"IneffectiveJoin"})
        assert config.fail_on is FailOn.NONE

    def test_json(self, tmp_path):
        path = tmp_path / "sqlquality.json"
        path.write_text(json.dumps({"low_selectivity_filtered_pct": 75.5}))
        assert load_config_from_file(path).low_selectivity_filtered_pct == 75.5

    def test_empty_yaml(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config_from_file(path) == Config()

    def test_missing_file_falls_back(self, tmp_path):
        assert load_config_from_file(tmp_path / "nope.yaml") == Config()

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigurationError):
            load_config_from_file(path)

    def test_invalid_value(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"low_selectivity_min_rows": -1}))
        with pytest.raises(ConfigurationError) as exc_info:
            load_config_from_file(path)
        assert exc_info.value.config_key == "low_selectivity_min_rows"

    def test_undecodable(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{not json")
        with pytest.raises(ConfigurationError):
            load_config_from_file(path)


class TestGlobalConfig:
    """Tests for get_config() caching."""

    def test_cached(self):
        assert get_config() is get_config()

    def test_env_and_reset(self, monkeypatch):
        monkeypatch.setenv("SQLQUALITY_LOW_SELECTIVITY_MIN_ROWS", "7")
        reset_config()
        assert get_config().low_selectivity_min_rows == 7

        monkeypatch.delenv("SQLQUALITY_LOW_SELECTIVITY_MIN_ROWS")
        assert get_config().low_selectivity_min_rows == 7
        reset_config()
        assert get_config().low_selectivity_min_rows == 100

    def test_config_file_env(self, monkeypatch, tmp_path):
        path = tmp_path / "sqlquality.yaml"
        path.write_text("fail_on: any\n")
        monkeypatch.setenv("SQLQUALITY_CONFIG_FILE", str(path))
        reset_config()
        assert get_config().fail_on is FailOn.ANY
