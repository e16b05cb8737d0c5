"""Unit tests for environment variable configuration utilities."""

from __future__ import annotations

import os
from typing import Any, Dict

import pytest

from .env_config import EnvConfigError, apply_env_overrides, parse_env_value


class TestParseEnvValue:
    """Tests for parse_env_value function."""

    def test_parse_boolean_true_variants(self):
        true_values = ["true", "True", "TRUE", "yes", "YES", "1", "on", "ON"]
        for value in true_values:
            assert parse_env_value(value, False) is True, f"Failed for: {value}"

    def test_parse_boolean_false_variants(self):
        false_values = ["false", "False", "FALSE", "no", "NO", "0", "off", "OFF"]
        for value in false_values:
            assert parse_env_value(value, True) is False, f"Failed for: {value}"

    def test_parse_boolean_invalid(self):
        with pytest.raises(EnvConfigError, match="Cannot parse .* as boolean"):
            parse_env_value("sometimes", False)

    def test_parse_integer(self):
        assert parse_env_value("8000", 0) == 8000
        assert parse_env_value("-1", 0) == -1
        with pytest.raises(EnvConfigError, match="Cannot parse .* as integer"):
            parse_env_value("eight", 0)

    def test_parse_float(self):
        assert parse_env_value("0.25", 0.0) == 0.25
        with pytest.raises(EnvConfigError, match="Cannot parse .* as float"):
            parse_env_value("fast", 0.0)

    def test_parse_string(self):
        assert parse_env_value("10.0.0.20", "192.168.1.240") == "10.0.0.20"

    def test_parse_null_variants(self):
        assert parse_env_value("", "something") is None
        assert parse_env_value("null", "something") is None
        assert parse_env_value("None", "something") is None

    def test_parse_dict(self):
        assert parse_env_value('{"first_index": 1}', {}) == {"first_index": 1}
        with pytest.raises(EnvConfigError, match="Expected JSON dict, got list"):
            parse_env_value("[1, 2]", {})

    def test_parse_list_invalid_json(self):
        with pytest.raises(EnvConfigError, match="Cannot parse .* as JSON list"):
            parse_env_value("[oops", [])

    def test_parse_with_none_existing_value(self):
        assert parse_env_value("/exec/1/{source}", None) == "/exec/1/{source}"


class TestApplyEnvOverrides:
    """Tests for apply_env_overrides function."""

    def setup_method(self):
        self.original_env = dict(os.environ)
        for key in list(os.environ.keys()):
            if key.startswith("TALLY_"):
                del os.environ[key]

    def teardown_method(self):
        for key in list(os.environ.keys()):
            if key.startswith("TALLY_"):
                del os.environ[key]
        for key, value in self.original_env.items():
            if key.startswith("TALLY_"):
                os.environ[key] = value

    def test_no_env_vars_no_changes(self):
        config = {"system": {"log_level": "INFO"}}
        assert apply_env_overrides(config) == config

    def test_simple_string_override(self):
        os.environ["TALLY_SWITCHER_HOST"] = "10.0.0.20"
        config = {"switcher": {"host": "192.168.1.240"}}
        result = apply_env_overrides(config)
        assert result["switcher"]["host"] == "10.0.0.20"

    def test_boolean_override(self):
        os.environ["TALLY_TALLY_STRICT_ME"] = "yes"
        config = {"tally": {"strict_me": False}}
        result = apply_env_overrides(config)
        assert result["tally"]["strict_me"] is True

    def test_nested_integer_override(self):
        os.environ["TALLY_TALLY_RESET_COUNT"] = "16"
        config = {"tally": {"reset": {"first_index": 1, "count": 8}}}
        result = apply_env_overrides(config)
        assert result["tally"]["reset"] == {"first_index": 1, "count": 16}

    def test_list_values_skipped(self):
        os.environ["TALLY_SCENARIO_STEPS"] = "[]"
        config = {"scenario": {"steps": [1, 2]}}
        result = apply_env_overrides(config)
        assert result["scenario"]["steps"] == [1, 2]

    def test_invalid_env_value_raises_error(self):
        os.environ["TALLY_OSC_PORT"] = "not_a_port"
        config = {"osc": {"port": 8000}}
        with pytest.raises(EnvConfigError, match="Failed to parse environment variable"):
            apply_env_overrides(config)

    def test_custom_prefix(self):
        os.environ["BRIDGE_SYSTEM_LOG_LEVEL"] = "DEBUG"
        try:
            result = apply_env_overrides({"system": {"log_level": "INFO"}}, prefix="BRIDGE")
        finally:
            del os.environ["BRIDGE_SYSTEM_LOG_LEVEL"]
        assert result["system"]["log_level"] == "DEBUG"

    def test_empty_config(self):
        config: Dict[str, Any] = {}
        assert apply_env_overrides(config) == {}

    def test_input_is_not_mutated(self):
        os.environ["TALLY_TALLY_RESET_COUNT"] = "4"
        config = {"tally": {"reset": {"count": 8}}}
        result = apply_env_overrides(config)
        assert config["tally"]["reset"]["count"] == 8
        assert result["tally"]["reset"]["count"] == 4
