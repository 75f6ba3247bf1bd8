"""Tests for detector settings, project config and exit code errors."""

from __future__ import annotations

import json

import pytest

from eagerlint.analysis.settings import DEFAULT_SETTINGS, DetectorSettings
from eagerlint.config import (
    config_path,
    exclude_patterns,
    find_project_root,
    load_project_config,
    load_settings,
    write_project_config,
)
from eagerlint.exit_codes import EXIT_GATE_FAILURE, EXIT_USAGE, ConfigError, GateFailureError


class TestDetectorSettings:
    def test_defaults(self):
        settings = DetectorSettings.from_config({})
        assert settings == DEFAULT_SETTINGS
        assert "with" in settings.eager_load_methods
        assert settings.complex_chain_threshold == 3

    def test_lists_extend_defaults(self):
        settings = DetectorSettings.from_config({"eager_load_methods": ["withWhereHas"], "batch_methods": ["eachChunk"]})
        assert {"with", "withWhereHas"} <= settings.eager_load_methods
        assert {"chunk", "eachChunk"} <= settings.batch_methods

    def test_excluded_names_lowercased(self):
        settings = DetectorSettings.from_config({"excluded_names": ["TenantKey"]})
        assert "tenantkey" in settings.excluded_names

    def test_unknown_keys_ignored(self):
        assert DetectorSettings.from_config({"exclude": ["vendor/**"], "future": 1}) == DEFAULT_SETTINGS

    def test_threshold(self):
        assert DetectorSettings.from_config({"complex_chain_threshold": 5}).complex_chain_threshold == 5

    @pytest.mark.parametrize("value", [0, -1, "3", True, 2.5])
    def test_bad_threshold(self, value):
        with pytest.raises(ConfigError):
            DetectorSettings.from_config({"complex_chain_threshold": value})

    @pytest.mark.parametrize("value", ["with", [1, 2], {"a": 1}])
    def test_bad_list(self, value):
        with pytest.raises(ConfigError, match="eager_load_methods"):
            DetectorSettings.from_config({"eager_load_methods": value})

    def test_non_dict_config(self):
        with pytest.raises(ConfigError):
            DetectorSettings.from_config(["with"])

    def test_to_dict_is_json_ready(self):
        data = DEFAULT_SETTINGS.to_dict()
        json.dumps(data)
        assert data["eager_load_methods"] == ["load", "loadMissing", "with"]
        assert data["complex_chain_threshold"] == 3


class TestProjectConfig:
    def test_missing_config(self, tmp_path):
        assert load_project_config(tmp_path) == {}
        assert load_settings(tmp_path) == DEFAULT_SETTINGS

    def test_write_merges(self, tmp_path):
        write_project_config({"exclude": ["legacy/**"]}, tmp_path)
        path = write_project_config({"complex_chain_threshold": 4}, tmp_path)
        assert path == config_path(tmp_path)
        assert load_project_config(tmp_path) == {"exclude": ["legacy/**"], "complex_chain_threshold": 4}
        assert load_settings(tmp_path).complex_chain_threshold == 4

    def test_malformed_config_ignored(self, tmp_path, caplog):
        config_path(tmp_path).parent.mkdir()
        config_path(tmp_path).write_text("{not json", encoding="utf-8")
        assert load_project_config(tmp_path) == {}
        assert "malformed" in caplog.text

    def test_non_object_config_ignored(self, tmp_path):
        config_path(tmp_path).parent.mkdir()
        config_path(tmp_path).write_text("[1, 2]", encoding="utf-8")
        assert load_project_config(tmp_path) == {}

    def test_bad_shape_raises_from_load_settings(self, tmp_path):
        write_project_config({"batch_methods": "chunk"}, tmp_path)
        with pytest.raises(ConfigError):
            load_settings(tmp_path)

    def test_exclude_patterns(self):
        assert exclude_patterns({"exclude": ["a/**", 3, "b.php"]}) == ["a/**", "b.php"]
        assert exclude_patterns({"exclude": "a/**"}) == []
        assert exclude_patterns({}) == []

    def test_find_project_root(self, tmp_path):
        (tmp_path / ".git").mkdir()
        nested = tmp_path / "app" / "Models"
        nested.mkdir(parents=True)
        assert find_project_root(str(nested)) == tmp_path.resolve()


class TestErrors:
    def test_config_error_exit_code(self):
        err = ConfigError("bad")
        assert err.exit_code == EXIT_USAGE
        assert err.format_message() == "bad"

    def test_gate_failure_exit_code(self):
        assert GateFailureError().exit_code == EXIT_GATE_FAILURE
