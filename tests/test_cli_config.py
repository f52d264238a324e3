"""Tests for configuration file loading and override precedence."""

import json
import os
from types import SimpleNamespace

import pytest

from cli_config import apply_cli_overrides, apply_config, apply_env_overrides, load_config
from constants import Constants, _load_yaml_config


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for var in (Constants.ENV_LOG_LEVEL, Constants.ENV_REGISTRY_URL, Constants.ENV_REQUEST_TIMEOUT):
        monkeypatch.setenv(var, "")
        monkeypatch.delenv(var)


class TestLoadConfig:
    """Tests for reading config files."""

    def test_yaml(self, tmp_path):
        path = tmp_path / "npmfetch.yml"
        path.write_text("registry:\n  url: https://mirror.test/\n  timeout: 12\n")
        assert load_config(str(path)) == {"registry": {"url": "https://mirror.test/", "timeout": 12}}

    def test_json(self, tmp_path):
        path = tmp_path / "npmfetch.json"
        path.write_text(json.dumps({"download": {"destination_dir": "pkgs"}}))
        assert load_config(str(path)) == {"download": {"destination_dir": "pkgs"}}

    def test_missing_file_is_empty(self, tmp_path):
        assert load_config(str(tmp_path / "absent.yml")) == {}

    def test_invalid_yaml_is_empty(self, tmp_path):
        path = tmp_path / "bad.yml"
        path.write_text("registry: [unclosed\n")
        assert load_config(str(path)) == {}

    def test_non_mapping_is_empty(self, tmp_path):
        path = tmp_path / "list.yml"
        path.write_text("- a\n- b\n")
        assert load_config(str(path)) == {}

    def test_default_locations(self, tmp_path, monkeypatch):
        (tmp_path / "second.yml").write_text("registry:\n  url: https://second.test/\n")
        monkeypatch.setattr(
            Constants,
            "CONFIG_FILE_CANDIDATES",
            [str(tmp_path / "first.yml"), str(tmp_path / "second.yml")],
        )
        assert load_config() == {"registry": {"url": "https://second.test/"}}

    def test_candidates_skip_non_mappings(self, tmp_path):
        (tmp_path / "a.yml").write_text("just a string\n")
        (tmp_path / "b.yml").write_text("logging:\n  level: debug\n")
        found = _load_yaml_config([str(tmp_path / "a.yml"), str(tmp_path / "b.yml")])
        assert found == {"logging": {"level": "debug"}}


class TestApplyConfig:
    """Tests for mapping config sections onto Constants."""

    def test_all_sections(self):
        apply_config({
            "registry": {"url": "https://mirror.test/", "timeout": "15"},
            "download": {"destination_dir": "pkgs", "dependencies_dir": "deps"},
            "logging": {"level": "debug"},
        })
        assert Constants.REGISTRY_URL_NPM == "https://mirror.test/"
        assert Constants.REQUEST_TIMEOUT == 15
        assert Constants.DEFAULT_DESTINATION_DIR == "pkgs"
        assert Constants.DEPENDENCIES_DIR == "deps"
        assert os.environ[Constants.ENV_LOG_LEVEL] == "DEBUG"

    def test_env_log_level_wins_over_file(self, monkeypatch):
        monkeypatch.setenv(Constants.ENV_LOG_LEVEL, "ERROR")
        apply_config({"logging": {"level": "debug"}})
        assert os.environ[Constants.ENV_LOG_LEVEL] == "ERROR"

    def test_bad_timeout_keeps_previous(self):
        apply_config({"registry": {"timeout": "soon"}})
        assert Constants.REQUEST_TIMEOUT == 30

    def test_unknown_and_malformed_sections_ignored(self):
        apply_config({"registry": "not a mapping", "other": {"x": 1}})
        assert Constants.REGISTRY_URL_NPM == "https://registry.npmjs.org/"


class TestOverrides:
    """Tests for environment and CLI precedence."""

    def test_env_overrides_config(self, monkeypatch):
        apply_config({"registry": {"url": "https://file.test/", "timeout": 10}})
        monkeypatch.setenv(Constants.ENV_REGISTRY_URL, "https://env.test/")
        monkeypatch.setenv(Constants.ENV_REQUEST_TIMEOUT, "20")

        apply_env_overrides()

        assert Constants.REGISTRY_URL_NPM == "https://env.test/"
        assert Constants.REQUEST_TIMEOUT == 20

    def test_blank_env_is_ignored(self, monkeypatch):
        monkeypatch.setenv(Constants.ENV_REGISTRY_URL, "  ")
        apply_env_overrides()
        assert Constants.REGISTRY_URL_NPM == "https://registry.npmjs.org/"

    def test_cli_overrides_env(self, monkeypatch):
        monkeypatch.setenv(Constants.ENV_REQUEST_TIMEOUT, "20")
        apply_env_overrides()

        apply_cli_overrides(SimpleNamespace(REGISTRY_URL="https://cli.test/", REQUEST_TIMEOUT=3))

        assert Constants.REGISTRY_URL_NPM == "https://cli.test/"
        assert Constants.REQUEST_TIMEOUT == 3

    def test_absent_cli_flags_change_nothing(self):
        apply_cli_overrides(SimpleNamespace(REGISTRY_URL=None, REQUEST_TIMEOUT=None))
        assert Constants.REGISTRY_URL_NPM == "https://registry.npmjs.org/"
        assert Constants.REQUEST_TIMEOUT == 30
