"""Tests for YAML config loading and Settings precedence."""

import os
from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from repogen.config import (
    CONFIG_KEYS,
    Settings,
    _load_yaml_config,
    get_config_path,
    save_yaml_config,
)


@pytest.fixture
def clean_env(tmp_path, monkeypatch):
    """Run in a directory without .env and with no REPOGEN_ env vars."""
    monkeypatch.chdir(tmp_path)
    env = {"PATH": os.environ.get("PATH", "")}
    with patch.dict(os.environ, env, clear=True):
        yield


class TestYamlConfig:
    def test_load_empty_repo(self, repo):
        assert _load_yaml_config(repo) == {}

    def test_save_and_load_roundtrip(self, repo):
        save_yaml_config(repo, {"download_host": "https://cdn.example.com", "state_format": "legacy"})
        loaded = _load_yaml_config(repo)
        assert loaded["download_host"] == "https://cdn.example.com"
        assert loaded["state_format"] == "legacy"

    def test_config_file_location(self, repo):
        assert get_config_path(repo) == repo / ".repogen" / "config.yaml"

    def test_save_creates_parent_dirs(self, tmp_path):
        repo = tmp_path / "deep" / "repo"
        save_yaml_config(repo, {"manifest_errors": "abort"})
        assert (repo / ".repogen" / "config.yaml").exists()

    def test_load_invalid_yaml_returns_empty(self, repo):
        config_file = get_config_path(repo)
        config_file.parent.mkdir()
        config_file.write_text("[ invalid yaml {{{")
        assert _load_yaml_config(repo) == {}

    def test_load_non_dict_yaml_returns_empty(self, repo):
        config_file = get_config_path(repo)
        config_file.parent.mkdir()
        config_file.write_text("- just\n- a\n- list\n")
        assert _load_yaml_config(repo) == {}


class TestSettings:
    def test_defaults(self, repo, clean_env):
        s = Settings(repo_path=repo)
        assert s.download_host == "https://dalamud.xiv.zone"
        assert s.state_format == "auto"
        assert s.manifest_errors == "skip"
        assert s.log_level == "INFO"

    def test_yaml_fallback(self, repo, clean_env):
        save_yaml_config(repo, {"download_host": "https://cdn.example.com", "manifest_errors": "abort"})
        s = Settings(repo_path=repo)
        assert s.download_host == "https://cdn.example.com"
        assert s.manifest_errors == "abort"

    def test_env_overrides_yaml(self, repo, clean_env):
        save_yaml_config(repo, {"download_host": "https://cdn.example.com"})
        with patch.dict(os.environ, {"REPOGEN_DOWNLOAD_HOST": "https://env.example.com"}):
            s = Settings(repo_path=repo)
        assert s.download_host == "https://env.example.com"

    def test_explicit_overrides_yaml(self, repo, clean_env):
        save_yaml_config(repo, {"state_format": "legacy"})
        s = Settings(repo_path=repo, state_format="current")
        assert s.state_format == "current"

    def test_repo_path_from_env(self, repo, clean_env):
        save_yaml_config(repo, {"manifest_errors": "abort"})
        with patch.dict(os.environ, {"REPOGEN_REPO_PATH": str(repo)}):
            s = Settings()
        assert s.repo_path == repo
        assert s.manifest_errors == "abort"

    def test_yaml_cannot_move_repo_path(self, repo, tmp_path, clean_env):
        save_yaml_config(repo, {"repo_path": str(tmp_path / "elsewhere")})
        s = Settings(repo_path=repo)
        assert s.repo_path == repo

    def test_invalid_state_format(self, repo, clean_env):
        with pytest.raises(ValidationError):
            Settings(repo_path=repo, state_format="yaml")

    def test_invalid_policy_in_yaml(self, repo, clean_env):
        save_yaml_config(repo, {"manifest_errors": "ignore"})
        with pytest.raises(ValidationError):
            Settings(repo_path=repo)

    def test_log_level_case_insensitive(self, repo, clean_env):
        s = Settings(repo_path=repo, log_level="debug")
        assert s.log_level == "DEBUG"

    def test_invalid_log_level(self, repo, clean_env):
        with pytest.raises(ValidationError):
            Settings(repo_path=repo, log_level="verbose")

    def test_invalid_log_level_in_yaml(self, repo, clean_env):
        save_yaml_config(repo, {"log_level": "loud"})
        with pytest.raises(ValidationError):
            Settings(repo_path=repo)


class TestConfigKeys:
    def test_known_keys_include_essentials(self):
        assert "download_host" in CONFIG_KEYS
        assert "state_format" in CONFIG_KEYS
        assert "manifest_errors" in CONFIG_KEYS
        assert "log_level" in CONFIG_KEYS
        assert "repo_path" not in CONFIG_KEYS
