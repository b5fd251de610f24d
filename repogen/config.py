"""
Configuration management for repogen.

Precedence: explicit values > env vars > .env file > config.yaml > defaults

Config file: repo/.repogen/config.yaml
Env vars:    REPOGEN_<FIELD>, e.g. REPOGEN_DOWNLOAD_HOST
"""

import logging
import os
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings

from repogen.core.derive import DEFAULT_DOWNLOAD_HOST

logger = logging.getLogger(__name__)

ENV_PREFIX = "REPOGEN_"

INDEX_FILE = "repo.json"

# Known config keys that can be set via `repogen config set`
CONFIG_KEYS = {
    "download_host", "state_format", "manifest_errors", "log_level",
}

STATE_FORMAT_CHOICES = ("auto", "legacy", "current")
MANIFEST_ERROR_CHOICES = ("skip", "abort")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _resolve_repo_path(data: dict[str, Any]) -> Path:
    """Resolve the repository path before Settings init."""
    raw = data.get("repo_path") or os.environ.get(f"{ENV_PREFIX}REPO_PATH", "")
    if raw:
        return Path(raw).expanduser().resolve()
    return Path(".").resolve()


def _load_yaml_config(repo_path: Path) -> dict[str, Any]:
    """Load config.yaml from repo/.repogen/config.yaml."""
    config_file = get_config_path(repo_path)
    if not config_file.exists():
        return {}
    try:
        with open(config_file) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            logger.warning(f"config.yaml is not a dict, ignoring: {config_file}")
            return {}
        return data
    except Exception as e:
        logger.warning(f"Error loading config.yaml: {e}")
        return {}


def save_yaml_config(repo_path: Path, data: dict[str, Any]) -> Path:
    """Write config values to repo/.repogen/config.yaml."""
    config_file = get_config_path(repo_path)
    config_file.parent.mkdir(parents=True, exist_ok=True)
    with open(config_file, "w") as f:
        yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
    return config_file


def get_config_path(repo_path: Path) -> Path:
    """Get the config.yaml path for a repository."""
    return repo_path / ".repogen" / "config.yaml"


class Settings(BaseSettings):
    """Generator configuration. Precedence: explicit > env vars > .env > config.yaml > defaults."""

    repo_path: Path = Field(
        default=Path("."),
        description="Repository root holding the state file, stable/ and repo.json",
    )
    download_host: str = Field(
        default=DEFAULT_DOWNLOAD_HOST,
        description="Base address used to build download links",
    )
    state_format: Literal["auto", "legacy", "current"] = Field(
        default="auto",
        description="State file encoding: auto | legacy (State.toml) | current (state.json)",
    )
    manifest_errors: Literal["skip", "abort"] = Field(
        default="skip",
        description="On a missing or malformed manifest: skip the plugin or abort the run",
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Log level"
    )
    log_format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format string",
    )

    model_config = {
        "env_prefix": ENV_PREFIX,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @model_validator(mode="before")
    @classmethod
    def _inject_yaml_config(cls, data: Any) -> Any:
        """Inject config.yaml values as fallbacks below env vars and .env."""
        if not isinstance(data, dict):
            data = {}

        repo_path = _resolve_repo_path(data)
        yaml_config = _load_yaml_config(repo_path)

        for key, value in yaml_config.items():
            if key == "repo_path":
                continue
            if key not in data or data[key] is None:
                env_val = os.environ.get(f"{ENV_PREFIX}{key.upper()}")
                if env_val is None:
                    data[key] = value

        return data

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value
