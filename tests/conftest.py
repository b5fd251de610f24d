"""
Pytest configuration and fixtures.
"""

import json
import os
from pathlib import Path
from typing import Any, Callable

import pytest

# Set test environment
os.environ["REPOGEN_LOG_LEVEL"] = "WARNING"


@pytest.fixture
def repo(tmp_path: Path) -> Path:
    """Create an empty repository root for each test."""
    repo_path = tmp_path / "repo"
    repo_path.mkdir()
    (repo_path / "stable").mkdir()
    return repo_path


@pytest.fixture
def manifest_data() -> dict[str, Any]:
    """A manifest as written by the plugin build tool."""
    return {
        "Author": "Test Author",
        "Name": "Foo Plugin",
        "InternalName": "Foo",
        "AssemblyVersion": "1.2.3.4",
        "Description": "Does foo things.",
        "ApplicableVersion": "any",
        "RepoUrl": "https://github.com/example/Foo",
        "Tags": ["foo", "utility"],
        "DalamudApiLevel": 9,
        "LoadRequiredState": 0,
        "LoadSync": False,
        "CanUnloadAsync": False,
        "LoadPriority": 0,
        "Punchline": "Foo, but better.",
        "AcceptsFeedback": True,
        "_isDip17Plugin": False,
        "_Dip17Channel": "testing-live",
    }


@pytest.fixture
def write_manifest(repo: Path, manifest_data: dict[str, Any]) -> Callable[..., Path]:
    """Write stable/{name}/{name}.json, optionally overriding fields."""

    def _write(name: str, **overrides: Any) -> Path:
        data = dict(manifest_data, InternalName=name)
        data.update(overrides)
        plugin_dir = repo / "stable" / name
        plugin_dir.mkdir(parents=True, exist_ok=True)
        path = plugin_dir / f"{name}.json"
        path.write_text(json.dumps(data))
        return path

    return _write


@pytest.fixture
def write_legacy_state(repo: Path) -> Callable[[dict[str, str]], Path]:
    """Write State.toml with a stable channel; values are TOML date-time literals."""

    def _write(plugins: dict[str, str]) -> Path:
        lines = []
        for name, time_built in plugins.items():
            lines.append(f'[channels.stable.plugins."{name}"]')
            lines.append(f"time_built = {time_built}")
            lines.append("")
        path = repo / "State.toml"
        path.write_text("\n".join(lines))
        return path

    return _write


@pytest.fixture
def write_current_state(repo: Path) -> Callable[[dict[str, str]], Path]:
    """Write state.json with a stable channel."""

    def _write(plugins: dict[str, str]) -> Path:
        data = {
            "Channels": {
                "stable": {
                    "Plugins": {
                        name: {"BuiltCommit": "0" * 40, "TimeBuilt": time_built}
                        for name, time_built in plugins.items()
                    }
                }
            }
        }
        path = repo / "state.json"
        path.write_text(json.dumps(data))
        return path

    return _write
