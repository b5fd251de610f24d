"""
Build state readers.

The build pipeline leaves one of two state files in the repository root:

    State.toml  (legacy)   [channels.<channel>.plugins.<name>]
                           time_built = 2024-01-15T10:00:00

    state.json  (current)  {"Channels": {"<channel>": {"Plugins":
                           {"<name>": {"TimeBuilt": "2024-01-15T10:00:00Z"}}}}}

Each reader turns every plugin entry under every channel into a BuildRecord,
in file order. Any problem with the file is fatal and raises StateFileError.
"""

import json
import logging
import re
import tomllib
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

from repogen.errors import StateFileError
from repogen.models.state import BuildRecord, StateFormat

logger = logging.getLogger(__name__)

STATE_FILES: dict[StateFormat, str] = {
    StateFormat.LEGACY: "State.toml",
    StateFormat.CURRENT: "state.json",
}

# Zone is optional here so a missing offset gets its own error
RFC3339_PATTERN = re.compile(
    r"(\d{4}-\d{2}-\d{2})[Tt](\d{2}:\d{2}:\d{2})(?:\.(\d+))?([Zz]|[+-]\d{2}:\d{2})?",
    re.ASCII,
)


def state_file_path(repo_path: Path, state_format: StateFormat) -> Path:
    """Get the state file path for a format."""
    return repo_path / STATE_FILES[state_format]


def resolve_state_format(repo_path: Path, configured: str) -> StateFormat:
    """Pick the state format to read.

    "auto" prefers state.json and falls back to State.toml.
    """
    if configured != "auto":
        try:
            return StateFormat(configured)
        except ValueError:
            raise StateFileError(f"Unknown state format: {configured!r}") from None

    if state_file_path(repo_path, StateFormat.CURRENT).exists():
        return StateFormat.CURRENT
    return StateFormat.LEGACY


def _require_table(parent: dict[str, Any], key: str, path: Path, where: str) -> dict[str, Any]:
    value = parent.get(key)
    if not isinstance(value, dict):
        raise StateFileError(f"Expected a '{key}' table {where}", path)
    return value


def _legacy_time_built(value: Any) -> datetime:
    """Interpret a State.toml time_built value.

    Local date-times carry no offset and are UTC.
    """
    if not isinstance(value, datetime):
        raise ValueError(f"expected a date-time, got {value!r}")
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _current_time_built(value: Any) -> datetime:
    """Interpret a state.json TimeBuilt value (RFC 3339 string).

    Fractional seconds beyond microseconds are truncated.
    """
    if not isinstance(value, str):
        raise ValueError(f"expected a timestamp string, got {value!r}")
    match = RFC3339_PATTERN.fullmatch(value)
    if match is None:
        raise ValueError(f"not an RFC 3339 timestamp: {value!r}")
    date, time, fraction, zone = match.groups()
    if zone is None:
        raise ValueError(f"timestamp has no timezone offset: {value!r}")
    if fraction:
        time = f"{time}.{fraction[:6].ljust(6, '0')}"
    if zone in ("Z", "z"):
        zone = "+00:00"
    return datetime.fromisoformat(f"{date}T{time}{zone}")


def read_legacy_state(path: Path) -> list[BuildRecord]:
    """Read build records from a legacy State.toml file."""
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except FileNotFoundError:
        raise StateFileError("State file not found", path) from None
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise StateFileError(f"Failed to parse state file: {e}", path) from e

    records: list[BuildRecord] = []
    channels = _require_table(data, "channels", path, "at the top level")
    for channel, channel_data in channels.items():
        if not isinstance(channel_data, dict):
            raise StateFileError(f"Channel '{channel}' is not a table", path)
        plugins = _require_table(channel_data, "plugins", path, f"in channel '{channel}'")
        for plugin_name, plugin_data in plugins.items():
            if not isinstance(plugin_data, dict):
                raise StateFileError(f"Plugin '{plugin_name}' is not a table", path)
            try:
                time_built = _legacy_time_built(plugin_data.get("time_built"))
            except ValueError as e:
                raise StateFileError(f"Bad time_built for '{plugin_name}': {e}", path) from e
            records.append(BuildRecord(plugin_name=plugin_name, time_built=time_built))

    return records


def read_current_state(path: Path) -> list[BuildRecord]:
    """Read build records from a current state.json file."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise StateFileError("State file not found", path) from None
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise StateFileError(f"Failed to parse state file: {e}", path) from e

    if not isinstance(data, dict):
        raise StateFileError("State file is not a JSON object", path)

    records: list[BuildRecord] = []
    channels = _require_table(data, "Channels", path, "at the top level")
    for channel, channel_data in channels.items():
        if not isinstance(channel_data, dict):
            raise StateFileError(f"Channel '{channel}' is not an object", path)
        plugins = _require_table(channel_data, "Plugins", path, f"in channel '{channel}'")
        for plugin_name, plugin_data in plugins.items():
            if not isinstance(plugin_data, dict):
                raise StateFileError(f"Plugin '{plugin_name}' is not an object", path)
            try:
                time_built = _current_time_built(plugin_data.get("TimeBuilt"))
            except ValueError as e:
                raise StateFileError(f"Bad TimeBuilt for '{plugin_name}': {e}", path) from e
            records.append(BuildRecord(plugin_name=plugin_name, time_built=time_built))

    return records


STATE_READERS: dict[StateFormat, Callable[[Path], list[BuildRecord]]] = {
    StateFormat.LEGACY: read_legacy_state,
    StateFormat.CURRENT: read_current_state,
}


def read_state(repo_path: Path, state_format: StateFormat) -> list[BuildRecord]:
    """Read build records for a repository using the given state format."""
    path = state_file_path(repo_path, state_format)
    records = STATE_READERS[state_format](path)
    logger.info(f"Read {len(records)} build records from {path.name}")
    return records
