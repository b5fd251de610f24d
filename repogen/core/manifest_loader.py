"""
Plugin manifest loading.

Each built plugin has its manifest at {repo}/stable/{name}/{name}.json.
"""

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from repogen.errors import ManifestError
from repogen.models.manifest import PluginManifest

logger = logging.getLogger(__name__)

MANIFEST_CHANNEL_DIR = "stable"


def _validate_plugin_name(plugin_name: str) -> bool:
    """Reject names that would escape the channel directory or can't be a path."""
    if not plugin_name or plugin_name in (".", ".."):
        return False
    return not any(c in plugin_name for c in ("/", "\\", "\x00"))


def manifest_path(repo_path: Path, plugin_name: str) -> Path:
    """Get the manifest path for a plugin."""
    return repo_path / MANIFEST_CHANNEL_DIR / plugin_name / f"{plugin_name}.json"


def load_manifest(repo_path: Path, plugin_name: str) -> PluginManifest:
    """Load and validate a plugin's manifest.

    Raises:
        ManifestError: the file is missing, unreadable, not a JSON object,
            or lacks required fields.
    """
    path = manifest_path(repo_path, plugin_name)
    if not _validate_plugin_name(plugin_name):
        raise ManifestError(plugin_name, path, "invalid plugin name")

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise ManifestError(plugin_name, path, "manifest file not found") from None
    except (OSError, ValueError) as e:
        raise ManifestError(plugin_name, path, str(e)) from e

    if not isinstance(data, dict):
        raise ManifestError(plugin_name, path, "manifest is not a JSON object")

    try:
        manifest = PluginManifest.model_validate(data)
    except ValidationError as e:
        raise ManifestError(plugin_name, path, f"{e.error_count()} invalid field(s): {e}") from e

    logger.debug(f"Loaded manifest for {plugin_name} ({manifest.assembly_version})")
    return manifest
