"""
Repository index assembly.

Merges build records with their manifests and writes repo.json:

    state file -> BuildRecords -> load manifest -> derive fields -> repo.json

Records are processed one at a time, in the order the state file lists them.
Duplicate plugin names produce duplicate entries. The output file is written
once, after every record has been processed.
"""

import json
import logging
from pathlib import Path
from typing import Callable, Iterable

from repogen.config import INDEX_FILE, Settings
from repogen.core.derive import DEFAULT_DOWNLOAD_HOST, derive_manifest
from repogen.core.manifest_loader import load_manifest
from repogen.core.state_reader import read_state, resolve_state_format
from repogen.errors import IndexWriteError, ManifestError
from repogen.models.manifest import PluginManifest
from repogen.models.state import BuildRecord

logger = logging.getLogger(__name__)

ManifestLoader = Callable[[Path, str], PluginManifest]


def build_index(
    repo_path: Path,
    records: Iterable[BuildRecord],
    download_host: str = DEFAULT_DOWNLOAD_HOST,
    manifest_errors: str = "skip",
    loader: ManifestLoader = load_manifest,
) -> list[PluginManifest]:
    """Resolve each build record to a finalized manifest.

    Args:
        repo_path: Repository root
        records: Build records in state file order
        download_host: Base address for download links
        manifest_errors: "skip" logs and drops plugins whose manifest can't be
            loaded; "abort" re-raises the ManifestError
        loader: Manifest loader, replaceable for testing

    Returns:
        Finalized manifests in record order
    """
    if manifest_errors not in ("skip", "abort"):
        raise ValueError(f"Unknown manifest error policy: {manifest_errors!r}")

    plugins: list[PluginManifest] = []
    skipped = 0

    for record in records:
        try:
            manifest = loader(repo_path, record.plugin_name)
        except ManifestError as e:
            if manifest_errors == "abort":
                raise
            logger.warning(f"Could not parse plugin manifest, skipping {record.plugin_name}: {e.reason}")
            skipped += 1
            continue

        plugins.append(derive_manifest(manifest, record, download_host))

    if skipped:
        logger.warning(f"Skipped {skipped} plugin(s) with unusable manifests")
    return plugins


def serialize_index(plugins: list[PluginManifest]) -> str:
    """Serialize finalized manifests as the repo.json array."""
    entries = [plugin.to_index_entry() for plugin in plugins]
    return json.dumps(entries, indent=2, ensure_ascii=False) + "\n"


def write_index(repo_path: Path, plugins: list[PluginManifest]) -> Path:
    """Write repo.json, overwriting any existing file."""
    index_path = repo_path / INDEX_FILE
    content = serialize_index(plugins)
    try:
        index_path.write_text(content, encoding="utf-8")
    except OSError as e:
        raise IndexWriteError(index_path, str(e)) from e
    return index_path


def generate_repository(settings: Settings) -> Path:
    """Run a full index generation for the configured repository.

    Any fatal error propagates before repo.json is touched.
    """
    repo_path = settings.repo_path
    state_format = resolve_state_format(repo_path, settings.state_format)
    logger.info(f"Generating index for {repo_path} ({state_format.value} state)")

    records = read_state(repo_path, state_format)
    plugins = build_index(
        repo_path,
        records,
        download_host=settings.download_host,
        manifest_errors=settings.manifest_errors,
    )

    index_path = write_index(repo_path, plugins)
    logger.info(f"Wrote {len(plugins)} of {len(records)} plugins to {index_path}")
    return index_path
