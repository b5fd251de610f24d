"""
Error types raised while generating a repository index.

StateFileError and IndexWriteError always end the run. ManifestError is
scoped to a single plugin; whether it ends the run depends on the
configured manifest error policy.
"""

from pathlib import Path
from typing import Optional


class RepoGenError(Exception):
    """Base class for all repogen failures."""


class StateFileError(RepoGenError):
    """The build state file is missing, malformed, or has the wrong shape."""

    def __init__(self, message: str, path: Optional[Path] = None):
        self.path = path
        super().__init__(f"{message} ({path})" if path else message)


class ManifestError(RepoGenError):
    """A plugin manifest could not be loaded."""

    def __init__(self, plugin_name: str, path: Path, reason: str):
        self.plugin_name = plugin_name
        self.path = path
        self.reason = reason
        super().__init__(f"Could not load manifest for {plugin_name} at {path}: {reason}")


class IndexWriteError(RepoGenError):
    """The output index could not be written."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        super().__init__(f"Failed to write index to {path}: {reason}")
