"""
Pydantic models for repogen.
"""

from repogen.models.manifest import PluginManifest
from repogen.models.state import BuildRecord, StateFormat

__all__ = [
    "BuildRecord",
    "PluginManifest",
    "StateFormat",
]
