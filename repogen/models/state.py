"""
Build state models.

The build pipeline records which plugins were built for a channel and when.
Two encodings of that record exist on disk; both are read into BuildRecord.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator


class StateFormat(str, Enum):
    """Encoding of the build state file."""

    LEGACY = "legacy"  # State.toml, channels -> plugins -> time_built
    CURRENT = "current"  # state.json, Channels -> Plugins -> TimeBuilt


class BuildRecord(BaseModel):
    """One plugin known to have been built in the channel."""

    plugin_name: str = Field(description="Unique plugin name within the channel")
    time_built: datetime = Field(description="When the current artifact was built (timezone-aware)")

    model_config = {"frozen": True}

    @field_validator("time_built")
    @classmethod
    def _require_timezone(cls, value: datetime) -> datetime:
        if value.tzinfo is None or value.utcoffset() is None:
            raise ValueError("time_built must carry a timezone offset")
        return value
