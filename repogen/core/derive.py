"""
Derived manifest fields.

Every entry published in repo.json gets these fields recomputed from its
build record and the download host, regardless of what the manifest on disk
says:

    LastUpdate            build time, whole seconds since the epoch
    DownloadLinkInstall   {host}/stable/{name}/latest.zip
    DownloadLinkUpdate    same as install
    DownloadLinkTesting   same as install
    DownloadCount         0
    _isDip17Plugin        true
    _Dip17Channel         "stable"

Everything else passes through from the manifest unchanged.
"""

from datetime import datetime, timedelta, timezone

from repogen.models.manifest import PluginManifest
from repogen.models.state import BuildRecord

CHANNEL = "stable"
DEFAULT_DOWNLOAD_HOST = "https://dalamud.xiv.zone"

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def to_unix_seconds(value: datetime) -> int:
    """Whole seconds since the epoch, floored from the millisecond timestamp."""
    millis = (value - _EPOCH) // timedelta(milliseconds=1)
    return millis // 1000


def download_link(download_host: str, plugin_name: str) -> str:
    """Build the install link for a plugin's latest artifact."""
    return f"{download_host.rstrip('/')}/{CHANNEL}/{plugin_name}/latest.zip"


def derived_fields(record: BuildRecord, download_host: str) -> dict:
    """Compute the fields owned by the index generator for one plugin."""
    install = download_link(download_host, record.plugin_name)
    return {
        "last_update": to_unix_seconds(record.time_built),
        "download_link_install": install,
        # TODO: point update/testing at their own artifacts once the build
        # pipeline publishes them separately.
        "download_link_update": install,
        "download_link_testing": install,
        "download_count": 0,
        "is_dip17_plugin": True,
        "dip17_channel": CHANNEL,
    }


def derive_manifest(
    manifest: PluginManifest,
    record: BuildRecord,
    download_host: str = DEFAULT_DOWNLOAD_HOST,
) -> PluginManifest:
    """Return a copy of the manifest with all derived fields overwritten.

    The input manifest is left untouched.
    """
    return manifest.model_copy(update=derived_fields(record, download_host), deep=True)
