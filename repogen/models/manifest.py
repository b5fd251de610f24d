"""
Plugin manifest model.

Manifests live at {repo}/stable/{name}/{name}.json and are written by the
plugin build tool. Their key names are a compatibility contract with both
that tool and the plugin installer that reads repo.json, so every field
carries its external name as an alias and is serialized by alias.

Fields with a derived default (download links, counters, channel flags) are
recomputed on every run by repogen.core.derive.
"""

from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator


class PluginManifest(BaseModel):
    """A single plugin entry, as found on disk and as published in repo.json."""

    # Identity
    author: str = Field(alias="Author")
    name: str = Field(alias="Name")
    internal_name: str = Field(alias="InternalName")
    assembly_version: str = Field(alias="AssemblyVersion")
    description: str = Field(alias="Description")
    applicable_version: str = Field(alias="ApplicableVersion")
    repo_url: str = Field(alias="RepoUrl")
    tags: list[str] = Field(alias="Tags")
    dalamud_api_level: int = Field(alias="DalamudApiLevel")

    # Load behaviour
    load_required_state: int = Field(alias="LoadRequiredState")
    load_sync: bool = Field(alias="LoadSync")
    can_unload_async: bool = Field(alias="CanUnloadAsync")
    load_priority: int = Field(alias="LoadPriority")

    punchline: str = Field(alias="Punchline")
    accepts_feedback: bool = Field(alias="AcceptsFeedback")

    # Internal and repo usage
    is_dip17_plugin: bool = Field(alias="_isDip17Plugin")
    dip17_channel: str = Field(alias="_Dip17Channel")

    changelog: str = Field(
        default="",
        validation_alias=AliasChoices("Changelog", "changelog"),
        serialization_alias="Changelog",
    )
    category_tags: Optional[list[str]] = Field(default=None, alias="CategoryTags")
    is_hide: bool = Field(default=False, alias="IsHide")

    # Testing
    testing_assembly_version: Optional[str] = Field(default=None, alias="TestingAssemblyVersion")
    is_testing_exclusive: bool = Field(default=False, alias="IsTestingExclusive")

    # Derived on every run
    download_count: int = Field(default=0, alias="DownloadCount")
    last_update: int = Field(default=0, alias="LastUpdate", description="Seconds since epoch")
    download_link_install: str = Field(default="", alias="DownloadLinkInstall")
    download_link_update: str = Field(default="", alias="DownloadLinkUpdate")
    download_link_testing: str = Field(default="", alias="DownloadLinkTesting")

    # Presentation
    image_urls: Optional[list[str]] = Field(default=None, alias="ImageUrls")
    icon_url: Optional[str] = Field(default=None, alias="IconUrl")

    # Feedback, passed through untouched
    feedback_message: Optional[str] = Field(default=None, alias="FeedbackMessage")
    feedback_webhook: Optional[str] = Field(default=None, alias="FeedbackWebhook")

    model_config = {"populate_by_name": True, "extra": "ignore"}

    @field_validator("download_count", "last_update", mode="before")
    @classmethod
    def _reset_stale_number(cls, value: Any) -> int:
        # Recomputed on every run, so a stale null or junk value is not an error
        try:
            return int(value)
        except (TypeError, ValueError, OverflowError):
            return 0

    @field_validator(
        "download_link_install", "download_link_update", "download_link_testing", mode="before"
    )
    @classmethod
    def _reset_stale_link(cls, value: Any) -> str:
        return value if isinstance(value, str) else ""

    def to_index_entry(self) -> dict:
        """Dump using the external key names."""
        return self.model_dump(mode="json", by_alias=True)
