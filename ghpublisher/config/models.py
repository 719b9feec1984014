"""Configuration models for ghpublisher."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

from ..models.target import RepoTarget


class UploadBehavior(str, Enum):
    """How published files are laid out in the target repository."""

    FIXED = "fixed"  # Every file goes to the default folder, no subtree to manage
    NESTED = "nested"  # Local folder structure mirrored under the default folder
    FRONTMATTER = "frontmatter"  # Path taken from front matter, under the root folder


class UploadSettings(BaseModel):
    """Where published files land in the target repositories."""

    behavior: UploadBehavior = Field(default=UploadBehavior.NESTED)
    default_name: str = Field(default="", description="Default output folder")
    root_folder: str = Field(default="", description="Root folder for front matter paths")
    folder_note_rename: str = Field(
        default="index.md", description="Filename used for folder index files"
    )


class AutocleanSettings(BaseModel):
    """Remote pruning rules."""

    excluded: list[str] = Field(
        default_factory=list,
        description="Paths never deleted: literal substrings or /regex/flags",
    )


class EmbedSettings(BaseModel):
    """Attachment settings."""

    folder: str = Field(default="", description="Attachment folder in the repository")


class GitHubSettings(BaseModel):
    """GitHub API behaviour."""

    rate_limit: int = Field(default=0, description="Known API quota (0 = unknown)")
    pr_title: str = Field(default="[PUBLISHER] Publish {branch_name}")
    max_workers: int = Field(default=1, description="Parallel workers across targets")
    stop_on_unexpected_error: bool = Field(
        default=True,
        description="Stop repository checks on the first unexpected error",
    )


class PublisherSettings(BaseModel):
    """Root configuration model."""

    version: int = Field(default=1)
    targets: list[RepoTarget] = Field(default_factory=list)
    upload: UploadSettings = Field(default_factory=UploadSettings)
    autoclean: AutocleanSettings = Field(default_factory=AutocleanSettings)
    embed: EmbedSettings = Field(default_factory=EmbedSettings)
    github: GitHubSettings = Field(default_factory=GitHubSettings)

    def find_target(self, slug: str) -> RepoTarget | None:
        """Return the configured target matching an ``owner/repo`` slug."""
        for target in self.targets:
            if target.slug == slug:
                return target
        return None


class PublicationEntry(BaseModel):
    """One shared file in the publication file."""

    path: str = Field(min_length=1, description="Path of the file in the repositories")
    repos: list[str] = Field(
        default_factory=list,
        description="owner/repo slugs sharing the file (empty = primary target)",
    )


class PublicationFile(BaseModel):
    """Schema of the publication file."""

    files: list[PublicationEntry | str] = Field(description="Files currently shared")
