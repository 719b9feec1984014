"""Configuration module for ghpublisher."""

from .loader import ConfigLoader, PublicationError, load_config, load_publication
from .models import (
    AutocleanSettings,
    EmbedSettings,
    GitHubSettings,
    PublicationEntry,
    PublicationFile,
    PublisherSettings,
    RepoTarget,
    UploadBehavior,
    UploadSettings,
)

__all__ = [
    "AutocleanSettings",
    "ConfigLoader",
    "EmbedSettings",
    "GitHubSettings",
    "PublicationEntry",
    "PublicationError",
    "PublicationFile",
    "PublisherSettings",
    "RepoTarget",
    "UploadBehavior",
    "UploadSettings",
    "load_config",
    "load_publication",
]
