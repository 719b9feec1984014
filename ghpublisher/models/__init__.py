"""Data models for ghpublisher."""

from .files import (
    DeletionOutcome,
    ManagedFileRef,
    MonoRepoContext,
    Publication,
    RemoteFileEntry,
)
from .target import RepoTarget

__all__ = [
    "DeletionOutcome",
    "ManagedFileRef",
    "MonoRepoContext",
    "Publication",
    "RemoteFileEntry",
    "RepoTarget",
]
