"""Remote and local file models used by the pruning engine."""

from __future__ import annotations

from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict, Field

from .target import RepoTarget


class RemoteFileEntry(BaseModel):
    """A file as reported by a repository listing."""

    model_config = ConfigDict(frozen=True)

    path: str
    sha: str

    @property
    def is_markdown(self) -> bool:
        return self.path.strip().endswith(".md")


class ManagedFileRef(BaseModel):
    """Remote path a locally shared file currently resolves to."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(..., description="Path of the file in the target repository")
    target: RepoTarget


class Publication(BaseModel):
    """The set of files the local publication currently shares."""

    files: list[ManagedFileRef] = Field(default_factory=list)

    def paths_for(self, target: RepoTarget) -> set[str]:
        """Remote paths mapped to ``target``."""
        return {ref.path for ref in self.files if ref.target == target}

    def all_paths(self) -> set[str]:
        """Remote paths mapped to any target."""
        return {ref.path for ref in self.files}


@dataclass
class MonoRepoContext:
    """A single target paired with the publication it is pruned against."""

    target: RepoTarget
    publication: Publication

    @property
    def managed_paths(self) -> set[str]:
        return self.publication.paths_for(self.target)

    @property
    def shared_paths(self) -> set[str]:
        return self.publication.all_paths()


@dataclass
class DeletionOutcome:
    """Result of one prune run against one target."""

    deleted: list[str] = field(default_factory=list)
    undeleted: list[str] = field(default_factory=list)
    success: bool = True

    @classmethod
    def aborted(cls) -> DeletionOutcome:
        """Unsuccessful outcome for a run that attempted no deletion."""
        return cls(success=False)
