"""Publish destination model."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class RepoTarget(BaseModel):
    """One remote repository a publication is mirrored to.

    Frozen: a target does not change during a run, and two targets are the
    same target when every field matches.
    """

    model_config = ConfigDict(frozen=True)

    owner: str = Field(..., description="GitHub repository owner/organization")
    repo: str = Field(..., description="GitHub repository name")
    branch: str = Field(default="main", description="Base branch name")
    commit_msg: str = Field(default="", description="Merge commit title prefix")
    automatically_merge_pr: bool = Field(default=True)
    autoclean: bool = Field(default=False, description="Prune files no longer shared")

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.repo}"

    def __str__(self) -> str:
        return f"{self.owner}/{self.repo}@{self.branch}"
