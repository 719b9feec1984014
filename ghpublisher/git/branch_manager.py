"""Working branch creation on target repositories."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from enum import Enum

from ..config import PublisherSettings, RepoTarget
from ..notices import Notify, log_notice
from .client import RemoteRepoClient, RemoteRequestError, RequestCancelled
from .fanout import fan_out

logger = logging.getLogger(__name__)


class BranchCreation(Enum):
    """Outcome of a branch creation attempt."""

    CREATED = "created"
    ALREADY_EXISTS = "already_exists"  # Creation rejected, branch found on lookup
    BASE_MISSING = "base_missing"  # Configured base branch does not exist
    FAILED = "failed"

    @property
    def ok(self) -> bool:
        """True when the working branch exists after the call."""
        return self in (BranchCreation.CREATED, BranchCreation.ALREADY_EXISTS)


class BranchLifecycleManager:
    """Creates working branches from the tip of each target's base branch."""

    def __init__(
        self,
        client: RemoteRepoClient,
        settings: PublisherSettings,
        notify: Notify | None = None,
    ):
        self._client = client
        self._settings = settings
        self._notify = notify or log_notice

    def new_branch(
        self,
        branch_name: str,
        targets: Sequence[RepoTarget],
    ) -> list[BranchCreation]:
        """Create ``branch_name`` on every target.

        A failure on one target does not stop the others.

        Returns:
            One BranchCreation per target, in target order.
        """
        return fan_out(
            lambda target: self.new_branch_on_repo(branch_name, target),
            targets,
            self._settings.github.max_workers,
        )

    def new_branch_on_repo(self, branch_name: str, target: RepoTarget) -> BranchCreation:
        """Create ``refs/heads/<branch_name>`` at the head of the base branch.

        Creation is made idempotent in two phases: attempt the create, and if
        the host rejects it, look the branch up and accept an existing branch
        of the same name.

        Args:
            branch_name: Working branch to create
            target: Target repository

        Returns:
            BranchCreation describing what happened.
        """
        try:
            base = self._find_branch(target, target.branch)
        except RequestCancelled:
            return BranchCreation.FAILED
        except RemoteRequestError as e:
            logger.warning(f"Failed to look up branches of {target.slug}: {e}")
            return BranchCreation.FAILED

        if base is None:
            self._notify(f"Base branch {target.branch} not found in {target.slug}")
            return BranchCreation.BASE_MISSING

        head_sha = (base.get("commit") or {}).get("sha")
        if not head_sha:
            logger.warning(f"No head commit for {target.branch} in {target.slug}")
            return BranchCreation.FAILED

        try:
            response = self._client.request(
                "POST /repos/{owner}/{repo}/git/refs",
                owner=target.owner,
                repo=target.repo,
                ref=f"refs/heads/{branch_name}",
                sha=head_sha,
            )
        except RequestCancelled:
            return BranchCreation.FAILED
        except RemoteRequestError as e:
            logger.debug(f"Branch creation rejected on {target.slug}: {e}")
            return self._recover_existing(branch_name, target)

        if response.status != 201:
            logger.warning(
                f"Unexpected status {response.status} creating {branch_name} on {target.slug}"
            )
            return BranchCreation.FAILED

        self._notify(f"Branch {branch_name} created on {target.slug}")
        return BranchCreation.CREATED

    def _recover_existing(self, branch_name: str, target: RepoTarget) -> BranchCreation:
        try:
            existing = self._find_branch(target, branch_name)
        except RequestCancelled:
            return BranchCreation.FAILED
        except RemoteRequestError as e:
            logger.warning(f"Failed to look up branches of {target.slug}: {e}")
            return BranchCreation.FAILED

        if existing is None:
            return BranchCreation.FAILED

        self._notify(f"Branch {branch_name} already exists on {target.slug}")
        return BranchCreation.ALREADY_EXISTS

    def _find_branch(self, target: RepoTarget, name: str) -> dict | None:
        """Branch payload by name, None on 404."""
        try:
            response = self._client.request(
                "GET /repos/{owner}/{repo}/branches/{branch}",
                owner=target.owner,
                repo=target.repo,
                branch=name,
            )
        except RemoteRequestError as e:
            if e.status == 404:
                return None
            raise
        if not isinstance(response.data, dict):
            return None
        return response.data
