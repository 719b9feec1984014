"""Check that target repositories and their base branches exist."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from ..config import PublisherSettings, RepoTarget
from ..notices import Notify, log_notice
from .client import RemoteRepoClient, RemoteRequestError, RequestCancelled

logger = logging.getLogger(__name__)


class RepoCheckStatus(Enum):
    """Outcome of a repository check."""

    OK = "ok"
    REPO_NOT_FOUND = "repo_not_found"  # 404 on the repository
    REPO_FORBIDDEN = "repo_forbidden"  # 403 on the repository
    REPO_MOVED = "repo_moved"  # 301 on the repository
    BRANCH_NOT_FOUND = "branch_not_found"
    BRANCH_FORBIDDEN = "branch_forbidden"
    FAILED = "failed"  # Unclassified HTTP status


@dataclass
class RepoCheck:
    """Check result for one target."""

    target: RepoTarget
    status: RepoCheckStatus

    @property
    def ok(self) -> bool:
        return self.status is RepoCheckStatus.OK


_REPO_ERRORS = {
    404: RepoCheckStatus.REPO_NOT_FOUND,
    403: RepoCheckStatus.REPO_FORBIDDEN,
    301: RepoCheckStatus.REPO_MOVED,
}
_BRANCH_ERRORS = {
    404: RepoCheckStatus.BRANCH_NOT_FOUND,
    403: RepoCheckStatus.BRANCH_FORBIDDEN,
}

_MESSAGES = {
    RepoCheckStatus.REPO_NOT_FOUND: "Repository {target.slug} not found",
    RepoCheckStatus.REPO_FORBIDDEN: "Access to repository {target.slug} is forbidden",
    RepoCheckStatus.REPO_MOVED: "Repository {target.slug} has moved",
    RepoCheckStatus.BRANCH_NOT_FOUND: "Branch {target.branch} not found in {target.slug}",
    RepoCheckStatus.BRANCH_FORBIDDEN: "Access to branch {target.branch} of {target.slug} is forbidden",
}


class RepoValidator:
    """Read-only diagnostics for configured targets."""

    def __init__(
        self,
        client: RemoteRepoClient,
        settings: PublisherSettings,
        notify: Notify | None = None,
    ):
        self._client = client
        self._settings = settings
        self._notify = notify or log_notice

    def check_repository(
        self,
        targets: Sequence[RepoTarget],
        silent: bool = True,
    ) -> list[RepoCheck]:
        """Check each target repository, then its base branch.

        Classified failures (404/403/301) are reported and the next target is
        checked. Any other failure stops the remaining checks when
        ``github.stop_on_unexpected_error`` is set.

        Args:
            targets: Targets to check
            silent: Do not report successful checks

        Returns:
            One RepoCheck per target actually checked.
        """
        results: list[RepoCheck] = []
        for target in targets:
            try:
                status = self._check_one(target, silent)
            except RequestCancelled:
                logger.debug(f"Repository check cancelled for {target}")
                break
            except Exception as e:
                logger.warning(f"Unexpected error checking {target}: {e}")
                results.append(RepoCheck(target, RepoCheckStatus.FAILED))
                if self._settings.github.stop_on_unexpected_error:
                    break
                continue
            results.append(RepoCheck(target, status))
        return results

    def _check_one(self, target: RepoTarget, silent: bool) -> RepoCheckStatus:
        try:
            self._client.request(
                "GET /repos/{owner}/{repo}",
                owner=target.owner,
                repo=target.repo,
            )
        except RemoteRequestError as e:
            return self._classify(target, e, _REPO_ERRORS)

        logger.info(f"Repository {target.slug} exists, checking branch {target.branch}")

        try:
            self._client.request(
                "GET /repos/{owner}/{repo}/branches/{branch}",
                owner=target.owner,
                repo=target.repo,
                branch=target.branch,
            )
        except RemoteRequestError as e:
            return self._classify(target, e, _BRANCH_ERRORS)

        if not silent:
            self._notify(f"{target.slug} and branch {target.branch} are valid")
        return RepoCheckStatus.OK

    def _classify(
        self,
        target: RepoTarget,
        error: RemoteRequestError,
        known: dict[int, RepoCheckStatus],
    ) -> RepoCheckStatus:
        status = known.get(error.status)
        if status is None:
            raise error
        self._notify(_MESSAGES[status].format(target=target))
        return status
