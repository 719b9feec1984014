"""Pull request creation, merge and branch cleanup on target repositories."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from ..config import PublisherSettings, RepoTarget
from ..notices import Notify, log_notice
from .client import RemoteRepoClient, RemoteRequestError, RequestCancelled
from .fanout import fan_out

logger = logging.getLogger(__name__)

DEFAULT_MERGE_TITLE = "[PUBLISHER] Merge #{number}"


class PullRequestCoordinator:
    """Moves a working branch through PR, merge and deletion.

    Per target: branch created -> PR opened -> merged -> branch deleted, or the
    PR is left open when auto-merge is off. Nothing is retried; a failed step
    ends the sequence for that target.
    """

    def __init__(
        self,
        client: RemoteRepoClient,
        settings: PublisherSettings,
        notify: Notify | None = None,
    ):
        self._client = client
        self._settings = settings
        self._notify = notify or log_notice

    def pull_request_on_repo(self, branch_name: str, target: RepoTarget) -> int:
        """Open a PR from ``branch_name`` into the target's base branch.

        If the PR cannot be created (usually because one is already open for
        the branch), the first open PR for the branch is used instead.

        Args:
            branch_name: Head branch
            target: Target repository

        Returns:
            The PR number, or 0 when no usable PR exists.
        """
        try:
            response = self._client.request(
                "POST /repos/{owner}/{repo}/pulls",
                owner=target.owner,
                repo=target.repo,
                title=self._settings.github.pr_title.format(branch_name=branch_name),
                body="",
                head=branch_name,
                base=target.branch,
            )
            return int(response.data["number"])
        except RequestCancelled:
            return 0
        except (RemoteRequestError, KeyError, TypeError) as e:
            logger.debug(f"PR creation failed on {target.slug}: {e}")

        try:
            response = self._client.request(
                "GET /repos/{owner}/{repo}/pulls",
                owner=target.owner,
                repo=target.repo,
                state="open",
                head=f"{target.owner}:{branch_name}",
            )
            return int(response.data[0]["number"])
        except RequestCancelled:
            return 0
        except (RemoteRequestError, IndexError, KeyError, TypeError) as e:
            logger.warning(f"No pull request available on {target.slug}: {e}")
            self._notify(f"Error while creating the pull request on {target.slug}: {e}")
            return 0

    def merge_pull_request_on_repo(self, pr_number: int, target: RepoTarget) -> bool:
        """Squash-merge a PR.

        Args:
            pr_number: PR to merge
            target: Target repository

        Returns:
            True if the PR was merged.
        """
        if target.commit_msg.strip():
            commit_title = f"{target.commit_msg} #{pr_number}"
        else:
            commit_title = DEFAULT_MERGE_TITLE.format(number=pr_number)

        try:
            response = self._client.request(
                "PUT /repos/{owner}/{repo}/pulls/{pull_number}/merge",
                owner=target.owner,
                repo=target.repo,
                pull_number=pr_number,
                commit_title=commit_title,
                merge_method="squash",
            )
        except RequestCancelled:
            return False
        except RemoteRequestError as e:
            logger.warning(f"Merge of #{pr_number} failed on {target.slug}: {e}")
            self._notify(
                f"Unable to merge #{pr_number} on {target.slug}: "
                "resolve the conflict on the repository"
            )
            return False

        return response.status == 200

    def delete_branch_on_repo(self, branch_name: str, target: RepoTarget) -> bool:
        """Delete the working branch. Never raises.

        Returns:
            True if the branch was deleted.
        """
        try:
            response = self._client.request(
                "DELETE /repos/{owner}/{repo}/git/refs/heads/{branch}",
                owner=target.owner,
                repo=target.repo,
                branch=branch_name,
            )
        except (RemoteRequestError, RequestCancelled) as e:
            logger.debug(f"Could not delete {branch_name} on {target.slug}: {e}")
            return False
        return response.status in (200, 204)

    def update_repository_on_one(self, branch_name: str, target: RepoTarget) -> bool:
        """Open the PR and, if the target auto-merges, merge it and delete the branch.

        Returns:
            True if a PR exists and, when auto-merge is on, was merged.
        """
        try:
            pr_number = self.pull_request_on_repo(branch_name, target)
            if pr_number == 0:
                return False
            if not target.automatically_merge_pr:
                self._notify(f"Pull request #{pr_number} opened on {target.slug}")
                return True
            if not self.merge_pull_request_on_repo(pr_number, target):
                return False
            self.delete_branch_on_repo(branch_name, target)
            return True
        except Exception as e:
            logger.exception(f"Update of {target.slug} failed: {e}")
            self._notify(f"Error with the configuration of {target}")
            return False

    def update_repository(self, branch_name: str, targets: Sequence[RepoTarget]) -> bool:
        """Run update_repository_on_one over every target.

        Returns:
            True unless every target failed.
        """
        results = fan_out(
            lambda target: self.update_repository_on_one(branch_name, target),
            targets,
            self._settings.github.max_workers,
        )
        return any(results)
