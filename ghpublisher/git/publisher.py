"""High-level publish and clean actions over all configured targets."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime

from ..config import PublisherSettings, RepoTarget
from ..models import DeletionOutcome, Publication
from ..notices import Notify, log_notice
from .branch_manager import BranchCreation, BranchLifecycleManager
from .client import RemoteRepoClient
from .pr_coordinator import PullRequestCoordinator
from .reconciler import FileReconciler
from .validator import RepoCheck, RepoValidator

logger = logging.getLogger(__name__)


def default_branch_name() -> str:
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    return f"publisher-{timestamp}"


@dataclass
class CleanResult:
    """Result of a clean action."""

    branch_name: str
    outcomes: list[DeletionOutcome] = field(default_factory=list)
    updated: bool = False

    @property
    def success(self) -> bool:
        return all(outcome.success for outcome in self.outcomes)


class Publisher:
    """Runs the branch/PR workflow and remote pruning on configured targets."""

    def __init__(
        self,
        client: RemoteRepoClient,
        settings: PublisherSettings,
        notify: Notify | None = None,
    ):
        """Initialize publisher.

        Args:
            client: Remote client shared by all components
            settings: Settings for this run
            notify: Notice callback (logs when None)
        """
        self._settings = settings
        self._notify = notify or log_notice
        self.validator = RepoValidator(client, settings, self._notify)
        self.branches = BranchLifecycleManager(client, settings, self._notify)
        self.pull_requests = PullRequestCoordinator(client, settings, self._notify)
        self.reconciler = FileReconciler(client, settings, self._notify)

    @property
    def targets(self) -> list[RepoTarget]:
        return self._settings.targets

    def check(self, silent: bool = False) -> list[RepoCheck]:
        """Validate every configured target."""
        return self.validator.check_repository(self.targets, silent=silent)

    def open_branch(self, branch_name: str | None = None) -> tuple[str, list[BranchCreation]]:
        """Create the working branch on every target.

        Returns:
            (branch name, per-target results) tuple.
        """
        branch_name = branch_name or default_branch_name()
        return branch_name, self.branches.new_branch(branch_name, self.targets)

    def finish(self, branch_name: str) -> bool:
        """Open, merge and clean up the PR of ``branch_name`` on every target."""
        return self.pull_requests.update_repository(branch_name, self.targets)

    def clean(
        self,
        publication: Publication,
        branch_name: str | None = None,
        silent: bool = False,
    ) -> CleanResult:
        """Prune every target on a working branch, then publish the deletions.

        Targets where something was deleted go through the PR sequence; on the
        others the working branch is removed again.
        """
        branch_name, creations = self.open_branch(branch_name)
        result = CleanResult(branch_name=branch_name)

        ready = []
        for target, created in zip(self.targets, creations):
            if created.ok:
                ready.append(target)
            else:
                logger.warning(f"Skipping {target.slug}: branch {created.value}")

        outcomes = self.reconciler.prune_all(branch_name, publication, ready, silent)
        pruned = dict(zip(ready, outcomes))
        result.outcomes = [
            pruned.get(target, DeletionOutcome.aborted()) for target in self.targets
        ]

        changed = []
        for target, outcome in zip(ready, outcomes):
            if outcome.deleted:
                changed.append(target)
            else:
                self.pull_requests.delete_branch_on_repo(branch_name, target)

        if changed:
            result.updated = self.pull_requests.update_repository(branch_name, changed)
        return result
