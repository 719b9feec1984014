"""Prune remote files that the local publication no longer shares."""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence

from ..config import PublisherSettings, RepoTarget, UploadBehavior
from ..models import DeletionOutcome, MonoRepoContext, Publication, RemoteFileEntry
from ..notices import Notify, log_notice
from .client import RemoteRepoClient, RemoteRequestError, RequestCancelled
from .fanout import fan_out
from .index_guard import IndexFileGuard
from .rate_limit import verify_rate_limit

logger = logging.getLogger(__name__)

ATTACHMENT_PATTERN = re.compile(
    r"\.(png|jpe?g|gif|bmp|svg|webp|webm|mp[34]|wav|m4a|ogg|3gp|flac|ogv|mov|mkv|pdf)$",
    re.IGNORECASE,
)
REGEX_ENTRY = re.compile(r"^/(.*)/([igmsuy]*)$")
_FLAGS = {"i": re.IGNORECASE, "m": re.MULTILINE, "s": re.DOTALL}

_BASENAME = re.compile(r"([^/\\.]*)(\..*)?$")


def is_attachment(path: str) -> bool:
    return bool(ATTACHMENT_PATTERN.search(path.strip()))


def _compile_entry(entry: str) -> re.Pattern[str] | None:
    match = REGEX_ENTRY.match(entry)
    if not match:
        return None
    flags = 0
    for flag in match.group(2):
        flags |= _FLAGS.get(flag, 0)
    try:
        return re.compile(match.group(1), flags)
    except re.error as e:
        logger.warning(f"Invalid exclusion pattern {entry}: {e}")
        return None


def is_excluded_from_deletion(path: str, excluded: Sequence[str]) -> bool:
    """True if ``path`` matches an exclusion entry.

    Entries written ``/pattern/flags`` are regular expressions, anything else
    is a literal substring.
    """
    for entry in excluded:
        pattern = _compile_entry(entry)
        if pattern is not None and pattern.search(path):
            return True
        if entry.strip() and entry.strip() in path.strip():
            return True
    return False


def has_managed_subtree(settings: PublisherSettings) -> bool:
    """False when the upload settings cannot delimit a managed subtree."""
    upload = settings.upload
    if upload.behavior is UploadBehavior.FIXED:
        return False
    if not upload.default_name:
        return False
    if upload.behavior is UploadBehavior.FRONTMATTER and not upload.root_folder:
        return False
    return True


def filter_remote_files(
    files: Sequence[RemoteFileEntry],
    settings: PublisherSettings,
) -> list[RemoteFileEntry]:
    """Keep the files inside the managed subtree that may be pruned.

    A file qualifies if it lies in the default folder, the root folder (front
    matter behavior) or the attachment folder, is not excluded, and is
    markdown or a supported attachment.
    """
    if not has_managed_subtree(settings):
        return []

    upload = settings.upload
    attachment_folder = settings.embed.folder
    excluded = settings.autoclean.excluded

    candidates = []
    for entry in files:
        path = entry.path
        in_subtree = (
            upload.default_name in path
            or (upload.behavior is UploadBehavior.FRONTMATTER and upload.root_folder in path)
            or (bool(attachment_folder) and attachment_folder in path)
        )
        if not in_subtree:
            continue
        if is_excluded_from_deletion(path, excluded):
            continue
        if is_attachment(path) or path.endswith(".md"):
            candidates.append(entry)
    return candidates


class FileReconciler:
    """Deletes remote files of a target that are no longer shared to it."""

    def __init__(
        self,
        client: RemoteRepoClient,
        settings: PublisherSettings,
        notify: Notify | None = None,
        index_guard: IndexFileGuard | None = None,
    ):
        self._client = client
        self._settings = settings
        self._notify = notify or log_notice
        self._index_guard = index_guard or IndexFileGuard(client, settings)

    def fetch_remote_files(self, branch_name: str, target: RepoTarget) -> list[RemoteFileEntry]:
        """List every file of the branch tree, in listing order.

        Raises:
            RemoteRequestError: If the tree cannot be listed.
        """
        response = self._client.request(
            "GET /repos/{owner}/{repo}/git/trees/{tree_sha}",
            owner=target.owner,
            repo=target.repo,
            tree_sha=branch_name,
            recursive=1,
        )
        tree = (response.data or {}).get("tree", [])
        if (response.data or {}).get("truncated"):
            logger.warning(f"Tree listing of {target.slug} was truncated")

        files = []
        for item in tree:
            if item.get("type") != "blob":
                continue
            path = item.get("path", "")
            basename = _BASENAME.search(path)
            if basename and basename.group(1):
                files.append(RemoteFileEntry(path=path, sha=item.get("sha", "")))
        return files

    def prune_all(
        self,
        branch_name: str,
        publication: Publication,
        targets: Sequence[RepoTarget],
        silent: bool = False,
    ) -> list[DeletionOutcome]:
        """Prune every target; one outcome per target, in target order."""
        return fan_out(
            lambda target: self.prune_repo(
                branch_name, MonoRepoContext(target, publication), silent
            ),
            targets,
            self._settings.github.max_workers,
        )

    def prune_repos(
        self,
        branch_name: str,
        publication: Publication,
        targets: Sequence[RepoTarget],
        silent: bool = False,
    ) -> DeletionOutcome:
        """Prune every target and return the first target's outcome.

        Callers that need every outcome use prune_all().
        """
        outcomes = self.prune_all(branch_name, publication, targets, silent)
        if not outcomes:
            return DeletionOutcome()
        return outcomes[0]

    def prune_repo(
        self,
        branch_name: str,
        context: MonoRepoContext,
        silent: bool = False,
    ) -> DeletionOutcome:
        """Delete the target's remote files that are no longer shared to it.

        Args:
            branch_name: Branch to delete on
            context: Target and the publication it is compared with
            silent: Do not send notices

        Returns:
            DeletionOutcome for this target.
        """
        target = context.target
        if not target.autoclean:
            return DeletionOutcome()

        try:
            remote_files = self.fetch_remote_files(branch_name, target)
        except RequestCancelled:
            return DeletionOutcome.aborted()
        except RemoteRequestError as e:
            logger.warning(f"Failed to list files of {target.slug}: {e}")
            return DeletionOutcome.aborted()

        if not has_managed_subtree(self._settings) and not silent:
            self._notify(self._configuration_error())

        candidates = filter_remote_files(remote_files, self._settings)
        rate_limit = self._settings.github.rate_limit
        if (rate_limit == 0 or len(candidates) > rate_limit) and verify_rate_limit(
            self._client, len(candidates), self._notify, silent=True
        ) == 0:
            return DeletionOutcome.aborted()

        managed = context.managed_paths
        shared = context.shared_paths
        outcome = DeletionOutcome()
        for entry in candidates:
            if not self._needs_deletion(entry, managed, shared):
                continue
            if self._index_guard.is_index_candidate(entry.path) and (
                self._index_guard.check_index_files(entry.path, target, branch_name)
            ):
                continue
            self._delete(entry, branch_name, target, outcome)

        outcome.success = not outcome.undeleted
        if not silent:
            self._notify(self._summary(outcome))
        return outcome

    @staticmethod
    def _needs_deletion(entry: RemoteFileEntry, managed: set[str], shared: set[str]) -> bool:
        if entry.path in managed:
            return False
        if entry.path in shared:
            # Shared to another target only: stale markdown copies still go
            return entry.is_markdown
        return True

    def _delete(
        self,
        entry: RemoteFileEntry,
        branch_name: str,
        target: RepoTarget,
        outcome: DeletionOutcome,
    ) -> None:
        logger.info(f"Deleting {entry.path} from {target.slug}")
        try:
            response = self._client.request(
                "DELETE /repos/{owner}/{repo}/contents/{path}",
                owner=target.owner,
                repo=target.repo,
                path=entry.path,
                message=f"DELETE FILE : {entry.path}",
                sha=entry.sha,
                branch=branch_name,
            )
        except RequestCancelled:
            return
        except RemoteRequestError as e:
            logger.warning(f"Failed to delete {entry.path} from {target.slug}: {e}")
            outcome.undeleted.append(entry.path)
            return

        if response.status == 200:
            outcome.deleted.append(entry.path)
        else:
            outcome.undeleted.append(entry.path)

    def _configuration_error(self) -> str:
        upload = self._settings.upload
        if upload.behavior is UploadBehavior.FIXED:
            return "Cleaning is disabled with the fixed folder behavior"
        if not upload.default_name:
            return "Error: the default folder must be set to clean the repository"
        return "Error: the root folder must be set to clean the repository"

    @staticmethod
    def _summary(outcome: DeletionOutcome) -> str:
        if not outcome.deleted and not outcome.undeleted:
            return "No file has been deleted"
        parts = []
        if outcome.deleted:
            parts.append(f"{len(outcome.deleted)} file(s) deleted")
        if outcome.undeleted:
            parts.append(f"{len(outcome.undeleted)} file(s) could not be deleted")
        return ", ".join(parts)
