"""Branch, pull request and pruning workflow on GitHub repositories."""

from .branch_manager import BranchCreation, BranchLifecycleManager
from .client import (
    GhApiClient,
    RemoteRepoClient,
    RemoteRequestError,
    RemoteResponse,
    RequestCancelled,
)
from .index_guard import FrontMatterError, IndexFileGuard, parse_front_matter
from .pr_coordinator import PullRequestCoordinator
from .publisher import CleanResult, Publisher
from .rate_limit import verify_rate_limit
from .reconciler import FileReconciler, filter_remote_files, is_excluded_from_deletion
from .validator import RepoCheck, RepoCheckStatus, RepoValidator

__all__ = [
    "BranchCreation",
    "BranchLifecycleManager",
    "CleanResult",
    "FileReconciler",
    "FrontMatterError",
    "GhApiClient",
    "IndexFileGuard",
    "Publisher",
    "PullRequestCoordinator",
    "RemoteRepoClient",
    "RemoteRequestError",
    "RemoteResponse",
    "RepoCheck",
    "RepoCheckStatus",
    "RepoValidator",
    "RequestCancelled",
    "filter_remote_files",
    "is_excluded_from_deletion",
    "parse_front_matter",
    "verify_rate_limit",
]
