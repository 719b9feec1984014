"""Tests for working branch creation."""

from __future__ import annotations

from ghpublisher.config import GitHubSettings, PublisherSettings, RepoTarget
from ghpublisher.git.branch_manager import BranchCreation, BranchLifecycleManager
from ghpublisher.git.client import RemoteRequestError
from tests._fakes import FakeClient, ok

BRANCH = "GET /repos/{owner}/{repo}/branches/{branch}"
BRANCHES = "GET /repos/{owner}/{repo}/branches"
CREATE_REF = "POST /repos/{owner}/{repo}/git/refs"


def _branch(name: str, sha: str = "abc123"):
    return ok({"name": name, "commit": {"sha": sha}})


def test_creates_branch_from_base_head(client: FakeClient, settings, target) -> None:
    client.on(BRANCH, _branch("main"))
    client.on(CREATE_REF, ok({"ref": "refs/heads/pub-1"}, status=201))
    notices: list[str] = []

    manager = BranchLifecycleManager(client, settings, notices.append)
    result = manager.new_branch_on_repo("pub-1", target)

    assert result is BranchCreation.CREATED
    assert result.ok
    assert client.calls_to(BRANCH) == [{"owner": "a", "repo": "b", "branch": "main"}]
    assert client.calls_to(CREATE_REF) == [
        {"owner": "a", "repo": "b", "ref": "refs/heads/pub-1", "sha": "abc123"}
    ]
    assert notices


def test_base_branch_found_in_large_repository(client: FakeClient, settings, target) -> None:
    # A full first page of the listing that does not hold the base branch
    first_page = [{"name": f"feature-{i}", "commit": {"sha": "x"}} for i in range(100)]
    client.on(BRANCHES, ok(first_page))
    client.on(BRANCH, lambda params: _branch(params["branch"], "deadbeef"))
    client.on(CREATE_REF, ok(status=201))

    result = BranchLifecycleManager(client, settings).new_branch_on_repo("pub-1", target)

    assert result is BranchCreation.CREATED
    assert client.calls_to(CREATE_REF)[0]["sha"] == "deadbeef"
    assert client.calls_to(BRANCHES) == []


def test_duplicate_branch_is_idempotent(client: FakeClient, settings, target) -> None:
    remote_refs: list[str] = []

    def create_ref(params):
        if params["ref"] in remote_refs:
            return RemoteRequestError(422, "Reference already exists")
        remote_refs.append(params["ref"])
        return ok({"ref": params["ref"]}, status=201)

    def get_branch(params):
        if params["branch"] == "main" or f"refs/heads/{params['branch']}" in remote_refs:
            return _branch(params["branch"])
        return RemoteRequestError(404, "Branch not found")

    client.on(BRANCH, get_branch)
    client.on(CREATE_REF, create_ref)
    manager = BranchLifecycleManager(client, settings)

    first = manager.new_branch_on_repo("pub-1", target)
    second = manager.new_branch_on_repo("pub-1", target)

    assert first is BranchCreation.CREATED
    assert second is BranchCreation.ALREADY_EXISTS
    assert second.ok
    assert remote_refs == ["refs/heads/pub-1"]


def test_missing_base_branch(client: FakeClient, settings, target) -> None:
    client.on(BRANCH, RemoteRequestError(404, "Branch not found"))
    manager = BranchLifecycleManager(client, settings, lambda message: None)

    result = manager.new_branch_on_repo("pub-1", target)

    assert result is BranchCreation.BASE_MISSING
    assert not result.ok
    assert client.calls_to(CREATE_REF) == []


def test_base_without_head_commit_fails(client: FakeClient, settings, target) -> None:
    client.on(BRANCH, ok({"name": "main"}))

    result = BranchLifecycleManager(client, settings).new_branch_on_repo("pub-1", target)

    assert result is BranchCreation.FAILED
    assert client.calls_to(CREATE_REF) == []


def test_rejected_create_without_existing_branch_fails(
    client: FakeClient, settings, target
) -> None:
    client.on(
        BRANCH,
        lambda params: (
            _branch("main") if params["branch"] == "main" else RemoteRequestError(404, "Not Found")
        ),
    )
    client.on(CREATE_REF, RemoteRequestError(403, "Forbidden"))
    manager = BranchLifecycleManager(client, settings)

    assert manager.new_branch_on_repo("pub-1", target) is BranchCreation.FAILED
    assert [params["branch"] for params in client.calls_to(BRANCH)] == ["main", "pub-1"]


def test_new_branch_does_not_stop_on_failure(client: FakeClient) -> None:
    broken = RepoTarget(owner="a", repo="broken")
    healthy = RepoTarget(owner="a", repo="healthy")

    def get_branch(params):
        if params["repo"] == "broken":
            return RemoteRequestError(500, "Server error")
        return _branch("main")

    client.on(BRANCH, get_branch)
    client.on(CREATE_REF, ok(status=201))
    manager = BranchLifecycleManager(client, PublisherSettings(targets=[broken, healthy]))

    results = manager.new_branch("pub-1", [broken, healthy])

    assert results == [BranchCreation.FAILED, BranchCreation.CREATED]


def test_new_branch_parallel_keeps_target_order(client: FakeClient) -> None:
    targets = [RepoTarget(owner="a", repo=f"r{i}") for i in range(4)]
    client.on(BRANCH, _branch("main"))
    client.on(CREATE_REF, ok(status=201))
    settings = PublisherSettings(targets=targets, github=GitHubSettings(max_workers=3))

    results = BranchLifecycleManager(client, settings).new_branch("pub-1", targets)

    assert results == [BranchCreation.CREATED] * 4
    assert {params["repo"] for params in client.calls_to(CREATE_REF)} == {
        "r0",
        "r1",
        "r2",
        "r3",
    }
