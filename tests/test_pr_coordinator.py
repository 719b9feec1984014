"""Tests for the pull request workflow."""

from __future__ import annotations

from ghpublisher.config import PublisherSettings, RepoTarget
from ghpublisher.git.client import RemoteRequestError
from ghpublisher.git.pr_coordinator import PullRequestCoordinator
from tests._fakes import FakeClient, ok

CREATE_PR = "POST /repos/{owner}/{repo}/pulls"
LIST_PRS = "GET /repos/{owner}/{repo}/pulls"
MERGE = "PUT /repos/{owner}/{repo}/pulls/{pull_number}/merge"
DELETE_REF = "DELETE /repos/{owner}/{repo}/git/refs/heads/{branch}"


def test_pull_request_created(client: FakeClient, settings, target) -> None:
    client.on(CREATE_PR, ok({"number": 7}, status=201))

    number = PullRequestCoordinator(client, settings).pull_request_on_repo("pub-1", target)

    assert number == 7
    params = client.calls_to(CREATE_PR)[0]
    assert params["head"] == "pub-1"
    assert params["base"] == "main"
    assert "pub-1" in params["title"]


def test_existing_pull_request_is_reused(client: FakeClient, settings, target) -> None:
    client.on(CREATE_PR, RemoteRequestError(422, "A pull request already exists"))
    client.on(LIST_PRS, ok([{"number": 3}, {"number": 9}]))

    number = PullRequestCoordinator(client, settings).pull_request_on_repo("pub-1", target)

    assert number == 3
    assert client.calls_to(LIST_PRS)[0]["state"] == "open"


def test_no_usable_pull_request_returns_zero(client: FakeClient, settings, target) -> None:
    client.on(CREATE_PR, RemoteRequestError(422, "No commits between main and pub-1"))
    client.on(LIST_PRS, ok([]))
    notices: list[str] = []

    coordinator = PullRequestCoordinator(client, settings, notices.append)

    assert coordinator.pull_request_on_repo("pub-1", target) == 0
    assert notices


def test_merge_title_uses_commit_message(client: FakeClient, settings) -> None:
    target = RepoTarget(owner="a", repo="b", commit_msg="docs: publish")
    client.on(MERGE, ok({"merged": True}))

    merged = PullRequestCoordinator(client, settings).merge_pull_request_on_repo(5, target)

    assert merged is True
    params = client.calls_to(MERGE)[0]
    assert params["commit_title"] == "docs: publish #5"
    assert params["merge_method"] == "squash"


def test_merge_title_default(client: FakeClient, settings, target) -> None:
    client.on(MERGE, ok({"merged": True}))

    PullRequestCoordinator(client, settings).merge_pull_request_on_repo(5, target)

    assert client.calls_to(MERGE)[0]["commit_title"] == "[PUBLISHER] Merge #5"


def test_merge_conflict_reported(client: FakeClient, settings, target) -> None:
    client.on(MERGE, RemoteRequestError(405, "Pull Request is not mergeable"))
    notices: list[str] = []

    merged = PullRequestCoordinator(client, settings, notices.append).merge_pull_request_on_repo(
        5, target
    )

    assert merged is False
    assert len(notices) == 1
    assert len(client.calls_to(MERGE)) == 1


def test_delete_branch_failure_is_swallowed(client: FakeClient, settings, target) -> None:
    client.on(DELETE_REF, RemoteRequestError(422, "Reference does not exist"))

    assert PullRequestCoordinator(client, settings).delete_branch_on_repo("pub-1", target) is False


def test_update_merges_then_deletes_branch(client: FakeClient, settings, target) -> None:
    client.on(CREATE_PR, ok({"number": 7}, status=201))
    client.on(MERGE, ok({"merged": True}))
    client.on(DELETE_REF, ok(status=204))

    assert PullRequestCoordinator(client, settings).update_repository_on_one("pub-1", target)
    assert [route for route, _ in client.calls] == [CREATE_PR, MERGE, DELETE_REF]


def test_update_keeps_branch_when_merge_fails(client: FakeClient, settings, target) -> None:
    client.on(CREATE_PR, ok({"number": 7}, status=201))
    client.on(MERGE, RemoteRequestError(409, "Merge conflict"))

    assert not PullRequestCoordinator(client, settings).update_repository_on_one("pub-1", target)
    assert client.calls_to(DELETE_REF) == []


def test_update_without_auto_merge_leaves_pr_open(client: FakeClient, settings) -> None:
    target = RepoTarget(owner="a", repo="b", automatically_merge_pr=False)
    client.on(CREATE_PR, ok({"number": 7}, status=201))

    assert PullRequestCoordinator(client, settings).update_repository_on_one("pub-1", target)
    assert client.calls_to(MERGE) == []


def test_update_fails_without_pull_request(client: FakeClient, settings, target) -> None:
    client.on(CREATE_PR, RemoteRequestError(422, "No commits"))
    client.on(LIST_PRS, RemoteRequestError(500, "Server error"))

    assert not PullRequestCoordinator(client, settings).update_repository_on_one("pub-1", target)
    assert client.calls_to(MERGE) == []


def _per_repo_prs(client: FakeClient, failing: set[str]) -> None:
    def create_pr(params):
        if params["repo"] in failing:
            return RemoteRequestError(422, "No commits")
        return ok({"number": 1}, status=201)

    client.on(CREATE_PR, create_pr)
    client.on(LIST_PRS, ok([]))
    client.on(MERGE, ok({"merged": True}))
    client.on(DELETE_REF, ok(status=204))


def test_update_repository_succeeds_if_any_target_succeeds(client: FakeClient) -> None:
    targets = [RepoTarget(owner="a", repo="t1"), RepoTarget(owner="a", repo="t2")]
    _per_repo_prs(client, failing={"t1"})
    coordinator = PullRequestCoordinator(client, PublisherSettings(targets=targets))

    assert coordinator.update_repository("pub-1", targets) is True


def test_update_repository_fails_if_every_target_fails(client: FakeClient) -> None:
    targets = [RepoTarget(owner="a", repo="t1"), RepoTarget(owner="a", repo="t2")]
    _per_repo_prs(client, failing={"t1", "t2"})
    coordinator = PullRequestCoordinator(client, PublisherSettings(targets=targets))

    assert coordinator.update_repository("pub-1", targets) is False
    assert len(client.calls_to(CREATE_PR)) == 2
