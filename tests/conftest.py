from __future__ import annotations

import pytest

from ghpublisher.config import PublisherSettings, RepoTarget, UploadSettings
from tests._fakes import FakeClient


@pytest.fixture
def client() -> FakeClient:
    """Fresh fake remote for each test."""
    return FakeClient()


@pytest.fixture
def target() -> RepoTarget:
    return RepoTarget(owner="a", repo="b", branch="main", autoclean=True)


@pytest.fixture
def settings(target: RepoTarget) -> PublisherSettings:
    return PublisherSettings(
        targets=[target],
        upload=UploadSettings(default_name="docs"),
    )
