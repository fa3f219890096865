"""Shared fixtures for unit and feature tests."""

from __future__ import annotations

import pytest

from tests.helpers.fake_gateway import FakeRepositoryGateway
from warden.bootstrap import BootstrapWorkflow, WorkflowConfig
from warden.github.models import RepositoryRef

_WARDEN_ENV = (
    "WARDEN_GITHUB_TOKEN",
    "WARDEN_GITHUB_API_URL",
    "WARDEN_GITHUB_TIMEOUT_S",
    "WARDEN_WEBHOOK_SECRET",
    "WARDEN_ORGANIZATION",
    "WARDEN_ISSUE_MENTION",
    "WARDEN_PRIVATE_EMAIL",
    "WARDEN_MINIMUM_REVIEWS",
    "WARDEN_README_TEMPLATE",
    "WARDEN_RUN_TIMEOUT_S",
)


@pytest.fixture(autouse=True)
def _clean_warden_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's environment out of configuration tests."""
    for name in _WARDEN_ENV:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def repository() -> RepositoryRef:
    """Return the repository used by most workflow tests."""
    return RepositoryRef(owner="acme", name="widgets", default_branch="main")


@pytest.fixture
def gateway() -> FakeRepositoryGateway:
    """Return a gateway whose default branch exists at ``abc123``."""
    return FakeRepositoryGateway()


@pytest.fixture
def workflow_config() -> WorkflowConfig:
    """Return a configuration requiring two reviews."""
    return WorkflowConfig(minimum_reviews=2, issue_mention="acme/platform")


@pytest.fixture
def workflow(
    gateway: FakeRepositoryGateway, workflow_config: WorkflowConfig
) -> BootstrapWorkflow:
    """Return a workflow wired to the fake gateway."""
    return BootstrapWorkflow(gateway, workflow_config)
