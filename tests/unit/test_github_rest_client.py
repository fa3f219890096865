"""Unit tests for the GitHub REST gateway client."""

from __future__ import annotations

import base64
import json
import secrets
import typing as typ

import httpx
import pytest

from warden.github import GitHubRESTClient, GitHubRESTConfig, RepositoryGateway
from warden.github.errors import (
    GitHubAPIError,
    GitHubConfigError,
    GitHubNotFoundError,
    GitHubResponseShapeError,
)
from warden.github.models import (
    CommitAuthor,
    CommitDescriptor,
    ContentChange,
    ProtectionPolicy,
)

_TOKEN = secrets.token_hex(8)
_API_URL = "https://github.example.test/api/v3"

type _Reply = tuple[int, typ.Any] | httpx.Response | Exception


class _Recorder:
    """Capture requests and answer with canned replies in order."""

    def __init__(self, replies: list[_Reply]) -> None:
        self.replies = replies
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        reply = self.replies[len(self.requests) - 1]
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, httpx.Response):
            return reply
        status, payload = reply
        return httpx.Response(status_code=status, json=payload)

    def body(self, index: int = 0) -> dict[str, typ.Any]:
        return json.loads(self.requests[index].content.decode("utf-8"))


def _make_client(
    replies: list[_Reply],
) -> tuple[GitHubRESTClient, _Recorder]:
    recorder = _Recorder(replies)
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(recorder))
    client = GitHubRESTClient(
        GitHubRESTConfig(token=_TOKEN, api_url=_API_URL),
        http_client=http_client,
    )
    return client, recorder


def test_client_satisfies_gateway_protocol() -> None:
    """The REST client can be passed wherever a gateway is expected."""
    client, _ = _make_client([])
    assert isinstance(client, RepositoryGateway)


def test_empty_token_is_rejected() -> None:
    """A blank token fails fast."""
    with pytest.raises(GitHubConfigError, match="non-empty"):
        GitHubRESTClient(GitHubRESTConfig(token="  "))


class TestConfigFromEnv:
    """Environment parsing for GitHubRESTConfig."""

    def test_requires_token(self) -> None:
        """A missing token raises a configuration error."""
        with pytest.raises(GitHubConfigError, match="WARDEN_GITHUB_TOKEN"):
            GitHubRESTConfig.from_env()

    def test_reads_values(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Token, API URL and timeout come from the environment."""
        monkeypatch.setenv("WARDEN_GITHUB_TOKEN", _TOKEN)
        monkeypatch.setenv("WARDEN_GITHUB_API_URL", f"{_API_URL}/")
        monkeypatch.setenv("WARDEN_GITHUB_TIMEOUT_S", "5")

        config = GitHubRESTConfig.from_env()

        assert config.token == _TOKEN
        assert config.api_url == _API_URL
        assert config.timeout_s == 5.0

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Unset optional values use the public API and a 20 second timeout."""
        monkeypatch.setenv("WARDEN_GITHUB_TOKEN", _TOKEN)

        config = GitHubRESTConfig.from_env()

        assert config.api_url == "https://api.github.com"
        assert config.timeout_s == 20.0

    @pytest.mark.parametrize("raw", ["soon", "0", "-1"])
    def test_rejects_bad_timeout(
        self, monkeypatch: pytest.MonkeyPatch, raw: str
    ) -> None:
        """Timeouts must be positive numbers."""
        monkeypatch.setenv("WARDEN_GITHUB_TOKEN", _TOKEN)
        monkeypatch.setenv("WARDEN_GITHUB_TIMEOUT_S", raw)

        with pytest.raises(GitHubConfigError, match="WARDEN_GITHUB_TIMEOUT_S"):
            GitHubRESTConfig.from_env()


class TestRefs:
    """Ref lookup and update."""

    async def test_get_ref_returns_sha(self) -> None:
        """The ref's object SHA is returned."""
        client, recorder = _make_client(
            [(200, {"ref": "refs/heads/main", "object": {"sha": "abc123"}})]
        )

        sha = await client.get_ref("acme", "widgets", "heads/main")

        assert sha == "abc123"
        request = recorder.requests[0]
        assert request.method == "GET"
        assert str(request.url) == f"{_API_URL}/repos/acme/widgets/git/ref/heads/main"

    @pytest.mark.parametrize("status", [404, 409])
    async def test_missing_ref_raises_not_found(self, status: int) -> None:
        """Absent refs and empty repositories both read as not-found."""
        client, _ = _make_client([(status, {"message": "Not Found"})])

        with pytest.raises(GitHubNotFoundError) as excinfo:
            await client.get_ref("acme", "empty", "heads/main")

        assert excinfo.value.status_code == status

    async def test_update_ref_patches_without_force(self) -> None:
        """Ref updates are fast-forward only by default."""
        client, recorder = _make_client([(200, {"object": {"sha": "def456"}})])

        await client.update_ref("acme", "widgets", "heads/main", "def456")

        request = recorder.requests[0]
        assert request.method == "PATCH"
        assert request.url.path.endswith("/repos/acme/widgets/git/refs/heads/main")
        assert recorder.body() == {"sha": "def456", "force": False}


class TestCommits:
    """Tree and commit creation."""

    async def test_create_tree_sends_inline_content(self) -> None:
        """Tree entries carry the README content over the base tree."""
        client, recorder = _make_client([(201, {"sha": "tree1"})])

        sha = await client.create_tree(
            "acme", "widgets", "abc123", [ContentChange("README.md", "# widgets\n")]
        )

        assert sha == "tree1"
        assert recorder.body() == {
            "base_tree": "abc123",
            "tree": [
                {
                    "path": "README.md",
                    "mode": "100644",
                    "type": "blob",
                    "content": "# widgets\n",
                }
            ],
        }

    async def test_get_commit_decodes_tree(self) -> None:
        """Commit lookups return the commit and tree SHAs."""
        client, _ = _make_client(
            [(200, {"sha": "abc123", "tree": {"sha": "t0"}, "message": "init"})]
        )

        commit = await client.get_commit("acme", "widgets", "abc123")

        assert commit.sha == "abc123"
        assert commit.tree_sha == "t0"

    async def test_create_commit_sends_parents_and_author(self) -> None:
        """Commit creation posts the message, tree, parents and author."""
        client, recorder = _make_client([(201, {"sha": "def456"})])
        descriptor = CommitDescriptor(
            message="Setting up Branch Protections for widgets",
            tree_sha="tree1",
            parent_shas=("abc123",),
            author=CommitAuthor(name="warden-bot", email="bot@acme.test"),
        )

        sha = await client.create_commit("acme", "widgets", descriptor)

        assert sha == "def456"
        assert recorder.body() == {
            "message": "Setting up Branch Protections for widgets",
            "tree": "tree1",
            "parents": ["abc123"],
            "author": {"name": "warden-bot", "email": "bot@acme.test"},
        }

    async def test_create_file_base64_encodes_content(self) -> None:
        """The contents API receives base64 content on the named branch."""
        client, recorder = _make_client(
            [(201, {"content": {"path": "README.md"}, "commit": {"sha": "init789"}})]
        )

        sha = await client.create_file(
            "acme",
            "empty",
            ContentChange("README.md", "# empty\n"),
            branch="main",
            committer=CommitAuthor(name="warden-bot", email="private@email.com"),
            message="Setting up Branch Protections for empty",
        )

        assert sha == "init789"
        request = recorder.requests[0]
        assert request.method == "PUT"
        assert request.url.path.endswith("/repos/acme/empty/contents/README.md")
        body = recorder.body()
        assert base64.b64decode(body["content"]).decode("utf-8") == "# empty\n"
        assert body["branch"] == "main"
        assert body["committer"]["email"] == "private@email.com"


class TestProtectionAndIssues:
    """Branch protection, issues and identity."""

    async def test_protection_payload(self) -> None:
        """The protection body carries the required keys and review rules."""
        client, recorder = _make_client([(200, {"url": "x"})])

        await client.update_branch_protection(
            "acme", "widgets", "main", ProtectionPolicy(minimum_reviews=2)
        )

        request = recorder.requests[0]
        assert request.method == "PUT"
        assert request.url.path.endswith("/repos/acme/widgets/branches/main/protection")
        body = recorder.body()
        assert body["required_status_checks"] is None
        assert body["enforce_admins"] is False
        assert body["restrictions"] is None
        assert body["allow_force_pushes"] is False
        assert body["required_pull_request_reviews"] == {
            "required_approving_review_count": 2,
            "require_code_owner_reviews": True,
            "dismiss_stale_reviews": False,
        }

    async def test_create_issue_returns_number(self) -> None:
        """Issue creation returns the issue number."""
        client, recorder = _make_client([(201, {"number": 7, "id": 1234})])

        number = await client.create_issue("acme", "widgets", "Title", "Body")

        assert number == 7
        assert recorder.body() == {"title": "Title", "body": "Body"}

    async def test_authenticated_user_with_private_email(self) -> None:
        """A null email is reported as ``None``."""
        client, _ = _make_client([(200, {"login": "warden-bot", "email": None})])

        user = await client.get_authenticated_user()

        assert user.login == "warden-bot"
        assert user.email is None


class TestErrorMapping:
    """Transport and HTTP failures map onto gateway errors."""

    async def test_server_error(self) -> None:
        """5xx responses raise GitHubAPIError with the status code."""
        client, _ = _make_client([(502, {"message": "Bad Gateway"})])

        with pytest.raises(GitHubAPIError) as excinfo:
            await client.create_issue("acme", "widgets", "t", "b")

        assert excinfo.value.status_code == 502
        assert not isinstance(excinfo.value, GitHubNotFoundError)

    async def test_not_found_outside_ref_lookup(self) -> None:
        """404 on other endpoints is also a not-found error."""
        client, _ = _make_client([(404, {"message": "Not Found"})])

        with pytest.raises(GitHubNotFoundError):
            await client.get_commit("acme", "widgets", "missing")

    async def test_conflict_outside_ref_lookup_is_not_absence(self) -> None:
        """409 means an empty repository only for ref lookups."""
        client, _ = _make_client([(409, {"message": "Conflict"})])

        with pytest.raises(GitHubAPIError) as excinfo:
            await client.update_ref("acme", "widgets", "heads/main", "x")

        assert not isinstance(excinfo.value, GitHubNotFoundError)

    async def test_timeout(self) -> None:
        """Transport timeouts raise GitHubAPIError without a status code."""
        client, _ = _make_client([httpx.ReadTimeout("slow")])

        with pytest.raises(GitHubAPIError, match="timed out") as excinfo:
            await client.get_authenticated_user()

        assert excinfo.value.status_code is None

    async def test_network_error(self) -> None:
        """Connection failures raise GitHubAPIError."""
        client, _ = _make_client([httpx.ConnectError("refused")])

        with pytest.raises(GitHubAPIError, match="network error"):
            await client.get_authenticated_user()

    async def test_malformed_body(self) -> None:
        """Bodies missing expected fields raise GitHubResponseShapeError."""
        client, _ = _make_client([(200, {"ref": "refs/heads/main"})])

        with pytest.raises(GitHubResponseShapeError):
            await client.get_ref("acme", "widgets", "heads/main")


class TestRateLimit:
    """Rate-limit headers are remembered."""

    async def test_last_rate_limit_is_recorded(self) -> None:
        """The snapshot reflects the most recent response headers."""
        client, _ = _make_client(
            [
                httpx.Response(
                    200,
                    json={"login": "warden-bot"},
                    headers={
                        "X-RateLimit-Limit": "5000",
                        "X-RateLimit-Remaining": "4990",
                        "X-RateLimit-Reset": "1700000000",
                    },
                )
            ]
        )
        assert client.last_rate_limit is None

        await client.get_authenticated_user()

        snapshot = client.last_rate_limit
        assert snapshot is not None
        assert (snapshot.limit, snapshot.remaining, snapshot.reset_epoch) == (
            5000,
            4990,
            1700000000,
        )

    async def test_error_responses_also_update_snapshot(self) -> None:
        """Failed calls still record the remaining budget."""
        client, _ = _make_client(
            [
                httpx.Response(
                    403,
                    json={"message": "API rate limit exceeded"},
                    headers={"X-RateLimit-Limit": "5000", "X-RateLimit-Remaining": "0"},
                )
            ]
        )

        with pytest.raises(GitHubAPIError):
            await client.get_authenticated_user()

        assert client.last_rate_limit is not None
        assert client.last_rate_limit.remaining == 0
