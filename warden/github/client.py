"""GitHub REST implementation of :class:`RepositoryGateway`."""

from __future__ import annotations

import base64
import dataclasses
import os
import typing as typ

import httpx
import msgspec

from .errors import (
    GitHubAPIError,
    GitHubConfigError,
    GitHubNotFoundError,
    GitHubResponseShapeError,
)
from .models import AuthenticatedUser, GitCommit, RateLimitSnapshot

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .models import CommitAuthor, CommitDescriptor, ContentChange, ProtectionPolicy

_DEFAULT_API_URL = "https://api.github.com"
_DEFAULT_TIMEOUT_S = 20.0
_API_VERSION = "2022-11-28"

_HTTP_ERROR_STATUS_THRESHOLD = 400
_HTTP_NOT_FOUND = 404
# Ref lookups on a repository with no commits answer "409 Git Repository is empty".
_HTTP_EMPTY_REPOSITORY = 409

_T = typ.TypeVar("_T")


@dataclasses.dataclass(frozen=True, slots=True)
class GitHubRESTConfig:
    """Configuration for the GitHub REST API client."""

    token: str
    api_url: str = _DEFAULT_API_URL
    timeout_s: float = _DEFAULT_TIMEOUT_S
    user_agent: str = "warden/0.1"

    @classmethod
    def from_env(cls) -> GitHubRESTConfig:
        """Build configuration from ``WARDEN_GITHUB_*`` environment variables.

        Raises
        ------
        GitHubConfigError
            If ``WARDEN_GITHUB_TOKEN`` is unset or the timeout is invalid.

        """
        token = os.environ.get("WARDEN_GITHUB_TOKEN", "").strip()
        if not token:
            raise GitHubConfigError.missing_token()

        api_url = os.environ.get("WARDEN_GITHUB_API_URL", "").strip()
        raw_timeout = os.environ.get("WARDEN_GITHUB_TIMEOUT_S", "").strip()
        timeout_s = _DEFAULT_TIMEOUT_S
        if raw_timeout:
            try:
                timeout_s = float(raw_timeout)
            except ValueError as exc:
                raise GitHubConfigError.invalid_timeout(raw_timeout) from exc
            if timeout_s <= 0:
                raise GitHubConfigError.invalid_timeout(raw_timeout)

        return cls(
            token=token,
            api_url=api_url.rstrip("/") or _DEFAULT_API_URL,
            timeout_s=timeout_s,
        )


class _ShaObject(msgspec.Struct):
    sha: str


class _RefResponse(msgspec.Struct):
    object: _ShaObject


class _CommitResponse(msgspec.Struct):
    sha: str
    tree: _ShaObject


class _ContentsResponse(msgspec.Struct):
    commit: _ShaObject


class _IssueResponse(msgspec.Struct):
    number: int


class _UserResponse(msgspec.Struct):
    login: str
    email: str | None = None


def _to_int_or_none(value: str | None) -> int | None:
    if value is None or not value.isdigit():
        return None
    return int(value)


def _rate_limit_from_headers(headers: httpx.Headers) -> RateLimitSnapshot | None:
    """Extract the rate-limit snapshot, if GitHub reported one."""
    limit = _to_int_or_none(headers.get("X-RateLimit-Limit"))
    remaining = _to_int_or_none(headers.get("X-RateLimit-Remaining"))
    if limit is None or remaining is None:
        return None
    return RateLimitSnapshot(
        limit=limit,
        remaining=remaining,
        reset_epoch=_to_int_or_none(headers.get("X-RateLimit-Reset")),
    )


def _decode(response: httpx.Response, endpoint: str, type_: type[_T]) -> _T:
    try:
        return msgspec.json.decode(response.content, type=type_)
    except msgspec.DecodeError as exc:
        raise GitHubResponseShapeError.invalid(endpoint, str(exc)) from exc


class GitHubRESTClient:
    """Repository gateway backed by the GitHub REST v3 API.

    Parameters
    ----------
    config
        API configuration.
    http_client
        Optional pre-built ``httpx.AsyncClient``; tests pass one wired to an
        ``httpx.MockTransport``. When omitted the instance owns its client.

    """

    def __init__(
        self,
        config: GitHubRESTConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialise the client with the provided API configuration."""
        if not config.token.strip():
            raise GitHubConfigError.empty_token()

        self._config = config
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=config.timeout_s,
            headers={
                "Authorization": f"Bearer {config.token}",
                "User-Agent": config.user_agent,
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": _API_VERSION,
            },
        )
        self._last_rate_limit: RateLimitSnapshot | None = None

    @property
    def last_rate_limit(self) -> RateLimitSnapshot | None:
        """Return the rate-limit values seen on the most recent response."""
        return self._last_rate_limit

    async def aclose(self) -> None:
        """Close any owned HTTP resources."""
        if self._owns_client:
            await self._client.aclose()

    async def get_ref(self, owner: str, repo: str, ref: str) -> str:
        """Return the commit SHA ``ref`` points at."""
        endpoint = f"/repos/{owner}/{repo}/git/ref/{ref}"
        response = await self._request(
            "GET",
            endpoint,
            absent_statuses=frozenset({_HTTP_NOT_FOUND, _HTTP_EMPTY_REPOSITORY}),
        )
        return _decode(response, endpoint, _RefResponse).object.sha

    async def create_tree(
        self,
        owner: str,
        repo: str,
        base_sha: str,
        entries: cabc.Sequence[ContentChange],
    ) -> str:
        """Create a tree over ``base_sha`` and return its SHA."""
        endpoint = f"/repos/{owner}/{repo}/git/trees"
        response = await self._request(
            "POST",
            endpoint,
            json={
                "base_tree": base_sha,
                "tree": [entry.to_tree_entry() for entry in entries],
            },
        )
        return _decode(response, endpoint, _ShaObject).sha

    async def get_commit(self, owner: str, repo: str, sha: str) -> GitCommit:
        """Return the commit object for ``sha``."""
        endpoint = f"/repos/{owner}/{repo}/git/commits/{sha}"
        response = await self._request("GET", endpoint)
        commit = _decode(response, endpoint, _CommitResponse)
        return GitCommit(sha=commit.sha, tree_sha=commit.tree.sha)

    async def create_commit(
        self, owner: str, repo: str, descriptor: CommitDescriptor
    ) -> str:
        """Create a commit object and return its SHA."""
        endpoint = f"/repos/{owner}/{repo}/git/commits"
        response = await self._request(
            "POST",
            endpoint,
            json={
                "message": descriptor.message,
                "tree": descriptor.tree_sha,
                "parents": list(descriptor.parent_shas),
                "author": descriptor.author.to_payload(),
            },
        )
        return _decode(response, endpoint, _ShaObject).sha

    async def update_ref(
        self, owner: str, repo: str, ref: str, sha: str, *, force: bool = False
    ) -> None:
        """Move ``ref`` to ``sha`` (fast-forward only unless ``force``)."""
        endpoint = f"/repos/{owner}/{repo}/git/refs/{ref}"
        await self._request("PATCH", endpoint, json={"sha": sha, "force": force})

    async def create_file(  # noqa: PLR0913
        self,
        owner: str,
        repo: str,
        change: ContentChange,
        *,
        branch: str,
        committer: CommitAuthor,
        message: str,
    ) -> str:
        """Create ``change`` on ``branch`` via the contents API."""
        endpoint = f"/repos/{owner}/{repo}/contents/{change.path}"
        encoded = base64.b64encode(change.content.encode("utf-8")).decode("ascii")
        response = await self._request(
            "PUT",
            endpoint,
            json={
                "message": message,
                "content": encoded,
                "branch": branch,
                "committer": committer.to_payload(),
            },
        )
        return _decode(response, endpoint, _ContentsResponse).commit.sha

    async def update_branch_protection(
        self, owner: str, repo: str, branch: str, policy: ProtectionPolicy
    ) -> None:
        """Replace the protection rules of ``branch``."""
        endpoint = f"/repos/{owner}/{repo}/branches/{branch}/protection"
        await self._request("PUT", endpoint, json=policy.to_payload())

    async def create_issue(self, owner: str, repo: str, title: str, body: str) -> int:
        """Open an issue and return its number."""
        endpoint = f"/repos/{owner}/{repo}/issues"
        response = await self._request(
            "POST", endpoint, json={"title": title, "body": body}
        )
        return _decode(response, endpoint, _IssueResponse).number

    async def get_authenticated_user(self) -> AuthenticatedUser:
        """Return the login and public email behind the token."""
        endpoint = "/user"
        response = await self._request("GET", endpoint)
        user = _decode(response, endpoint, _UserResponse)
        return AuthenticatedUser(login=user.login, email=user.email or None)

    async def _request(
        self,
        method: str,
        endpoint: str,
        *,
        json: dict[str, typ.Any] | None = None,
        absent_statuses: frozenset[int] = frozenset({_HTTP_NOT_FOUND}),
    ) -> httpx.Response:
        """Send a request and map failures onto gateway errors."""
        try:
            response = await self._client.request(
                method, f"{self._config.api_url}{endpoint}", json=json
            )
        except httpx.TimeoutException as exc:
            raise GitHubAPIError.timeout(endpoint) from exc
        except httpx.RequestError as exc:
            raise GitHubAPIError.network_error(endpoint, str(exc)) from exc

        snapshot = _rate_limit_from_headers(response.headers)
        if snapshot is not None:
            self._last_rate_limit = snapshot

        if response.status_code in absent_statuses:
            raise GitHubNotFoundError.for_endpoint(
                endpoint, status_code=response.status_code
            )
        if response.status_code >= _HTTP_ERROR_STATUS_THRESHOLD:
            raise GitHubAPIError.http_error(response.status_code, endpoint)
        return response
