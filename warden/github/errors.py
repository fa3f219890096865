"""GitHub gateway errors."""

from __future__ import annotations

_HTTP_NOT_FOUND = 404


class GitHubAPIError(RuntimeError):
    """Raised when a GitHub REST call fails.

    Attributes
    ----------
    status_code
        HTTP status code, or ``None`` when the request never completed.
    endpoint
        Request path that failed, for log context.

    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str | None = None,
    ) -> None:
        """Initialise with a message, optional HTTP status and endpoint."""
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)

    @classmethod
    def http_error(cls, status_code: int, endpoint: str) -> GitHubAPIError:
        """Return an error for non-2xx HTTP responses."""
        if status_code == _HTTP_NOT_FOUND:
            return GitHubNotFoundError.for_endpoint(endpoint)
        return cls(
            f"GitHub REST HTTP {status_code} for {endpoint}",
            status_code=status_code,
            endpoint=endpoint,
        )

    @classmethod
    def timeout(cls, endpoint: str) -> GitHubAPIError:
        """Return an error for a request that exceeded the client timeout."""
        return cls(f"GitHub REST request timed out for {endpoint}", endpoint=endpoint)

    @classmethod
    def network_error(cls, endpoint: str, detail: str) -> GitHubAPIError:
        """Return an error for DNS, connection or TLS failures."""
        return cls(
            f"GitHub REST network error for {endpoint}: {detail}",
            endpoint=endpoint,
        )


class GitHubNotFoundError(GitHubAPIError):
    """Raised when the requested GitHub object does not exist.

    Ref lookups on a repository without any commit also raise this error,
    since GitHub reports those with HTTP 409 ("Git Repository is empty").
    """

    @classmethod
    def for_endpoint(
        cls, endpoint: str, *, status_code: int = _HTTP_NOT_FOUND
    ) -> GitHubNotFoundError:
        """Return a not-found error for ``endpoint``."""
        return cls(
            f"GitHub object not found at {endpoint}",
            status_code=status_code,
            endpoint=endpoint,
        )


class GitHubResponseShapeError(RuntimeError):
    """Raised when GitHub REST responses are missing expected fields."""

    @classmethod
    def invalid(cls, endpoint: str, detail: str) -> GitHubResponseShapeError:
        """Return an error for a body that does not match the expected shape."""
        return cls(f"GitHub REST response from {endpoint} is malformed: {detail}")


class GitHubConfigError(RuntimeError):
    """Raised when GitHub client configuration is invalid."""

    @classmethod
    def missing_token(cls) -> GitHubConfigError:
        """Return an error when no GitHub token is configured."""
        return cls("WARDEN_GITHUB_TOKEN is required for GitHub API")

    @classmethod
    def empty_token(cls) -> GitHubConfigError:
        """Return an error when the provided token is empty."""
        return cls("GitHub token must be non-empty")

    @classmethod
    def invalid_timeout(cls, raw: str) -> GitHubConfigError:
        """Return an error for a non-positive or non-numeric timeout."""
        return cls(f"WARDEN_GITHUB_TIMEOUT_S must be a positive number, got {raw!r}")
