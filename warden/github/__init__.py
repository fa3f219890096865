"""GitHub repository gateway: protocol, REST client and models."""

from __future__ import annotations

from .client import GitHubRESTClient, GitHubRESTConfig
from .errors import (
    GitHubAPIError,
    GitHubConfigError,
    GitHubNotFoundError,
    GitHubResponseShapeError,
)
from .gateway import RepositoryGateway
from .models import (
    AuthenticatedUser,
    CommitAuthor,
    CommitDescriptor,
    ContentChange,
    GitCommit,
    ProtectionPolicy,
    RateLimitSnapshot,
    RepositoryRef,
)

__all__ = [
    "AuthenticatedUser",
    "CommitAuthor",
    "CommitDescriptor",
    "ContentChange",
    "GitCommit",
    "GitHubAPIError",
    "GitHubConfigError",
    "GitHubNotFoundError",
    "GitHubRESTClient",
    "GitHubRESTConfig",
    "GitHubResponseShapeError",
    "ProtectionPolicy",
    "RateLimitSnapshot",
    "RepositoryGateway",
    "RepositoryRef",
]
