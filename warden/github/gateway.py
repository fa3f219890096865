"""Capability interface over the GitHub Git data and REST primitives."""

from __future__ import annotations

import typing as typ

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .models import (
        AuthenticatedUser,
        CommitAuthor,
        CommitDescriptor,
        ContentChange,
        GitCommit,
        ProtectionPolicy,
    )


@typ.runtime_checkable
class RepositoryGateway(typ.Protocol):
    """Interface the bootstrap workflow drives, one awaited call per step.

    Implementations raise :class:`~warden.github.errors.GitHubAPIError` on
    failure and :class:`~warden.github.errors.GitHubNotFoundError` when the
    requested object does not exist.
    """

    async def get_ref(self, owner: str, repo: str, ref: str) -> str:
        """Return the commit SHA that ``ref`` (``heads/<branch>``) points at."""
        ...

    async def create_tree(
        self,
        owner: str,
        repo: str,
        base_sha: str,
        entries: cabc.Sequence[ContentChange],
    ) -> str:
        """Create a tree layering ``entries`` over ``base_sha``; return its SHA."""
        ...

    async def get_commit(self, owner: str, repo: str, sha: str) -> GitCommit:
        """Return the commit object for ``sha``."""
        ...

    async def create_commit(
        self, owner: str, repo: str, descriptor: CommitDescriptor
    ) -> str:
        """Create a commit object and return its SHA."""
        ...

    async def update_ref(
        self, owner: str, repo: str, ref: str, sha: str, *, force: bool = False
    ) -> None:
        """Move ``ref`` to ``sha``."""
        ...

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
        """Create a file on ``branch`` in a single commit; return the commit SHA."""
        ...

    async def update_branch_protection(
        self, owner: str, repo: str, branch: str, policy: ProtectionPolicy
    ) -> None:
        """Replace the protection rules of ``branch`` with ``policy``."""
        ...

    async def create_issue(self, owner: str, repo: str, title: str, body: str) -> int:
        """Open an issue and return its number."""
        ...

    async def get_authenticated_user(self) -> AuthenticatedUser:
        """Return the identity behind the gateway credentials."""
        ...
