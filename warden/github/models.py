"""Typed domain models exchanged with the repository gateway."""

from __future__ import annotations

import dataclasses
import typing as typ

from warden.common.slug import repo_slug

if typ.TYPE_CHECKING:
    import datetime as dt

# GitHub accepts between 0 and 6 required approving reviews.
MIN_REQUIRED_REVIEWS = 1
MAX_REQUIRED_REVIEWS = 6

FILE_MODE_BLOB = "100644"


@dataclasses.dataclass(frozen=True, slots=True)
class RepositoryRef:
    """Repository targeted by one workflow run."""

    owner: str
    name: str
    default_branch: str

    @property
    def slug(self) -> str:
        """Return the ``owner/name`` slug."""
        return repo_slug(self.owner, self.name)


@dataclasses.dataclass(frozen=True, slots=True)
class ContentChange:
    """A single file to commit."""

    path: str
    content: str
    mode: str = FILE_MODE_BLOB

    def to_tree_entry(self) -> dict[str, str]:
        """Render the change as a Git tree entry with inline content."""
        return {
            "path": self.path,
            "mode": self.mode,
            "type": "blob",
            "content": self.content,
        }


@dataclasses.dataclass(frozen=True, slots=True)
class CommitAuthor:
    """Author or committer identity attached to a commit."""

    name: str
    email: str
    date: dt.datetime | None = None

    def to_payload(self) -> dict[str, str]:
        """Render the identity for the GitHub REST API."""
        payload = {"name": self.name, "email": self.email}
        if self.date is not None:
            payload["date"] = self.date.isoformat()
        return payload


@dataclasses.dataclass(frozen=True, slots=True)
class CommitDescriptor:
    """Everything required to create a commit object."""

    message: str
    tree_sha: str
    parent_shas: tuple[str, ...]
    author: CommitAuthor


@dataclasses.dataclass(frozen=True, slots=True)
class GitCommit:
    """A commit object as returned by the gateway."""

    sha: str
    tree_sha: str


@dataclasses.dataclass(frozen=True, slots=True)
class AuthenticatedUser:
    """Identity behind the gateway credentials.

    ``email`` is ``None`` when the user keeps their address private.
    """

    login: str
    email: str | None


@dataclasses.dataclass(frozen=True, slots=True)
class RateLimitSnapshot:
    """Most recent ``X-RateLimit-*`` values reported by GitHub."""

    limit: int
    remaining: int
    reset_epoch: int | None = None


@dataclasses.dataclass(frozen=True, slots=True)
class ProtectionPolicy:
    """Branch protection applied to a bootstrapped default branch."""

    minimum_reviews: int
    require_code_owner_reviews: bool = True
    dismiss_stale_reviews: bool = False
    allow_force_pushes: bool = False

    def __post_init__(self) -> None:
        """Reject review counts outside the range GitHub accepts."""
        if not MIN_REQUIRED_REVIEWS <= self.minimum_reviews <= MAX_REQUIRED_REVIEWS:
            msg = (
                f"minimum_reviews must be between {MIN_REQUIRED_REVIEWS} and "
                f"{MAX_REQUIRED_REVIEWS}, got {self.minimum_reviews}"
            )
            raise ValueError(msg)

    def to_payload(self) -> dict[str, typ.Any]:
        """Render the policy as a branch protection request body.

        GitHub requires the status check, admin enforcement and restriction
        keys to be present even when unused.
        """
        return {
            "required_status_checks": None,
            "enforce_admins": False,
            "required_pull_request_reviews": {
                "required_approving_review_count": self.minimum_reviews,
                "require_code_owner_reviews": self.require_code_owner_reviews,
                "dismiss_stale_reviews": self.dismiss_stale_reviews,
            },
            "restrictions": None,
            "allow_force_pushes": self.allow_force_pushes,
        }
