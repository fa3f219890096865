"""Repository slug utilities.

Slugs are GitHub identifiers in ``owner/name`` format. They appear in log
lines and issue bodies, and are not filesystem paths.
"""

from __future__ import annotations


def repo_slug(owner: str, name: str) -> str:
    """Build a repository slug from owner and name.

    Examples
    --------
    >>> repo_slug("acme", "widgets")
    'acme/widgets'

    """
    return f"{owner}/{name}"


def branch_ref(branch: str) -> str:
    """Return the Git data API ref path for a branch name.

    The GitHub ref endpoints take the ref without the ``refs/`` prefix.

    Examples
    --------
    >>> branch_ref("main")
    'heads/main'

    """
    return f"heads/{branch.removeprefix('refs/heads/')}"
