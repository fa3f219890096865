"""README and issue text produced by the bootstrap workflow."""

from __future__ import annotations

import string
import typing as typ

if typ.TYPE_CHECKING:
    from warden.github.models import ProtectionPolicy, RepositoryRef

DEFAULT_README_TEMPLATE = (
    "# $repository\n"
    "Your Organization loves documentation, don't forget to update this file "
    "with specific information about this project!\n"
)

AUDIT_ISSUE_TITLE = "New Repository Protection Applied Successfully"
DIAGNOSTIC_ISSUE_TITLE = "FAILED to Apply Repository Protection!"


def _yes_no(flag: bool) -> str:  # noqa: FBT001
    return "yes" if flag else "no"


def render_readme(template: str, repository: RepositoryRef) -> str:
    """Render the README body for ``repository``.

    Unknown ``$placeholders`` are left as-is so that templates supplied
    through the environment cannot fail a run.

    Examples
    --------
    >>> from warden.github.models import RepositoryRef
    >>> render_readme("# $repository\\n", RepositoryRef("acme", "empty", "main"))
    '# empty\\n'

    """
    return string.Template(template).safe_substitute(
        repository=repository.name,
        owner=repository.owner,
        branch=repository.default_branch,
    )


def commit_message(repository: RepositoryRef) -> str:
    """Return the message of the README commit."""
    return f"Setting up Branch Protections for {repository.name}"


def render_audit_issue(
    repository: RepositoryRef,
    policy: ProtectionPolicy,
    *,
    mention: str,
    initialized: bool,
) -> str:
    """Render the body of the issue recording that protection was applied."""
    action = "initialized" if initialized else "updated"
    return (
        f"The `{repository.default_branch}` branch of {repository.slug} was "
        f"{action} with a README and protected so that only properly reviewed "
        "code can be merged.\n\n"
        f"- Required approving reviews: {policy.minimum_reviews}\n"
        f"- Code owner review required: {_yes_no(policy.require_code_owner_reviews)}\n"
        f"- Stale reviews dismissed on push: {_yes_no(policy.dismiss_stale_reviews)}\n"
        f"- Force pushes allowed: {_yes_no(policy.allow_force_pushes)}\n\n"
        f"CC @{mention}"
    )


def render_diagnostic_issue(
    repository: RepositoryRef,
    cause: BaseException,
    *,
    mention: str,
) -> str:
    """Render the body of the issue filed when the default branch is missing."""
    return (
        f"The default branch `{repository.default_branch}` of {repository.slug} "
        "could not be initialized, so branch protection was not applied.\n\n"
        "Default branch not initialized: did repository creation include a "
        "README?\n\n"
        f"Error: {cause}\n\n"
        f"CC @{mention}"
    )
