"""Configuration for the bootstrap-and-protect workflow.

The configuration is built once at startup and handed to
:class:`~warden.bootstrap.workflow.BootstrapWorkflow`; nothing in the
workflow reads the environment.

Usage
-----
Create a configuration with defaults:

>>> config = WorkflowConfig()
>>> config.minimum_reviews
3

Or load from environment variables:

>>> import os
>>> os.environ["WARDEN_MINIMUM_REVIEWS"] = "2"
>>> WorkflowConfig.from_env().minimum_reviews
2

"""

from __future__ import annotations

import dataclasses as dc
import os

from warden.github.models import (
    MAX_REQUIRED_REVIEWS,
    MIN_REQUIRED_REVIEWS,
    ProtectionPolicy,
)
from warden.logging import get_logger, log_warning

from .documents import DEFAULT_README_TEMPLATE
from .errors import WorkflowConfigError

logger = get_logger(__name__)

DEFAULT_MINIMUM_REVIEWS = 3
DEFAULT_ISSUE_MENTION = "octocat"
DEFAULT_PRIVATE_EMAIL = "private@email.com"
DEFAULT_RUN_TIMEOUT_S = 60.0


def parse_minimum_reviews(raw: str | None) -> tuple[int, bool]:
    """Parse a required-review count, falling back to the default.

    Parameters
    ----------
    raw
        Raw value, typically ``WARDEN_MINIMUM_REVIEWS``.

    Returns
    -------
    tuple[int, bool]
        The review count and a flag that is ``True`` when ``raw`` was
        present but unusable (not an integer, or outside 1-6).

    Examples
    --------
    >>> parse_minimum_reviews("2")
    (2, False)
    >>> parse_minimum_reviews("lots")
    (3, True)
    >>> parse_minimum_reviews(None)
    (3, False)

    """
    if raw is None or not raw.strip():
        return (DEFAULT_MINIMUM_REVIEWS, False)
    try:
        value = int(raw.strip())
    except ValueError:
        return (DEFAULT_MINIMUM_REVIEWS, True)
    if not MIN_REQUIRED_REVIEWS <= value <= MAX_REQUIRED_REVIEWS:
        return (DEFAULT_MINIMUM_REVIEWS, True)
    return (value, False)


@dc.dataclass(frozen=True, slots=True)
class WorkflowConfig:
    """Values the bootstrap workflow consumes.

    Attributes
    ----------
    minimum_reviews
        Required approving reviews on the protected default branch.
    issue_mention
        GitHub handle (without ``@``) mentioned in audit and diagnostic issues.
    private_email
        Committer email used when the authenticated user's email is private.
    readme_template
        README body; ``$repository``, ``$owner`` and ``$branch`` are
        substituted.
    readme_path
        Path of the README committed to the default branch.
    run_timeout_s
        Deadline for the whole multi-step run.

    """

    minimum_reviews: int = DEFAULT_MINIMUM_REVIEWS
    issue_mention: str = DEFAULT_ISSUE_MENTION
    private_email: str = DEFAULT_PRIVATE_EMAIL
    readme_template: str = DEFAULT_README_TEMPLATE
    readme_path: str = "README.md"
    run_timeout_s: float = DEFAULT_RUN_TIMEOUT_S

    def __post_init__(self) -> None:
        """Validate values that would otherwise fail late, mid-run."""
        if not self.issue_mention.strip():
            raise WorkflowConfigError.empty_mention()
        # Raises ValueError for out-of-range review counts.
        self.protection_policy()

    def protection_policy(self) -> ProtectionPolicy:
        """Return the protection policy applied to default branches."""
        return ProtectionPolicy(minimum_reviews=self.minimum_reviews)

    @staticmethod
    def _parse_timeout(raw: str) -> float:
        if not raw.strip():
            return DEFAULT_RUN_TIMEOUT_S
        try:
            value = float(raw)
        except ValueError as exc:
            raise WorkflowConfigError.invalid_timeout(raw) from exc
        if value <= 0:
            raise WorkflowConfigError.invalid_timeout(raw)
        return value

    @classmethod
    def from_env(cls) -> WorkflowConfig:
        """Create configuration from environment variables.

        Reads ``WARDEN_MINIMUM_REVIEWS``, ``WARDEN_ISSUE_MENTION``,
        ``WARDEN_PRIVATE_EMAIL``, ``WARDEN_README_TEMPLATE`` and
        ``WARDEN_RUN_TIMEOUT_S``. An unusable review count logs a warning and
        falls back to :data:`DEFAULT_MINIMUM_REVIEWS`.

        Raises
        ------
        WorkflowConfigError
            If ``WARDEN_RUN_TIMEOUT_S`` is not a positive number.

        """
        raw_reviews = os.environ.get("WARDEN_MINIMUM_REVIEWS")
        minimum_reviews, invalid = parse_minimum_reviews(raw_reviews)
        if invalid:
            log_warning(
                logger,
                "Invalid WARDEN_MINIMUM_REVIEWS %r (must be %d-%d), falling back to %d",
                raw_reviews,
                MIN_REQUIRED_REVIEWS,
                MAX_REQUIRED_REVIEWS,
                minimum_reviews,
            )

        mention = os.environ.get("WARDEN_ISSUE_MENTION", "").strip().lstrip("@")
        private_email = os.environ.get("WARDEN_PRIVATE_EMAIL", "").strip()
        readme_template = os.environ.get("WARDEN_README_TEMPLATE", "")

        return cls(
            minimum_reviews=minimum_reviews,
            issue_mention=mention or DEFAULT_ISSUE_MENTION,
            private_email=private_email or DEFAULT_PRIVATE_EMAIL,
            readme_template=readme_template or DEFAULT_README_TEMPLATE,
            run_timeout_s=cls._parse_timeout(
                os.environ.get("WARDEN_RUN_TIMEOUT_S", "")
            ),
        )
