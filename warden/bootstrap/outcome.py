"""States, steps and tagged outcomes of a bootstrap-and-protect run."""

from __future__ import annotations

import dataclasses
import enum


class WorkflowState(enum.StrEnum):
    """States a run moves through; ``FAILED`` is absorbing."""

    START = "start"
    REF_RESOLVED = "ref_resolved"
    REF_MISSING = "ref_missing"
    CONTENT_COMMITTED = "content_committed"
    PROTECTION_APPLIED = "protection_applied"
    AUDIT_RECORDED = "audit_recorded"
    DONE = "done"
    FAILED = "failed"


class WorkflowStep(enum.StrEnum):
    """Remote operations a run performs, used to name the failing step."""

    REF_FETCH = "ref-fetch"
    BRANCH_INIT = "branch-init"
    TREE_BUILD = "tree-build"
    PARENT_FETCH = "parent-fetch"
    AUTHOR_LOOKUP = "author-lookup"
    COMMIT_CREATE = "commit-create"
    REF_UPDATE = "ref-update"
    PROTECTION = "protection"
    AUDIT_ISSUE = "audit-issue"
    DIAGNOSTIC_ISSUE = "diagnostic-issue"
    DEADLINE = "deadline"


class OutcomeKind(enum.StrEnum):
    """Tag of a :class:`WorkflowOutcome`."""

    PROTECTED = "protected"
    INITIALIZED_AND_PROTECTED = "initialized_and_protected"
    FAILED_NO_DEFAULT_BRANCH = "failed_no_default_branch"
    FAILED_TRANSIENT = "failed_transient"
    FAILED_PROTECTION = "failed_protection"


_SUCCESS_KINDS = frozenset({OutcomeKind.PROTECTED, OutcomeKind.INITIALIZED_AND_PROTECTED})


@dataclasses.dataclass(frozen=True, slots=True)
class WorkflowOutcome:
    """Result of one workflow run.

    Attributes
    ----------
    kind
        Outcome tag.
    step
        Step that failed; ``None`` for successful runs.
    cause
        Exception raised by the failing step.
    commit_sha
        Branch tip after the last content commit the run created.
    audit_issue_number
        Number of the audit issue, when one was filed.
    diagnostic_issue_number
        Number of the diagnostic issue filed after a failed initialization.

    """

    kind: OutcomeKind
    step: WorkflowStep | None = None
    cause: BaseException | None = None
    commit_sha: str | None = None
    audit_issue_number: int | None = None
    diagnostic_issue_number: int | None = None

    @property
    def succeeded(self) -> bool:
        """Return ``True`` when protection was applied."""
        return self.kind in _SUCCESS_KINDS

    @property
    def final_state(self) -> WorkflowState:
        """Return the terminal state of the run."""
        return WorkflowState.DONE if self.succeeded else WorkflowState.FAILED

    @classmethod
    def protected(
        cls,
        commit_sha: str,
        *,
        initialized: bool,
        audit_issue_number: int | None,
    ) -> WorkflowOutcome:
        """Return a successful outcome."""
        kind = (
            OutcomeKind.INITIALIZED_AND_PROTECTED if initialized else OutcomeKind.PROTECTED
        )
        return cls(
            kind=kind,
            commit_sha=commit_sha,
            audit_issue_number=audit_issue_number,
        )

    @classmethod
    def transient_failure(
        cls, step: WorkflowStep, cause: BaseException
    ) -> WorkflowOutcome:
        """Return an outcome for a remote failure that aborted the run."""
        return cls(kind=OutcomeKind.FAILED_TRANSIENT, step=step, cause=cause)

    @classmethod
    def no_default_branch(
        cls, cause: BaseException, *, diagnostic_issue_number: int | None
    ) -> WorkflowOutcome:
        """Return an outcome for a default branch that could not be created."""
        return cls(
            kind=OutcomeKind.FAILED_NO_DEFAULT_BRANCH,
            step=WorkflowStep.BRANCH_INIT,
            cause=cause,
            diagnostic_issue_number=diagnostic_issue_number,
        )

    @classmethod
    def protection_failure(
        cls, cause: BaseException, *, commit_sha: str
    ) -> WorkflowOutcome:
        """Return an outcome for a protection update that failed after commit."""
        return cls(
            kind=OutcomeKind.FAILED_PROTECTION,
            step=WorkflowStep.PROTECTION,
            cause=cause,
            commit_sha=commit_sha,
        )
