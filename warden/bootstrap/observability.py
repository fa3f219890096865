"""Structured log events for bootstrap workflow runs.

Every run emits a ``bootstrap.run.started`` line, one
``bootstrap.step.completed`` line per successful remote call, and either
``bootstrap.run.completed`` or ``bootstrap.run.failed``. Failures carry an
``error_category`` so alerts can separate transient GitHub trouble from
configuration mistakes.
"""

from __future__ import annotations

import dataclasses
import enum
import typing as typ

from warden.github.errors import (
    GitHubAPIError,
    GitHubConfigError,
    GitHubNotFoundError,
    GitHubResponseShapeError,
)
from warden.logging import get_logger, log_error, log_info, log_warning

if typ.TYPE_CHECKING:
    import datetime as dt

    from .outcome import WorkflowOutcome, WorkflowState, WorkflowStep

logger = get_logger(__name__)

_HTTP_SERVER_ERROR_THRESHOLD = 500


class BootstrapEventType(enum.StrEnum):
    """Structured log event types for bootstrap runs."""

    RUN_STARTED = "bootstrap.run.started"
    REF_MISSING = "bootstrap.ref.missing"
    STEP_COMPLETED = "bootstrap.step.completed"
    RUN_COMPLETED = "bootstrap.run.completed"
    RUN_FAILED = "bootstrap.run.failed"
    ISSUE_CREATED = "bootstrap.issue.created"
    REPORT_FAILED = "bootstrap.report.failed"


class ErrorCategory(enum.StrEnum):
    """Categories for error classification in alerts."""

    TRANSIENT = "transient"
    NOT_FOUND = "not_found"
    CLIENT_ERROR = "client_error"
    SCHEMA_DRIFT = "schema_drift"
    CONFIGURATION = "configuration"
    DEADLINE = "deadline"
    UNKNOWN = "unknown"


@dataclasses.dataclass(frozen=True, slots=True)
class BootstrapRunContext:
    """Shared context for a single workflow run."""

    repo_slug: str
    delivery_id: str | None
    started_at: dt.datetime


def categorize_error(exc: BaseException | None) -> ErrorCategory:
    """Categorize an exception for alerting purposes."""
    if isinstance(exc, GitHubNotFoundError):
        return ErrorCategory.NOT_FOUND
    if isinstance(exc, GitHubAPIError):
        # No status code means the request never completed (timeout, network).
        if exc.status_code is None or exc.status_code >= _HTTP_SERVER_ERROR_THRESHOLD:
            return ErrorCategory.TRANSIENT
        return ErrorCategory.CLIENT_ERROR
    if isinstance(exc, GitHubResponseShapeError):
        return ErrorCategory.SCHEMA_DRIFT
    if isinstance(exc, GitHubConfigError):
        return ErrorCategory.CONFIGURATION
    if isinstance(exc, TimeoutError):
        return ErrorCategory.DEADLINE
    return ErrorCategory.UNKNOWN


class BootstrapEventLogger:
    """Emit structured bootstrap events through femtologging.

    Events are logged at INFO for progress, WARNING for best-effort issue
    failures and ERROR for aborted runs.
    """

    def log_run_started(self, context: BootstrapRunContext) -> None:
        """Log the start of a run."""
        log_info(
            logger,
            "[%s] repo_slug=%s delivery_id=%s started_at=%s",
            BootstrapEventType.RUN_STARTED,
            context.repo_slug,
            context.delivery_id,
            context.started_at.isoformat(),
        )

    def log_ref_missing(self, context: BootstrapRunContext, branch: str) -> None:
        """Log that the default branch does not exist yet."""
        log_info(
            logger,
            "[%s] repo_slug=%s branch=%s",
            BootstrapEventType.REF_MISSING,
            context.repo_slug,
            branch,
        )

    def log_step_completed(
        self,
        context: BootstrapRunContext,
        step: WorkflowStep,
        state: WorkflowState,
    ) -> None:
        """Log a successful remote call and the state it leads to."""
        log_info(
            logger,
            "[%s] repo_slug=%s step=%s state=%s",
            BootstrapEventType.STEP_COMPLETED,
            context.repo_slug,
            step,
            state,
        )

    def log_issue_created(
        self, context: BootstrapRunContext, title: str, number: int
    ) -> None:
        """Log a filed audit or diagnostic issue."""
        log_info(
            logger,
            "[%s] repo_slug=%s issue_number=%d title=%r",
            BootstrapEventType.ISSUE_CREATED,
            context.repo_slug,
            number,
            title,
        )

    def log_report_failed(
        self, context: BootstrapRunContext, title: str, error: BaseException
    ) -> None:
        """Log an issue that could not be filed; never escalated."""
        log_warning(
            logger,
            "[%s] repo_slug=%s title=%r error_type=%s error_category=%s "
            "error_message=%s",
            BootstrapEventType.REPORT_FAILED,
            context.repo_slug,
            title,
            type(error).__name__,
            categorize_error(error),
            str(error),
            exc_info=error,
        )

    def log_run_completed(
        self,
        context: BootstrapRunContext,
        outcome: WorkflowOutcome,
        duration: dt.timedelta,
    ) -> None:
        """Log a run that applied protection."""
        log_info(
            logger,
            "[%s] repo_slug=%s delivery_id=%s outcome=%s duration_seconds=%.3f "
            "commit_sha=%s audit_issue_number=%s",
            BootstrapEventType.RUN_COMPLETED,
            context.repo_slug,
            context.delivery_id,
            outcome.kind,
            duration.total_seconds(),
            outcome.commit_sha,
            outcome.audit_issue_number,
        )

    def log_run_failed(
        self,
        context: BootstrapRunContext,
        outcome: WorkflowOutcome,
        duration: dt.timedelta,
    ) -> None:
        """Log an aborted run with its failing step and error category."""
        error = outcome.cause
        log_error(
            logger,
            "[%s] repo_slug=%s delivery_id=%s outcome=%s step=%s "
            "duration_seconds=%.3f error_type=%s error_category=%s error_message=%s",
            BootstrapEventType.RUN_FAILED,
            context.repo_slug,
            context.delivery_id,
            outcome.kind,
            outcome.step,
            duration.total_seconds(),
            type(error).__name__ if error is not None else None,
            categorize_error(error),
            str(error),
            exc_info=error,
        )
