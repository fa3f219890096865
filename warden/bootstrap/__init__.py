"""Bootstrap-and-protect workflow for newly created repositories."""

from __future__ import annotations

from .config import DEFAULT_MINIMUM_REVIEWS, WorkflowConfig, parse_minimum_reviews
from .documents import AUDIT_ISSUE_TITLE, DIAGNOSTIC_ISSUE_TITLE
from .errors import WorkflowConfigError
from .observability import (
    BootstrapEventLogger,
    BootstrapEventType,
    BootstrapRunContext,
    ErrorCategory,
    categorize_error,
)
from .outcome import OutcomeKind, WorkflowOutcome, WorkflowState, WorkflowStep
from .reporter import CompensatingReporter
from .workflow import BootstrapWorkflow

__all__ = [
    "AUDIT_ISSUE_TITLE",
    "DEFAULT_MINIMUM_REVIEWS",
    "DIAGNOSTIC_ISSUE_TITLE",
    "BootstrapEventLogger",
    "BootstrapEventType",
    "BootstrapRunContext",
    "BootstrapWorkflow",
    "CompensatingReporter",
    "ErrorCategory",
    "OutcomeKind",
    "WorkflowConfig",
    "WorkflowConfigError",
    "WorkflowOutcome",
    "WorkflowState",
    "WorkflowStep",
    "categorize_error",
    "parse_minimum_reviews",
]
