"""Errors specific to the bootstrap workflow."""

from __future__ import annotations


class WorkflowConfigError(ValueError):
    """Raised when workflow configuration values cannot be used."""

    @classmethod
    def invalid_timeout(cls, raw: str) -> WorkflowConfigError:
        """Return an error for a non-positive or non-numeric run timeout."""
        return cls(f"WARDEN_RUN_TIMEOUT_S must be a positive number, got {raw!r}")

    @classmethod
    def empty_mention(cls) -> WorkflowConfigError:
        """Return an error for a blank issue mention handle."""
        return cls("issue_mention must be a non-empty GitHub handle")
