"""The bootstrap-and-protect workflow for newly created repositories.

A run resolves the default branch, commits a README (creating the branch
when it does not exist yet), protects the branch and files an audit issue.
Each remote call is awaited in turn; any failure aborts the run with a
tagged :class:`~warden.bootstrap.outcome.WorkflowOutcome` and nothing is
retried. Only a failed branch initialization triggers a compensating
diagnostic issue.

The run deadline bounds the repository changes only. Audit and diagnostic
issues are filed once the outcome is settled, so a slow or failing issue
never changes the outcome tag.

Usage
-----
>>> workflow = BootstrapWorkflow(gateway, WorkflowConfig())
>>> outcome = await workflow.run(RepositoryRef("acme", "widgets", "main"))
>>> outcome.kind
<OutcomeKind.PROTECTED: 'protected'>

"""

from __future__ import annotations

import asyncio
import dataclasses
import typing as typ

from warden.common.slug import branch_ref
from warden.common.time import utcnow
from warden.github.errors import (
    GitHubAPIError,
    GitHubNotFoundError,
    GitHubResponseShapeError,
)
from warden.github.models import CommitAuthor, CommitDescriptor, ContentChange

from .documents import (
    AUDIT_ISSUE_TITLE,
    DIAGNOSTIC_ISSUE_TITLE,
    commit_message,
    render_audit_issue,
    render_diagnostic_issue,
    render_readme,
)
from .observability import BootstrapEventLogger, BootstrapRunContext
from .outcome import OutcomeKind, WorkflowOutcome, WorkflowState, WorkflowStep
from .reporter import CompensatingReporter

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from warden.github.gateway import RepositoryGateway
    from warden.github.models import RepositoryRef

    from .config import WorkflowConfig

_GATEWAY_ERRORS = (GitHubAPIError, GitHubResponseShapeError)

_T = typ.TypeVar("_T")


class _StepFailedError(Exception):
    """Internal signal carrying the failing step and its cause."""

    def __init__(self, step: WorkflowStep, cause: BaseException) -> None:
        self.step = step
        self.cause = cause
        super().__init__(f"{step} failed: {cause}")


class BootstrapWorkflow:
    """Bring a repository's default branch into a documented, protected state.

    Parameters
    ----------
    gateway
        Remote repository gateway; the workflow never constructs one.
    config
        Immutable workflow configuration.
    reporter
        Issue reporter; defaults to a :class:`CompensatingReporter` over
        ``gateway`` that bounds each issue by ``config.run_timeout_s``.
    event_logger
        Structured event logger shared with the reporter.

    """

    def __init__(
        self,
        gateway: RepositoryGateway,
        config: WorkflowConfig,
        *,
        reporter: CompensatingReporter | None = None,
        event_logger: BootstrapEventLogger | None = None,
    ) -> None:
        """Store collaborators; no remote call happens before :meth:`run`."""
        self._gateway = gateway
        self._config = config
        self._events = event_logger or BootstrapEventLogger()
        self._reporter = reporter or CompensatingReporter(
            gateway, event_logger=self._events, timeout_s=config.run_timeout_s
        )

    @property
    def config(self) -> WorkflowConfig:
        """Read-only access to the workflow configuration."""
        return self._config

    async def run(
        self,
        repository: RepositoryRef,
        *,
        delivery_id: str | None = None,
    ) -> WorkflowOutcome:
        """Run the workflow for ``repository`` and file its issue record.

        Repository changes run within ``config.run_timeout_s``; expiry yields
        ``FAILED_TRANSIENT(DEADLINE)``. The audit or diagnostic issue is
        filed afterwards and only ever adds its number to the outcome.

        Parameters
        ----------
        repository
            Repository named by the triggering event.
        delivery_id
            Webhook delivery identifier, used for log correlation.

        Returns
        -------
        WorkflowOutcome
            Tagged result; failures are reported here rather than raised.

        """
        context = BootstrapRunContext(
            repo_slug=repository.slug,
            delivery_id=delivery_id,
            started_at=utcnow(),
        )
        self._events.log_run_started(context)
        try:
            async with asyncio.timeout(self._config.run_timeout_s):
                outcome = await self._execute(repository, context)
        except TimeoutError as exc:
            outcome = WorkflowOutcome.transient_failure(WorkflowStep.DEADLINE, exc)
        outcome = await self._file_record(repository, outcome, context)

        duration = utcnow() - context.started_at
        if outcome.succeeded:
            self._events.log_run_completed(context, outcome, duration)
        else:
            self._events.log_run_failed(context, outcome, duration)
        return outcome

    async def _execute(
        self, repository: RepositoryRef, context: BootstrapRunContext
    ) -> WorkflowOutcome:
        gateway = self._gateway
        try:
            tip = await self._step(
                context,
                WorkflowStep.REF_FETCH,
                WorkflowState.REF_RESOLVED,
                gateway.get_ref(
                    repository.owner,
                    repository.name,
                    branch_ref(repository.default_branch),
                ),
            )
        except _StepFailedError as failure:
            if isinstance(failure.cause, GitHubNotFoundError):
                self._events.log_ref_missing(context, repository.default_branch)
                return await self._initialize_branch(repository, context)
            return WorkflowOutcome.transient_failure(failure.step, failure.cause)

        try:
            tip = await self._commit_readme(repository, tip, context)
        except _StepFailedError as failure:
            return WorkflowOutcome.transient_failure(failure.step, failure.cause)
        return await self._protect(repository, tip, context, initialized=False)

    async def _initialize_branch(
        self, repository: RepositoryRef, context: BootstrapRunContext
    ) -> WorkflowOutcome:
        """Create the default branch with a single README commit."""
        try:
            committer = await self._resolve_author(context, WorkflowState.REF_MISSING)
            tip = await self._step(
                context,
                WorkflowStep.BRANCH_INIT,
                WorkflowState.CONTENT_COMMITTED,
                self._gateway.create_file(
                    repository.owner,
                    repository.name,
                    self._readme(repository),
                    branch=repository.default_branch,
                    committer=committer,
                    message=commit_message(repository),
                ),
            )
        except _StepFailedError as failure:
            if failure.step is not WorkflowStep.BRANCH_INIT:
                return WorkflowOutcome.transient_failure(failure.step, failure.cause)
            return WorkflowOutcome.no_default_branch(
                failure.cause, diagnostic_issue_number=None
            )
        return await self._protect(repository, tip, context, initialized=True)

    async def _commit_readme(
        self, repository: RepositoryRef, tip: str, context: BootstrapRunContext
    ) -> str:
        """Commit the README on top of ``tip`` and return the new tip."""
        owner, name = repository.owner, repository.name
        tree_sha = await self._step(
            context,
            WorkflowStep.TREE_BUILD,
            WorkflowState.REF_RESOLVED,
            self._gateway.create_tree(owner, name, tip, [self._readme(repository)]),
        )
        parent = await self._step(
            context,
            WorkflowStep.PARENT_FETCH,
            WorkflowState.REF_RESOLVED,
            self._gateway.get_commit(owner, name, tip),
        )
        author = await self._resolve_author(context, WorkflowState.REF_RESOLVED)
        descriptor = CommitDescriptor(
            message=commit_message(repository),
            tree_sha=tree_sha,
            parent_shas=(parent.sha,),
            author=author,
        )
        commit_sha = await self._step(
            context,
            WorkflowStep.COMMIT_CREATE,
            WorkflowState.REF_RESOLVED,
            self._gateway.create_commit(owner, name, descriptor),
        )
        await self._step(
            context,
            WorkflowStep.REF_UPDATE,
            WorkflowState.CONTENT_COMMITTED,
            self._gateway.update_ref(
                owner,
                name,
                branch_ref(repository.default_branch),
                commit_sha,
                force=False,
            ),
        )
        return commit_sha

    async def _protect(
        self,
        repository: RepositoryRef,
        tip: str,
        context: BootstrapRunContext,
        *,
        initialized: bool,
    ) -> WorkflowOutcome:
        """Protect the branch now at ``tip``."""
        try:
            await self._step(
                context,
                WorkflowStep.PROTECTION,
                WorkflowState.PROTECTION_APPLIED,
                self._gateway.update_branch_protection(
                    repository.owner,
                    repository.name,
                    repository.default_branch,
                    self._config.protection_policy(),
                ),
            )
        except _StepFailedError as failure:
            return WorkflowOutcome.protection_failure(failure.cause, commit_sha=tip)
        return WorkflowOutcome.protected(
            tip, initialized=initialized, audit_issue_number=None
        )

    async def _file_record(
        self,
        repository: RepositoryRef,
        outcome: WorkflowOutcome,
        context: BootstrapRunContext,
    ) -> WorkflowOutcome:
        """File the issue ``outcome`` calls for and attach its number.

        Protected runs get an audit issue, so an audit issue always implies
        protection. A failed branch initialization gets a diagnostic issue.
        Any other outcome is returned untouched.
        """
        if outcome.succeeded:
            issue_number = await self._reporter.report(
                repository,
                AUDIT_ISSUE_TITLE,
                render_audit_issue(
                    repository,
                    self._config.protection_policy(),
                    mention=self._config.issue_mention,
                    initialized=outcome.kind is OutcomeKind.INITIALIZED_AND_PROTECTED,
                ),
                context=context,
            )
            if issue_number is None:
                return outcome
            self._events.log_step_completed(
                context, WorkflowStep.AUDIT_ISSUE, WorkflowState.AUDIT_RECORDED
            )
            return dataclasses.replace(outcome, audit_issue_number=issue_number)

        if outcome.kind is OutcomeKind.FAILED_NO_DEFAULT_BRANCH:
            issue_number = await self._reporter.report(
                repository,
                DIAGNOSTIC_ISSUE_TITLE,
                render_diagnostic_issue(
                    repository, outcome.cause, mention=self._config.issue_mention
                ),
                context=context,
            )
            if issue_number is None:
                return outcome
            self._events.log_step_completed(
                context, WorkflowStep.DIAGNOSTIC_ISSUE, WorkflowState.FAILED
            )
            return dataclasses.replace(outcome, diagnostic_issue_number=issue_number)

        return outcome

    async def _resolve_author(
        self, context: BootstrapRunContext, state: WorkflowState
    ) -> CommitAuthor:
        """Return the commit identity of the authenticated user.

        ``state`` is where the run stays once the lookup succeeds:
        ``REF_RESOLVED`` before a commit on an existing branch, ``REF_MISSING``
        before a branch initialization.
        """
        user = await self._step(
            context,
            WorkflowStep.AUTHOR_LOOKUP,
            state,
            self._gateway.get_authenticated_user(),
        )
        return CommitAuthor(
            name=user.login,
            email=user.email or self._config.private_email,
            date=utcnow(),
        )

    def _readme(self, repository: RepositoryRef) -> ContentChange:
        return ContentChange(
            path=self._config.readme_path,
            content=render_readme(self._config.readme_template, repository),
        )

    async def _step(
        self,
        context: BootstrapRunContext,
        step: WorkflowStep,
        state: WorkflowState,
        call: cabc.Awaitable[_T],
    ) -> _T:
        """Await one gateway call and log ``state`` once it succeeds.

        Gateway failures are re-raised tagged with ``step``.
        """
        try:
            result = await call
        except _GATEWAY_ERRORS as exc:
            raise _StepFailedError(step, exc) from exc
        self._events.log_step_completed(context, step, state)
        return result
