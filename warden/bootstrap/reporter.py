"""Best-effort issue filing for audit and diagnostic records."""

from __future__ import annotations

import asyncio
import typing as typ

from warden.github.errors import GitHubAPIError, GitHubResponseShapeError

from .observability import BootstrapEventLogger

if typ.TYPE_CHECKING:
    from warden.github.gateway import RepositoryGateway
    from warden.github.models import RepositoryRef

    from .observability import BootstrapRunContext


class CompensatingReporter:
    """File an issue on a repository without ever failing the caller.

    Each call makes exactly one attempt, bounded by ``timeout_s`` when one
    is given. A gateway failure or an expired bound is logged as
    ``bootstrap.report.failed`` and reported to the caller as ``None``.
    """

    def __init__(
        self,
        gateway: RepositoryGateway,
        *,
        event_logger: BootstrapEventLogger | None = None,
        timeout_s: float | None = None,
    ) -> None:
        """Store the gateway used to create issues."""
        self._gateway = gateway
        self._events = event_logger or BootstrapEventLogger()
        self._timeout_s = timeout_s

    async def report(
        self,
        repository: RepositoryRef,
        title: str,
        body: str,
        *,
        context: BootstrapRunContext,
    ) -> int | None:
        """Create an issue and return its number, or ``None`` on failure."""
        try:
            async with asyncio.timeout(self._timeout_s):
                number = await self._gateway.create_issue(
                    repository.owner, repository.name, title, body
                )
        except (GitHubAPIError, GitHubResponseShapeError, TimeoutError) as exc:
            self._events.log_report_failed(context, title, exc)
            return None
        self._events.log_issue_created(context, title, number)
        return number
