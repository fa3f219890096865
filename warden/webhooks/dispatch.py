"""Typed dispatch of webhook deliveries to per-kind handlers.

Each handler is a plain async function of ``(delivery, dependencies)``
returning a :class:`~warden.bootstrap.outcome.WorkflowOutcome`, or ``None``
when it decides the delivery is out of scope. The dispatcher routes every
error it sees, and every failed outcome, to the :class:`UnhandledEventSink`
so that no failure goes unlogged.

Usage
-----
>>> dispatcher = build_dispatcher(HandlerDependencies(workflow=workflow))
>>> result = await dispatcher.dispatch(delivery)
>>> result.status
<DispatchStatus.HANDLED: 'handled'>

"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses
import enum
import typing as typ

from warden.logging import (
    format_log_message,
    get_logger,
    log_error,
    log_exception,
    log_info,
)

from .errors import WebhookPayloadError
from .events import REPOSITORY_CREATED, decode_repository_created

if typ.TYPE_CHECKING:
    from warden.bootstrap.outcome import WorkflowOutcome
    from warden.bootstrap.workflow import BootstrapWorkflow

    from .events import WebhookDelivery

logger = get_logger(__name__)


@dataclasses.dataclass(frozen=True, slots=True)
class HandlerDependencies:
    """Collaborators handed to every event handler.

    Attributes
    ----------
    workflow
        Bootstrap workflow run for ``repository.created`` deliveries.
    organization
        Organization filter; ``None`` accepts every organization.

    """

    workflow: BootstrapWorkflow
    organization: str | None = None


type EventHandler = cabc.Callable[
    [WebhookDelivery, HandlerDependencies],
    cabc.Awaitable[WorkflowOutcome | None],
]


class DispatchStatus(enum.StrEnum):
    """How a delivery was dealt with."""

    HANDLED = "handled"
    IGNORED = "ignored"
    REJECTED = "rejected"
    FAILED = "failed"


@dataclasses.dataclass(frozen=True, slots=True)
class DispatchResult:
    """Result of dispatching one delivery."""

    status: DispatchStatus
    delivery_id: str
    event_kind: str
    outcome: WorkflowOutcome | None = None
    detail: str | None = None


class UnhandledEventSink:
    """Catch-all log for delivery errors and failed outcomes.

    Every failure reaches this sink, even when the workflow has already
    logged it.
    """

    def record_error(self, delivery: WebhookDelivery, error: BaseException) -> None:
        """Log an exception raised while processing ``delivery``."""
        log_exception(
            logger,
            format_log_message(
                "[webhook.delivery.error] delivery_id=%s event_kind=%s "
                "error_type=%s error_message=%s",
                delivery.delivery_id,
                delivery.kind,
                type(error).__name__,
                str(error),
            ),
            error,
        )

    def record_failed_outcome(
        self, delivery: WebhookDelivery, outcome: WorkflowOutcome
    ) -> None:
        """Log a handler outcome that reports failure."""
        log_error(
            logger,
            "[webhook.delivery.failed] delivery_id=%s event_kind=%s outcome=%s step=%s",
            delivery.delivery_id,
            delivery.kind,
            outcome.kind,
            outcome.step,
        )


class EventDispatcher:
    """Look up the handler registered for a delivery's kind and invoke it."""

    def __init__(
        self,
        dependencies: HandlerDependencies,
        *,
        sink: UnhandledEventSink | None = None,
    ) -> None:
        """Initialise with handler dependencies and an optional error sink."""
        self._dependencies = dependencies
        self._sink = sink or UnhandledEventSink()
        self._handlers: dict[str, EventHandler] = {}

    def register(self, kind: str, handler: EventHandler) -> None:
        """Register ``handler`` for deliveries of ``kind`` (``event.action``).

        Raises
        ------
        ValueError
            If a handler is already registered for ``kind``.

        """
        if kind in self._handlers:
            msg = f"a handler is already registered for {kind!r}"
            raise ValueError(msg)
        self._handlers[kind] = handler

    def handles(self, kind: str) -> bool:
        """Return whether a handler is registered for ``kind``."""
        return kind in self._handlers

    async def dispatch(self, delivery: WebhookDelivery) -> DispatchResult:
        """Invoke the handler for ``delivery`` and summarise the result."""
        handler = self._handlers.get(delivery.kind)
        if handler is None:
            log_info(
                logger,
                "[webhook.delivery.ignored] delivery_id=%s event_kind=%s",
                delivery.delivery_id,
                delivery.kind,
            )
            return self._result(delivery, DispatchStatus.IGNORED)

        try:
            outcome = await handler(delivery, self._dependencies)
        except WebhookPayloadError as exc:
            self._sink.record_error(delivery, exc)
            return self._result(delivery, DispatchStatus.REJECTED, detail=str(exc))
        except Exception as exc:  # noqa: BLE001 - every handler error reaches the sink
            self._sink.record_error(delivery, exc)
            return self._result(delivery, DispatchStatus.FAILED, detail=str(exc))

        if outcome is None:
            return self._result(delivery, DispatchStatus.IGNORED)
        if not outcome.succeeded:
            self._sink.record_failed_outcome(delivery, outcome)
            return self._result(
                delivery,
                DispatchStatus.FAILED,
                outcome=outcome,
                detail=str(outcome.cause) if outcome.cause is not None else None,
            )
        return self._result(delivery, DispatchStatus.HANDLED, outcome=outcome)

    @staticmethod
    def _result(
        delivery: WebhookDelivery,
        status: DispatchStatus,
        *,
        outcome: WorkflowOutcome | None = None,
        detail: str | None = None,
    ) -> DispatchResult:
        return DispatchResult(
            status=status,
            delivery_id=delivery.delivery_id,
            event_kind=delivery.kind,
            outcome=outcome,
            detail=detail,
        )


async def handle_repository_created(
    delivery: WebhookDelivery, dependencies: HandlerDependencies
) -> WorkflowOutcome | None:
    """Run the bootstrap workflow for a newly created repository."""
    event = decode_repository_created(delivery)
    wanted = dependencies.organization
    if wanted is not None and event.organization.casefold() != wanted.casefold():
        log_info(
            logger,
            "[webhook.delivery.out_of_scope] delivery_id=%s organization=%s "
            "configured_organization=%s",
            delivery.delivery_id,
            event.organization,
            wanted,
        )
        return None
    return await dependencies.workflow.run(
        event.repository, delivery_id=delivery.delivery_id
    )


def build_dispatcher(
    dependencies: HandlerDependencies,
    *,
    sink: UnhandledEventSink | None = None,
) -> EventDispatcher:
    """Return a dispatcher with Warden's handlers registered."""
    dispatcher = EventDispatcher(dependencies, sink=sink)
    dispatcher.register(REPOSITORY_CREATED, handle_repository_created)
    return dispatcher
