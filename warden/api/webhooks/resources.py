"""Webhook delivery resource.

Usage
-----
Register the resource on the Falcon app::

    from warden.api.webhooks.resources import WebhookResource

    app.add_route("/webhook", WebhookResource(dispatcher=dispatcher, secret=secret))

"""

from __future__ import annotations

import typing as typ
from http import HTTPStatus

from warden.logging import get_logger, log_debug
from warden.webhooks.dispatch import DispatchStatus
from warden.webhooks.events import (
    DELIVERY_HEADER,
    EVENT_HEADER,
    SIGNATURE_HEADER,
    parse_delivery,
)
from warden.webhooks.signature import verify_signature

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from warden.webhooks.dispatch import DispatchResult, EventDispatcher

__all__ = ["WebhookResource"]

logger = get_logger(__name__)

_STATUS_CODES: dict[DispatchStatus, HTTPStatus] = {
    DispatchStatus.HANDLED: HTTPStatus.OK,
    DispatchStatus.IGNORED: HTTPStatus.ACCEPTED,
    DispatchStatus.REJECTED: HTTPStatus.BAD_REQUEST,
    DispatchStatus.FAILED: HTTPStatus.INTERNAL_SERVER_ERROR,
}


def _result_media(result: DispatchResult) -> dict[str, typ.Any]:
    media: dict[str, typ.Any] = {
        "status": result.status.value,
        "delivery_id": result.delivery_id,
        "event": result.event_kind,
    }
    if result.outcome is not None:
        media["outcome"] = result.outcome.kind.value
        media["step"] = result.outcome.step.value if result.outcome.step else None
        media["commit_sha"] = result.outcome.commit_sha
        media["audit_issue_number"] = result.outcome.audit_issue_number
    if result.detail is not None:
        media["detail"] = result.detail
    return media


class WebhookResource:
    """Accept GitHub webhook deliveries and dispatch them.

    The body is verified against ``X-Hub-Signature-256`` before anything
    is decoded. Each valid delivery invokes the dispatcher exactly once.

    Parameters
    ----------
    dispatcher
        Dispatcher holding the per-kind handlers.
    secret
        Shared webhook secret.

    """

    def __init__(self, *, dispatcher: EventDispatcher, secret: str) -> None:
        """Store the dispatcher and webhook secret."""
        self._dispatcher = dispatcher
        self._secret = secret

    async def on_post(self, req: Request, resp: Response) -> None:
        """Handle POST /webhook.

        Raises
        ------
        WebhookSignatureError
            If the signature is missing or wrong (mapped to HTTP 401).
        WebhookPayloadError
            If headers are missing or the body is not JSON (mapped to 400).

        """
        body = await req.stream.read()
        log_debug(
            logger,
            "[webhook.delivery.received] delivery_id=%s event=%s bytes=%d",
            req.get_header(DELIVERY_HEADER),
            req.get_header(EVENT_HEADER),
            len(body),
        )
        verify_signature(self._secret, body, req.get_header(SIGNATURE_HEADER))
        delivery = parse_delivery(
            req.get_header(EVENT_HEADER),
            req.get_header(DELIVERY_HEADER),
            body,
        )
        result = await self._dispatcher.dispatch(delivery)
        resp.status = _STATUS_CODES[result.status]
        resp.media = _result_media(result)
