"""Falcon error handlers for webhook intake errors.

Usage
-----
Register error handlers on the Falcon app::

    from warden.api.errors import handle_invalid_payload, handle_invalid_signature
    from warden.webhooks import WebhookPayloadError, WebhookSignatureError

    app.add_error_handler(WebhookSignatureError, handle_invalid_signature)
    app.add_error_handler(WebhookPayloadError, handle_invalid_payload)

"""

from __future__ import annotations

import typing as typ

import falcon

from warden.logging import get_logger, log_warning

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from warden.webhooks.errors import WebhookPayloadError, WebhookSignatureError

__all__ = ["handle_invalid_payload", "handle_invalid_signature"]

logger = get_logger(__name__)


async def handle_invalid_signature(
    req: Request,
    resp: Response,
    ex: WebhookSignatureError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``WebhookSignatureError`` to an HTTP 401 JSON response."""
    log_warning(
        logger,
        "[webhook.delivery.rejected] reason=signature delivery_id=%s detail=%s",
        req.get_header("X-GitHub-Delivery"),
        ex,
    )
    resp.status = falcon.HTTP_401
    resp.media = {
        "title": "Invalid signature",
        "description": str(ex),
    }


async def handle_invalid_payload(
    req: Request,
    resp: Response,
    ex: WebhookPayloadError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``WebhookPayloadError`` to an HTTP 400 JSON response."""
    log_warning(
        logger,
        "[webhook.delivery.rejected] reason=payload delivery_id=%s detail=%s",
        req.get_header("X-GitHub-Delivery"),
        ex,
    )
    resp.status = falcon.HTTP_400
    media: dict[str, str] = {
        "title": "Invalid delivery",
        "description": ex.reason,
    }
    if ex.field is not None:
        media["field"] = ex.field
    resp.media = media
