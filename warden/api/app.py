"""Application factory for the Warden Falcon ASGI application.

This module provides ``create_app()`` which builds the Falcon ASGI
application with health endpoints and, when webhook dependencies are
available, the ``POST /webhook`` delivery endpoint.

Usage
-----
Create a health-only app::

    app = create_app()

Create a full app::

    from warden.api.app import AppDependencies, create_app

    deps = AppDependencies(
        dispatcher=dispatcher,
        webhook_secret=secret,
        gateway=gateway,
    )
    app = create_app(deps)

"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

import falcon.asgi

from warden.api.errors import handle_invalid_payload, handle_invalid_signature
from warden.api.health.resources import HealthResource, ReadyResource
from warden.webhooks.errors import WebhookPayloadError, WebhookSignatureError

if typ.TYPE_CHECKING:
    from warden.github.gateway import RepositoryGateway
    from warden.webhooks.dispatch import EventDispatcher

__all__ = ["WEBHOOK_PATH", "AppDependencies", "create_app"]

WEBHOOK_PATH = "/webhook"


@dc.dataclass(frozen=True, slots=True)
class AppDependencies:
    """Dependencies for the Falcon ASGI application.

    Attributes
    ----------
    dispatcher
        Event dispatcher invoked once per verified delivery.
    webhook_secret
        Shared secret for ``X-Hub-Signature-256`` verification.
    gateway
        Optional repository gateway; when given, its identity is logged on
        startup and its resources are closed on shutdown.

    """

    dispatcher: EventDispatcher | None = None
    webhook_secret: str | None = None
    gateway: RepositoryGateway | None = None


def create_app(
    dependencies: AppDependencies | None = None,
) -> falcon.asgi.App:
    """Create and configure the Falcon ASGI application.

    ``/health`` and ``/ready`` are always registered. ``POST /webhook`` is
    registered when *dependencies* provides both a dispatcher and a
    webhook secret.

    Parameters
    ----------
    dependencies
        Optional application dependencies.

    Returns
    -------
    falcon.asgi.App
        Configured Falcon ASGI application.

    """
    middleware: list[object] = []
    if dependencies is not None and dependencies.gateway is not None:
        from warden.api.middleware import GitHubIdentityProbe

        middleware.append(GitHubIdentityProbe(dependencies.gateway))

    app = falcon.asgi.App(middleware=middleware)  # type: ignore[no-matching-overload]  # Falcon stubs

    app.add_route("/health", HealthResource())
    app.add_route("/ready", ReadyResource())

    if (
        dependencies is not None
        and dependencies.dispatcher is not None
        and dependencies.webhook_secret
    ):
        from warden.api.webhooks.resources import WebhookResource

        app.add_route(
            WEBHOOK_PATH,
            WebhookResource(
                dispatcher=dependencies.dispatcher,
                secret=dependencies.webhook_secret,
            ),
        )

    app.add_error_handler(WebhookSignatureError, handle_invalid_signature)
    app.add_error_handler(WebhookPayloadError, handle_invalid_payload)

    return app
