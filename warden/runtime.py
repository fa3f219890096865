"""Warden runtime entrypoint for container deployments.

This module provides the ASGI application factory used by Granian. It
delegates to :func:`warden.api.app.create_app` for application
construction while keeping the ``warden.runtime:create_app`` entrypoint
stable.

When ``WARDEN_WEBHOOK_SECRET`` and ``WARDEN_GITHUB_TOKEN`` are set, the
runtime builds the GitHub client, the bootstrap workflow and the event
dispatcher so the app serves ``POST /webhook``. When neither is set it
starts in health-only mode; setting only one of them is a configuration
error.

Configuration is driven by environment variables:

- ``WARDEN_HOST``: Bind address (default ``0.0.0.0``)
- ``WARDEN_PORT``: Listen port (default ``8080``)
- ``WARDEN_LOG_LEVEL``: Log level (default ``INFO``)
- ``WARDEN_GITHUB_*``, ``WARDEN_WEBHOOK_SECRET``, ``WARDEN_ORGANIZATION``
  and the workflow variables read by
  :meth:`warden.bootstrap.config.WorkflowConfig.from_env`

Run the service directly with ``python -m warden.runtime``.
"""

from __future__ import annotations

import os
import typing as typ

if typ.TYPE_CHECKING:
    import falcon.asgi

from warden.logging import (
    configure_logging,
    get_logger,
    log_error,
    log_info,
    log_warning,
)

__all__ = ["create_app", "main"]

logger = get_logger(__name__)

# TCP port number range limits
_MIN_PORT = 1
_MAX_PORT = 65535


def _parse_port(port_str: str) -> int:
    """Parse and validate a port number string.

    Raises
    ------
    SystemExit
        If port_str is not a valid integer in range 1-65535.

    """
    try:
        port = int(port_str)
        if not (_MIN_PORT <= port <= _MAX_PORT):
            msg = f"port {port} outside valid range {_MIN_PORT}-{_MAX_PORT}"
            raise ValueError(msg)  # noqa: TRY301 - unify conversion and range errors
    except ValueError as exc:
        log_error(
            logger,
            "Invalid WARDEN_PORT value: %r (must be %d-%d): %s",
            port_str,
            _MIN_PORT,
            _MAX_PORT,
            exc,
        )
        raise SystemExit(1) from exc
    return port


def _webhook_mode_requested() -> bool:
    return bool(
        os.environ.get("WARDEN_WEBHOOK_SECRET", "").strip()
        or os.environ.get("WARDEN_GITHUB_TOKEN", "").strip()
    )


def create_app() -> falcon.asgi.App:
    """Create and configure the Falcon ASGI application.

    Returns
    -------
    falcon.asgi.App
        Configured Falcon ASGI application.

    Raises
    ------
    GitHubConfigError
        If the webhook secret is set but the GitHub token is missing.
    WebhookConfigError
        If the GitHub token is set but the webhook secret is missing.
    WorkflowConfigError
        If a workflow variable holds an unusable value.

    """
    from warden.api.app import create_app as _create_api_app

    if not _webhook_mode_requested():
        log_warning(
            logger,
            "WARDEN_WEBHOOK_SECRET and WARDEN_GITHUB_TOKEN unset; "
            "starting in health-only mode",
        )
        return _create_api_app()

    from warden.api.app import AppDependencies
    from warden.bootstrap import BootstrapWorkflow, WorkflowConfig
    from warden.github import GitHubRESTClient, GitHubRESTConfig
    from warden.webhooks import HandlerDependencies, WebhookConfig, build_dispatcher

    webhook_config = WebhookConfig.from_env()
    workflow_config = WorkflowConfig.from_env()
    gateway = GitHubRESTClient(GitHubRESTConfig.from_env())
    workflow = BootstrapWorkflow(gateway, workflow_config)
    dispatcher = build_dispatcher(
        HandlerDependencies(
            workflow=workflow,
            organization=webhook_config.organization,
        )
    )

    log_info(
        logger,
        "Webhook intake enabled (organization=%s minimum_reviews=%d "
        "run_timeout_s=%s)",
        webhook_config.organization or "*",
        workflow_config.minimum_reviews,
        workflow_config.run_timeout_s,
    )

    deps = AppDependencies(
        dispatcher=dispatcher,
        webhook_secret=webhook_config.secret,
        gateway=gateway,
    )
    return _create_api_app(deps)


def main() -> None:
    """Start the Warden runtime server using Granian.

    Reads ``WARDEN_HOST``, ``WARDEN_PORT``, and ``WARDEN_LOG_LEVEL`` from
    the environment and starts the ASGI server.
    """
    from granian import Granian
    from granian.constants import Interfaces

    host = os.environ.get("WARDEN_HOST", "0.0.0.0")  # noqa: S104 - bind all interfaces for container
    port_str = os.environ.get("WARDEN_PORT", "8080")
    port = _parse_port(port_str)
    log_level_str = os.environ.get("WARDEN_LOG_LEVEL", "INFO")

    normalized_level, invalid_level = configure_logging(log_level_str)
    if invalid_level:
        log_warning(
            logger,
            "Invalid WARDEN_LOG_LEVEL %r, falling back to %s",
            log_level_str,
            normalized_level,
        )

    log_info(
        logger,
        "Starting Warden runtime on %s:%d (log_level=%s)",
        host,
        port,
        normalized_level,
    )

    server = Granian(
        "warden.runtime:create_app",
        address=host,
        port=port,
        interface=Interfaces.ASGI,
        factory=True,
    )
    server.serve()


if __name__ == "__main__":
    main()
