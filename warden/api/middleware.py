"""ASGI lifespan middleware reporting the effective GitHub identity.

On startup the middleware asks the gateway who it is acting as and logs
the login together with the remaining rate-limit budget, so operators can
spot a wrong or exhausted token before the first delivery arrives. A
failed lookup is logged and never blocks startup. On shutdown the gateway's
HTTP resources are released.

Usage
-----
Register the middleware when creating the Falcon app::

    from warden.api.middleware import GitHubIdentityProbe

    app = falcon.asgi.App(middleware=[GitHubIdentityProbe(gateway)])

"""

from __future__ import annotations

import typing as typ

from warden.github.errors import GitHubAPIError, GitHubResponseShapeError
from warden.logging import get_logger, log_info, log_warning

if typ.TYPE_CHECKING:
    from warden.github.gateway import RepositoryGateway
    from warden.github.models import RateLimitSnapshot

__all__ = ["GitHubIdentityProbe"]

logger = get_logger(__name__)


class GitHubIdentityProbe:
    """Falcon middleware logging the gateway identity at startup.

    Parameters
    ----------
    gateway
        Repository gateway used by the workflow. When it exposes
        ``last_rate_limit`` the snapshot is logged; when it exposes
        ``aclose`` it is awaited on shutdown.

    """

    def __init__(self, gateway: RepositoryGateway) -> None:
        """Store the gateway to probe."""
        self._gateway = gateway

    async def process_startup(self, _scope: dict[str, typ.Any], _event: object) -> None:
        """Log the effective user and rate-limit budget."""
        try:
            user = await self._gateway.get_authenticated_user()
        except (GitHubAPIError, GitHubResponseShapeError) as exc:
            log_warning(
                logger,
                "[github.identity.unavailable] error_type=%s error_message=%s",
                type(exc).__name__,
                str(exc),
            )
            return

        rate_limit: RateLimitSnapshot | None = getattr(
            self._gateway, "last_rate_limit", None
        )
        log_info(
            logger,
            "[github.identity] login=%s email_public=%s rate_limit=%s "
            "rate_remaining=%s",
            user.login,
            user.email is not None,
            rate_limit.limit if rate_limit is not None else None,
            rate_limit.remaining if rate_limit is not None else None,
        )

    async def process_shutdown(
        self, _scope: dict[str, typ.Any], _event: object
    ) -> None:
        """Close the gateway's owned HTTP resources, if it has any."""
        aclose = getattr(self._gateway, "aclose", None)
        if aclose is not None:
            await aclose()
