"""Configuration for webhook intake."""

from __future__ import annotations

import dataclasses
import os

from .errors import WebhookConfigError


@dataclasses.dataclass(frozen=True, slots=True)
class WebhookConfig:
    """Secret and scope for incoming deliveries.

    Attributes
    ----------
    secret
        Shared secret used to verify ``X-Hub-Signature-256``.
    organization
        When set, deliveries for any other organization are ignored. When
        ``None``, the organization named in each payload is used.

    """

    secret: str
    organization: str | None = None

    @classmethod
    def from_env(cls) -> WebhookConfig:
        """Build configuration from ``WARDEN_WEBHOOK_SECRET`` and ``WARDEN_ORGANIZATION``.

        Raises
        ------
        WebhookConfigError
            If ``WARDEN_WEBHOOK_SECRET`` is unset or blank.

        """
        secret = os.environ.get("WARDEN_WEBHOOK_SECRET", "").strip()
        if not secret:
            raise WebhookConfigError.missing_secret()
        organization = os.environ.get("WARDEN_ORGANIZATION", "").strip()
        return cls(secret=secret, organization=organization or None)
