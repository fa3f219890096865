"""Errors raised while accepting webhook deliveries."""

from __future__ import annotations


class WebhookError(Exception):
    """Base class for webhook intake errors."""


class WebhookSignatureError(WebhookError):
    """Raised when a delivery's HMAC signature cannot be verified."""

    @classmethod
    def missing(cls) -> WebhookSignatureError:
        """Return an error for a delivery without ``X-Hub-Signature-256``."""
        return cls("X-Hub-Signature-256 header is required")

    @classmethod
    def malformed(cls) -> WebhookSignatureError:
        """Return an error for a signature not in ``sha256=<hex>`` form."""
        return cls("X-Hub-Signature-256 must have the form 'sha256=<hex digest>'")

    @classmethod
    def mismatch(cls) -> WebhookSignatureError:
        """Return an error for a signature that does not match the body."""
        return cls("X-Hub-Signature-256 does not match the request body")


class WebhookPayloadError(WebhookError):
    """Raised when a delivery's headers or body cannot be decoded.

    Attributes
    ----------
    field
        Header or payload field at fault, when known.

    """

    def __init__(self, reason: str, *, field: str | None = None) -> None:
        """Initialise with a reason and optional field name."""
        self.reason = reason
        self.field = field
        message = f"{field}: {reason}" if field is not None else reason
        super().__init__(message)

    @classmethod
    def missing_header(cls, header: str) -> WebhookPayloadError:
        """Return an error for a required delivery header that is absent."""
        return cls("header is required", field=header)

    @classmethod
    def invalid_body(cls, detail: str) -> WebhookPayloadError:
        """Return an error for a body that does not match the event schema."""
        return cls(f"invalid payload: {detail}", field="body")


class WebhookConfigError(RuntimeError):
    """Raised when webhook configuration is invalid."""

    @classmethod
    def missing_secret(cls) -> WebhookConfigError:
        """Return an error when no webhook secret is configured."""
        return cls("WARDEN_WEBHOOK_SECRET is required to verify deliveries")
