"""HMAC-SHA256 verification of GitHub webhook deliveries."""

from __future__ import annotations

import hashlib
import hmac

from .errors import WebhookSignatureError

_SIGNATURE_PREFIX = "sha256="


def sign_payload(secret: str, body: bytes) -> str:
    """Return the ``X-Hub-Signature-256`` value GitHub sends for ``body``.

    Examples
    --------
    >>> sign_payload("s3cret", b"{}")[:7]
    'sha256='

    """
    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
    return f"{_SIGNATURE_PREFIX}{digest}"


def verify_signature(secret: str, body: bytes, header: str | None) -> None:
    """Verify ``header`` against ``body`` in constant time.

    Raises
    ------
    WebhookSignatureError
        If the header is missing, malformed or does not match.

    """
    if not header:
        raise WebhookSignatureError.missing()
    if not header.startswith(_SIGNATURE_PREFIX):
        raise WebhookSignatureError.malformed()
    expected = sign_payload(secret, body)
    if not hmac.compare_digest(expected, header.strip()):
        raise WebhookSignatureError.mismatch()
