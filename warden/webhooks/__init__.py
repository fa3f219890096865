"""Webhook intake: signature checks, event decoding and dispatch."""

from __future__ import annotations

from .config import WebhookConfig
from .dispatch import (
    DispatchResult,
    DispatchStatus,
    EventDispatcher,
    HandlerDependencies,
    UnhandledEventSink,
    build_dispatcher,
    handle_repository_created,
)
from .errors import (
    WebhookConfigError,
    WebhookError,
    WebhookPayloadError,
    WebhookSignatureError,
)
from .events import (
    REPOSITORY_CREATED,
    RepositoryCreatedEvent,
    WebhookDelivery,
    decode_repository_created,
    parse_delivery,
)
from .signature import sign_payload, verify_signature

__all__ = [
    "REPOSITORY_CREATED",
    "DispatchResult",
    "DispatchStatus",
    "EventDispatcher",
    "HandlerDependencies",
    "RepositoryCreatedEvent",
    "UnhandledEventSink",
    "WebhookConfig",
    "WebhookConfigError",
    "WebhookDelivery",
    "WebhookError",
    "WebhookPayloadError",
    "WebhookSignatureError",
    "build_dispatcher",
    "decode_repository_created",
    "handle_repository_created",
    "parse_delivery",
    "sign_payload",
    "verify_signature",
]
