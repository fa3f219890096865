"""Webhook delivery envelopes and typed event payloads."""

from __future__ import annotations

import dataclasses
import typing as typ

import msgspec

from warden.github.models import RepositoryRef

from .errors import WebhookPayloadError

EVENT_HEADER = "X-GitHub-Event"
DELIVERY_HEADER = "X-GitHub-Delivery"
SIGNATURE_HEADER = "X-Hub-Signature-256"

REPOSITORY_CREATED = "repository.created"


class _ActionProbe(msgspec.Struct):
    action: str | None = None


class _Account(msgspec.Struct):
    login: str


class _Repository(msgspec.Struct):
    name: str
    owner: _Account
    default_branch: typ.Annotated[str, msgspec.Meta(min_length=1)]


class RepositoryEventPayload(msgspec.Struct, kw_only=True):
    """Subset of the ``repository`` webhook payload Warden reads."""

    action: str
    repository: _Repository
    organization: _Account | None = None


@dataclasses.dataclass(frozen=True, slots=True)
class WebhookDelivery:
    """A verified delivery awaiting dispatch.

    Attributes
    ----------
    delivery_id
        ``X-GitHub-Delivery`` identifier.
    event_name
        ``X-GitHub-Event`` value, for example ``repository``.
    action
        ``action`` field of the payload, when present.
    body
        Raw JSON body.

    """

    delivery_id: str
    event_name: str
    action: str | None
    body: bytes

    @property
    def kind(self) -> str:
        """Return the dispatch key, ``event`` or ``event.action``."""
        if self.action is None:
            return self.event_name
        return f"{self.event_name}.{self.action}"


@dataclasses.dataclass(frozen=True, slots=True)
class RepositoryCreatedEvent:
    """A ``repository.created`` delivery decoded into domain terms."""

    delivery_id: str
    organization: str
    repository: RepositoryRef


def parse_delivery(
    event_name: str | None, delivery_id: str | None, body: bytes
) -> WebhookDelivery:
    """Build a :class:`WebhookDelivery` from headers and the raw body.

    Raises
    ------
    WebhookPayloadError
        If a header is missing or the body is not a JSON object.

    """
    if not event_name:
        raise WebhookPayloadError.missing_header(EVENT_HEADER)
    if not delivery_id:
        raise WebhookPayloadError.missing_header(DELIVERY_HEADER)
    try:
        probe = msgspec.json.decode(body, type=_ActionProbe)
    except msgspec.DecodeError as exc:
        raise WebhookPayloadError.invalid_body(str(exc)) from exc
    return WebhookDelivery(
        delivery_id=delivery_id,
        event_name=event_name,
        action=probe.action,
        body=body,
    )


def decode_repository_created(delivery: WebhookDelivery) -> RepositoryCreatedEvent:
    """Decode a ``repository.created`` delivery.

    The organization comes from the payload's ``organization`` block, or the
    repository owner for repositories created outside an organization.

    Raises
    ------
    WebhookPayloadError
        If the body does not match the repository event schema.

    """
    try:
        payload = msgspec.json.decode(delivery.body, type=RepositoryEventPayload)
    except msgspec.DecodeError as exc:
        raise WebhookPayloadError.invalid_body(str(exc)) from exc

    organization = (
        payload.organization.login
        if payload.organization is not None
        else payload.repository.owner.login
    )
    return RepositoryCreatedEvent(
        delivery_id=delivery.delivery_id,
        organization=organization,
        repository=RepositoryRef(
            owner=organization,
            name=payload.repository.name,
            default_branch=payload.repository.default_branch,
        ),
    )
