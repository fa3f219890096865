"""Behavioural tests for webhook intake over HTTP."""

from __future__ import annotations

import typing as typ

import falcon.testing
import pytest
from pytest_bdd import given, parsers, scenario, then, when

from tests.helpers.fake_gateway import FakeRepositoryGateway
from tests.helpers.webhook_payloads import encode, repository_payload, signed_headers
from warden.api.app import AppDependencies, create_app
from warden.bootstrap import BootstrapWorkflow, WorkflowConfig
from warden.webhooks import HandlerDependencies, build_dispatcher


class IntakeContext(typ.TypedDict, total=False):
    """Shared state used by webhook intake BDD steps."""

    gateway: FakeRepositoryGateway
    client: falcon.testing.TestClient
    result: falcon.testing.Result


@scenario("../webhook_intake.feature", "Signed repository creation is handled")
def test_signed_repository_creation_is_handled() -> None:
    """Behavioural test: a verified delivery runs the workflow."""


@scenario("../webhook_intake.feature", "Forged delivery is refused")
def test_forged_delivery_is_refused() -> None:
    """Behavioural test: bad signatures never reach GitHub."""


@scenario("../webhook_intake.feature", "Other repository actions are acknowledged only")
def test_other_actions_are_acknowledged() -> None:
    """Behavioural test: unhandled actions are accepted and ignored."""


@pytest.fixture
def intake_context() -> IntakeContext:
    """Provide fresh per-scenario state."""
    return {}


@given(parsers.parse('the webhook service is running with secret "{secret}"'))
def webhook_service(intake_context: IntakeContext, secret: str) -> None:
    """Build the app around a fake gateway."""
    gateway = FakeRepositoryGateway()
    workflow = BootstrapWorkflow(gateway, WorkflowConfig())
    deps = AppDependencies(
        dispatcher=build_dispatcher(HandlerDependencies(workflow=workflow)),
        webhook_secret=secret,
    )
    intake_context["gateway"] = gateway
    intake_context["client"] = falcon.testing.TestClient(create_app(deps))


@when(
    parsers.parse(
        'GitHub delivers a "{event}" "{action}" event for "{slug}" signed with "{secret}"'
    )
)
def deliver_event(  # noqa: PLR0913
    intake_context: IntakeContext,
    event: str,
    action: str,
    slug: str,
    secret: str,
) -> None:
    """POST a delivery signed with ``secret``."""
    owner, name = slug.split("/", 1)
    body = encode(repository_payload(name, organization=owner, action=action))
    intake_context["result"] = intake_context["client"].simulate_post(
        "/webhook",
        body=body,
        headers=signed_headers(body, event=event, secret=secret),
    )


@then(parsers.parse("the service responds with status {status:d}"))
def responds_with(intake_context: IntakeContext, status: int) -> None:
    """The HTTP status matches."""
    assert intake_context["result"].status_code == status


@then(parsers.parse('branch protection was applied to "{slug}"'))
def protection_applied(intake_context: IntakeContext, slug: str) -> None:
    """The protection call targeted the delivered repository."""
    owner, name = slug.split("/", 1)
    (call,) = intake_context["gateway"].calls_to("update_branch_protection")
    assert call.args[:2] == (owner, name)


@then("no GitHub call was made")
def no_github_call(intake_context: IntakeContext) -> None:
    """The gateway was never touched."""
    assert intake_context["gateway"].calls == []
