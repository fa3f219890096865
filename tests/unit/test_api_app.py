"""Unit tests for warden.api.app application factory.

Usage
-----
Run with pytest::

    pytest tests/unit/test_api_app.py

"""

from __future__ import annotations

import falcon
import falcon.asgi
import falcon.testing
import pytest

from tests.helpers.fake_gateway import FakeRepositoryGateway, unprocessable
from tests.helpers.webhook_payloads import (
    WEBHOOK_SECRET,
    encode,
    repository_payload,
    signed_headers,
)
from warden.api.app import AppDependencies, create_app
from warden.bootstrap import BootstrapWorkflow, WorkflowConfig
from warden.webhooks import HandlerDependencies, build_dispatcher


def _deps(gateway: FakeRepositoryGateway) -> AppDependencies:
    workflow = BootstrapWorkflow(gateway, WorkflowConfig(minimum_reviews=2))
    return AppDependencies(
        dispatcher=build_dispatcher(HandlerDependencies(workflow=workflow)),
        webhook_secret=WEBHOOK_SECRET,
    )


@pytest.fixture
def health_client() -> falcon.testing.TestClient:
    """Build a test client for health-only mode."""
    return falcon.testing.TestClient(create_app())


@pytest.fixture
def full_client(gateway: FakeRepositoryGateway) -> falcon.testing.TestClient:
    """Build a test client with the webhook endpoint."""
    return falcon.testing.TestClient(create_app(_deps(gateway)))


class TestCreateAppHealthOnly:
    """Tests for create_app() without webhook dependencies."""

    def test_returns_falcon_app(self) -> None:
        """Create_app() returns a Falcon ASGI App."""
        assert isinstance(create_app(), falcon.asgi.App), "expected Falcon ASGI App"

    def test_has_health_route(self, health_client: falcon.testing.TestClient) -> None:
        """Health-only app responds to /health."""
        result = health_client.simulate_get("/health")
        assert result.status == falcon.HTTP_200, "expected HTTP 200 from /health"
        assert result.json == {"status": "ok"}, "wrong /health body"

    def test_has_ready_route(self, health_client: falcon.testing.TestClient) -> None:
        """Health-only app responds to /ready."""
        result = health_client.simulate_get("/ready")
        assert result.status == falcon.HTTP_200, "expected HTTP 200 from /ready"
        assert result.json == {"status": "ready"}, "wrong /ready body"

    def test_webhook_endpoint_not_registered(
        self, health_client: falcon.testing.TestClient
    ) -> None:
        """Without deps, the webhook endpoint returns 404."""
        result = health_client.simulate_post("/webhook", body=b"{}")
        assert result.status == falcon.HTTP_404, "expected HTTP 404"

    def test_secret_without_dispatcher_keeps_health_only(self) -> None:
        """A secret alone does not register the webhook endpoint."""
        client = falcon.testing.TestClient(
            create_app(AppDependencies(webhook_secret=WEBHOOK_SECRET))
        )
        result = client.simulate_post("/webhook", body=b"{}")
        assert result.status == falcon.HTTP_404, "expected HTTP 404"


class TestWebhookEndpoint:
    """Tests for POST /webhook."""

    def test_repository_created_is_handled(
        self,
        full_client: falcon.testing.TestClient,
        gateway: FakeRepositoryGateway,
    ) -> None:
        """A signed repository.created delivery bootstraps the repository."""
        body = encode(repository_payload("widgets"))

        result = full_client.simulate_post(
            "/webhook", body=body, headers=signed_headers(body, delivery_id="d-7")
        )

        assert result.status == falcon.HTTP_200, result.text
        assert result.json["status"] == "handled"
        assert result.json["delivery_id"] == "d-7"
        assert result.json["event"] == "repository.created"
        assert result.json["outcome"] == "protected"
        assert result.json["commit_sha"] == "def456"
        assert result.json["audit_issue_number"] == 1
        assert gateway.methods.count("update_branch_protection") == 1

    def test_each_delivery_runs_once(
        self,
        full_client: falcon.testing.TestClient,
        gateway: FakeRepositoryGateway,
    ) -> None:
        """Redelivered events run again and are not deduplicated."""
        body = encode(repository_payload("widgets"))
        headers = signed_headers(body)

        full_client.simulate_post("/webhook", body=body, headers=headers)
        full_client.simulate_post("/webhook", body=body, headers=headers)

        assert len(gateway.calls_to("create_issue")) == 2

    def test_unhandled_event_is_accepted(
        self,
        full_client: falcon.testing.TestClient,
        gateway: FakeRepositoryGateway,
    ) -> None:
        """Other events are acknowledged with 202 and no remote calls."""
        body = b'{"zen": "Design for failure."}'

        result = full_client.simulate_post(
            "/webhook", body=body, headers=signed_headers(body, event="ping")
        )

        assert result.status == falcon.HTTP_202
        assert result.json["status"] == "ignored"
        assert gateway.calls == []

    def test_bad_signature_is_unauthorized(
        self,
        full_client: falcon.testing.TestClient,
        gateway: FakeRepositoryGateway,
    ) -> None:
        """Deliveries signed with another secret are rejected with 401."""
        body = encode(repository_payload())

        result = full_client.simulate_post(
            "/webhook", body=body, headers=signed_headers(body, secret="wrong")
        )

        assert result.status == falcon.HTTP_401
        assert result.json["title"] == "Invalid signature"
        assert gateway.calls == []

    def test_missing_signature_is_unauthorized(
        self, full_client: falcon.testing.TestClient
    ) -> None:
        """Unsigned deliveries are rejected with 401."""
        result = full_client.simulate_post(
            "/webhook",
            body=b"{}",
            headers={"X-GitHub-Event": "repository", "X-GitHub-Delivery": "d-1"},
        )

        assert result.status == falcon.HTTP_401

    def test_missing_event_header_is_bad_request(
        self, full_client: falcon.testing.TestClient
    ) -> None:
        """A signed delivery without X-GitHub-Event is rejected with 400."""
        body = encode(repository_payload())
        headers = signed_headers(body)
        del headers["X-GitHub-Event"]

        result = full_client.simulate_post("/webhook", body=body, headers=headers)

        assert result.status == falcon.HTTP_400
        assert result.json["field"] == "X-GitHub-Event"

    def test_invalid_json_is_bad_request(
        self, full_client: falcon.testing.TestClient
    ) -> None:
        """A signed but unparsable body is rejected with 400."""
        body = b"{not json"

        result = full_client.simulate_post(
            "/webhook", body=body, headers=signed_headers(body)
        )

        assert result.status == falcon.HTTP_400
        assert result.json["field"] == "body"

    def test_failed_run_returns_server_error(self) -> None:
        """A run that could not protect the branch answers 500."""
        gateway = FakeRepositoryGateway(
            failures={"update_branch_protection": unprocessable()}
        )
        client = falcon.testing.TestClient(create_app(_deps(gateway)))
        body = encode(repository_payload())

        result = client.simulate_post(
            "/webhook", body=body, headers=signed_headers(body)
        )

        assert result.status == falcon.HTTP_500
        assert result.json["status"] == "failed"
        assert result.json["outcome"] == "failed_protection"
        assert result.json["step"] == "protection"
        assert gateway.calls_to("create_issue") == []

    def test_slow_audit_issue_still_returns_ok(self) -> None:
        """A protected run whose audit issue timed out answers 200."""
        gateway = FakeRepositoryGateway(delays={"create_issue": 1.0})
        workflow = BootstrapWorkflow(gateway, WorkflowConfig(run_timeout_s=0.05))
        deps = AppDependencies(
            dispatcher=build_dispatcher(HandlerDependencies(workflow=workflow)),
            webhook_secret=WEBHOOK_SECRET,
        )
        client = falcon.testing.TestClient(create_app(deps))
        body = encode(repository_payload())

        result = client.simulate_post(
            "/webhook", body=body, headers=signed_headers(body)
        )

        assert result.status == falcon.HTTP_200, result.text
        assert result.json["outcome"] == "protected"
        assert result.json["audit_issue_number"] is None
        assert gateway.methods.count("update_branch_protection") == 1
