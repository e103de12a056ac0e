"""
Tests for the chat API routes.
"""

import pytest
from fastapi.testclient import TestClient

from conftest import fenced_workflow_reply, tool_reply
from workflowsage.api.app import create_app
from workflowsage.conversation import prompts
from workflowsage.exceptions import ProviderError
from workflowsage.models.workflow import Phase


@pytest.fixture
def client(orchestrator) -> TestClient:
    """API client bound to the in-memory orchestrator.

    Used without a context manager so the lifespan hook, which would build a
    database-backed orchestrator, does not run.
    """
    return TestClient(create_app(orchestrator=orchestrator))


@pytest.fixture
def chat_id(client) -> str:
    response = client.post("/chats", json={"owner": "alice"})
    return response.json()["id"]


class TestRootEndpoints:
    """Tests for the service-level endpoints."""

    def test_root(self, client):
        """Test the root status endpoint."""
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_missing_orchestrator_is_503(self):
        """Test that chat routes refuse to work before startup completes."""
        response = TestClient(create_app()).get("/chats/any")

        assert response.status_code == 503


class TestConversationLifecycle:
    """Tests for creating and reading conversations."""

    def test_create_chat(self, client):
        """Test that a new chat starts in discovery with the greeting."""
        response = client.post("/chats", json={"owner": "alice"})

        assert response.status_code == 201
        data = response.json()
        assert data["owner"] == "alice"
        assert data["phase"] == Phase.DISCOVERY
        assert data["title"] == "New Chat"
        assert data["completed"] is False
        assert [t["role"] for t in data["turns"]] == ["assistant"]
        assert data["turns"][0]["content"] == prompts.GREETING

    def test_create_chat_without_owner(self, client):
        """Test that the owner is optional."""
        response = client.post("/chats", json={})

        assert response.status_code == 201
        assert response.json()["owner"] is None

    def test_get_chat(self, client, chat_id):
        """Test fetching an existing chat."""
        response = client.get(f"/chats/{chat_id}")

        assert response.status_code == 200
        assert response.json()["id"] == chat_id

    def test_get_missing_chat(self, client):
        """Test that an unknown chat id is a 404."""
        response = client.get("/chats/missing")

        assert response.status_code == 404


class TestMessages:
    """Tests for the message endpoint."""

    def test_send_message(self, client, chat_id, model):
        """Test that a message returns the reply and the updated chat."""
        model.queue("Who receives the invoice first?")

        response = client.post(
            f"/chats/{chat_id}/messages", json={"content": "We approve invoices"}
        )

        assert response.status_code == 201
        data = response.json()
        assert data["reply"] == "Who receives the invoice first?"
        assert [t["role"] for t in data["conversation"]["turns"]] == [
            "assistant",
            "user",
            "assistant",
        ]

    def test_message_with_workflow_advances_phase(self, client, chat_id, model):
        """Test that a reply carrying a valid workflow moves to the diagram phase."""
        model.queue(fenced_workflow_reply())

        response = client.post(f"/chats/{chat_id}/messages", json={"content": "Yes, correct"})

        conversation = response.json()["conversation"]
        assert conversation["phase"] == Phase.DIAGRAM
        assert conversation["workflow"]["title"] == "Invoice Approval"

    def test_duplicate_message_is_429(self, client, chat_id):
        """Test that resubmitting the same text inside the window is rejected."""
        first = client.post(f"/chats/{chat_id}/messages", json={"content": "hello"})
        second = client.post(f"/chats/{chat_id}/messages", json={"content": "hello"})

        assert first.status_code == 201
        assert second.status_code == 429
        assert second.json()["detail"]["is_duplicate"] is True

    def test_empty_message_is_rejected(self, client, chat_id):
        """Test request validation on empty content."""
        response = client.post(f"/chats/{chat_id}/messages", json={"content": ""})

        assert response.status_code == 422

    def test_message_to_missing_chat(self, client):
        """Test that posting to an unknown chat is a 404."""
        response = client.post("/chats/missing/messages", json={"content": "hi"})

        assert response.status_code == 404

    def test_provider_failure_is_502(self, client, chat_id, model):
        """Test that a model failure surfaces as a bad gateway."""
        model.queue(ProviderError("anthropic", "overloaded"))

        response = client.post(f"/chats/{chat_id}/messages", json={"content": "hi"})

        assert response.status_code == 502


class TestExplicitOperations:
    """Tests for diagram, suggestion, title and prompt endpoints."""

    def test_diagram_without_workflow_is_409(self, client, chat_id):
        """Test that a diagram cannot be generated before extraction."""
        response = client.post(f"/chats/{chat_id}/generate-diagram")

        assert response.status_code == 409

    def test_diagram(self, client, chat_id, model):
        """Test that the diagram endpoint returns notation and an artifact."""
        _seed_workflow(client, chat_id, model)
        model.queue("```mermaid\nflowchart TD\n  a[Log] --> b[Pay]\n```")

        response = client.post(f"/chats/{chat_id}/generate-diagram")

        assert response.status_code == 200
        data = response.json()
        assert data["notation"].startswith("flowchart TD")
        assert data["artifact_ref"].startswith("data:image/svg+xml;base64,")

    def test_suggestions(self, client, chat_id, model, search_provider):
        """Test that suggestions are researched, stored and complete the chat."""
        _seed_workflow(client, chat_id, model)
        model.queue(tool_reply("invoice ai"), "| Step | Opportunity |")

        response = client.post(f"/chats/{chat_id}/generate-suggestions")

        assert response.status_code == 200
        data = response.json()
        assert data["recommendations"] == "| Step | Opportunity |"
        assert data["conversation"]["completed"] is True
        assert data["conversation"]["phase"] == Phase.OPPORTUNITIES
        assert search_provider.queries == ["invoice ai"]

    def test_empty_suggestions_is_502(self, client, chat_id, model):
        """Test that an empty recommendation result is a bad gateway."""
        _seed_workflow(client, chat_id, model)
        model.queue("   ")

        response = client.post(f"/chats/{chat_id}/generate-suggestions")

        assert response.status_code == 502

    def test_title(self, client, chat_id, model):
        """Test that a generated title is returned."""
        client.post(f"/chats/{chat_id}/messages", json={"content": "We approve invoices"})
        model.queue('"Invoice Approval Flow"')

        response = client.post(f"/chats/{chat_id}/generate-title")

        assert response.status_code == 200
        assert response.json()["title"] == "Invoice Approval Flow"

    def test_implementation_prompt(self, client, model):
        """Test the stateless implementation prompt endpoint."""
        model.queue("Build an OCR intake bot that...")

        response = client.post(
            "/implementation-prompt", json={"description": "OCR invoice intake"}
        )

        assert response.status_code == 200
        assert response.json()["prompt"] == "Build an OCR intake bot that..."


def _seed_workflow(client: TestClient, chat_id: str, model) -> None:
    """Drive discovery until the workflow document is extracted."""
    model.queue(fenced_workflow_reply())
    response = client.post(f"/chats/{chat_id}/messages", json={"content": "That is all"})
    assert response.json()["conversation"]["phase"] == Phase.DIAGRAM
