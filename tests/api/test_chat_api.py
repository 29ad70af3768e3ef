"""
API tests for the chat controller.

Generations run on the test job runner, whose providers replay scripted
answers. Each test drains the runner before reading results back.
"""

import uuid

import pytest
from fastapi import status
from httpx import AsyncClient

from app.domains.chat.state import APOLOGY_TEXT, PLACEHOLDER_TEXT
from app.domains.generation.catalog import ProviderName
from models import MessageRole, MessageStatus
from tests.helpers import fenced_json

CARD_JSX = "export default function Card() {\n  return <div className='card'>Card</div>;\n}"


class TestGenerateEndpoint:
    """Test cases for POST /api/chat/generate."""

    @pytest.mark.asyncio
    async def test_generate_and_poll(self, authenticated_client: AsyncClient, test_db, job_runner):
        """Test a generation is acknowledged at once and completes in the background."""
        job_runner.providers[ProviderName.OPENROUTER].outcomes.append(
            fenced_json(componentName="Card", explanation="A simple card", jsx=CARD_JSX, category="layout")
        )

        response = await authenticated_client.post("/api/chat/generate", json={"message": "a card"})

        assert response.status_code == status.HTTP_202_ACCEPTED
        data = response.json()
        assert data["status"] == "success"
        assert data["message"] == "Component generation started"
        ticket = data["data"]
        assert ticket["status"] == MessageStatus.PROCESSING.value
        assert {"session_id", "user_message_id", "assistant_message_id"} <= set(ticket)

        await job_runner.drain(timeout=5)
        test_db.expunge_all()

        response = await authenticated_client.get(f"/api/chat/messages/{ticket['assistant_message_id']}")
        assert response.status_code == status.HTTP_200_OK
        message = response.json()["data"]
        assert message["status"] == MessageStatus.COMPLETED.value
        assert message["role"] == MessageRole.ASSISTANT.value
        assert message["content"]["text"] == "A simple card"
        assert message["content"]["code"]["jsx"] == CARD_JSX
        assert message["metadata"]["model"] == "gpt-4o-mini"
        assert message["metadata"]["provider"] == "openrouter"
        assert message["error"] is None
        assert message["reply_to_id"] == ticket["user_message_id"]

        response = await authenticated_client.get(f"/api/sessions/{ticket['session_id']}/component")
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"]["name"] == "Card"

    @pytest.mark.asyncio
    async def test_generation_failure_is_visible_on_the_message(
        self, authenticated_client: AsyncClient, test_db, test_session, job_runner
    ):
        """Test a generation where every provider fails ends as a failed message."""
        response = await authenticated_client.post(
            "/api/chat/generate", json={"session_id": str(test_session.id), "message": "a card"}
        )
        assert response.status_code == status.HTTP_202_ACCEPTED
        message_id = response.json()["data"]["assistant_message_id"]

        await job_runner.drain(timeout=5)
        test_db.expunge_all()

        message = (await authenticated_client.get(f"/api/chat/messages/{message_id}")).json()["data"]
        assert message["status"] == MessageStatus.FAILED.value
        assert message["content"]["text"] == APOLOGY_TEXT
        assert message["error"]["kind"] == "AllProvidersFailed"

    @pytest.mark.asyncio
    async def test_empty_request_is_rejected(self, authenticated_client: AsyncClient):
        response = await authenticated_client.post("/api/chat/generate", json={"message": "   "})

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        data = response.json()
        assert data["status"] == "error"
        assert data["error_code"] == "VALIDATION_ERROR"
        assert data["request_id"]
        assert data["timestamp"]

    @pytest.mark.asyncio
    async def test_temperature_out_of_range(self, authenticated_client: AsyncClient):
        response = await authenticated_client.post("/api/chat/generate", json={"message": "a card", "temperature": 3})

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    @pytest.mark.asyncio
    async def test_unknown_session(self, authenticated_client: AsyncClient):
        """Test generating into a missing session returns 404."""
        response = await authenticated_client.post(
            "/api/chat/generate", json={"session_id": str(uuid.uuid4()), "message": "a card"}
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["error_code"] == "SESSION_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_requires_authentication(self, client: AsyncClient):
        response = await client.post("/api/chat/generate", json={"message": "a card"})

        assert response.status_code in (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN)


class TestMessageEndpoints:
    """Test cases for the message endpoints."""

    @pytest.mark.asyncio
    async def test_add_message(self, authenticated_client: AsyncClient, test_session):
        """Test adding a plain message to a session."""
        payload = {"session_id": str(test_session.id), "content": {"text": "remember: dark mode"}}

        response = await authenticated_client.post("/api/chat/message", json=payload)

        assert response.status_code == status.HTTP_201_CREATED
        message = response.json()["data"]
        assert message["role"] == "user"
        assert message["status"] == "completed"
        assert message["sequence"] == 1
        assert message["content"]["text"] == "remember: dark mode"
        assert message["content"]["code"] is None

    @pytest.mark.asyncio
    async def test_edit_user_message(self, authenticated_client: AsyncClient, test_session, add_turn):
        message = await add_turn(test_session, MessageRole.USER, MessageStatus.COMPLETED, "a card")

        response = await authenticated_client.put(f"/api/chat/messages/{message.id}", json={"text": "a blue card"})

        assert response.status_code == status.HTTP_200_OK
        data = response.json()["data"]
        assert data["content"]["text"] == "a blue card"
        assert data["metadata"]["is_edited"] is True
        assert data["metadata"]["edit_history"][0]["content"] == "a card"

    @pytest.mark.asyncio
    async def test_edit_assistant_message(self, authenticated_client: AsyncClient, test_session, add_turn):
        """Test assistant messages are read only."""
        message = await add_turn(test_session, MessageRole.ASSISTANT, MessageStatus.COMPLETED, "Here", CARD_JSX)

        response = await authenticated_client.put(f"/api/chat/messages/{message.id}", json={"text": "changed"})

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    @pytest.mark.asyncio
    async def test_delete_message(self, authenticated_client: AsyncClient, test_session, add_turn):
        message = await add_turn(test_session, MessageRole.USER, MessageStatus.COMPLETED, "bye")

        response = await authenticated_client.delete(f"/api/chat/messages/{message.id}")
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["message"] == "Message deleted successfully"

        response = await authenticated_client.get(f"/api/chat/messages/{message.id}")
        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["error_code"] == "MESSAGE_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_cancel_processing_message(self, authenticated_client: AsyncClient, test_session, add_turn):
        message = await add_turn(test_session, MessageRole.ASSISTANT, MessageStatus.PROCESSING, PLACEHOLDER_TEXT)

        response = await authenticated_client.post(f"/api/chat/messages/{message.id}/cancel")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"]["status"] == "cancelled"

    @pytest.mark.asyncio
    async def test_cancel_completed_message(self, authenticated_client: AsyncClient, test_session, add_turn):
        """Test cancelling a finished message is a conflict."""
        message = await add_turn(test_session, MessageRole.ASSISTANT, MessageStatus.COMPLETED, "done", CARD_JSX)

        response = await authenticated_client.post(f"/api/chat/messages/{message.id}/cancel")

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json()["status"] == "error"

    @pytest.mark.asyncio
    async def test_available_models(self, authenticated_client: AsyncClient):
        response = await authenticated_client.get("/api/chat/models")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()["data"]
        assert data["default_model"] == "gpt-4o-mini"
        assert data["fallback_model"] == "gemini-1.5-flash"
        assert set(data["providers"]) >= {"openrouter", "gemini"}
