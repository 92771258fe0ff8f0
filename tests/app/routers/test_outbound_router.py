"""Tests for POST /messages/send."""

import uuid
from unittest.mock import AsyncMock, patch

from app.adapters.telegram import TelegramAdapter
from app.exceptions import PlatformSendError
from app.models.message import Message
from app.schemas.inbox import OutboundSendResult


def test_send_returns_stored_message(client, db, auth_headers, setup_conversation, user_id):
    send = AsyncMock(return_value=OutboundSendResult(platform_message_id="5001"))
    with patch.object(TelegramAdapter, "send", send):
        response = client.post(
            "/messages/send",
            json={"conversation_id": str(setup_conversation.id), "text_content": "On it!"},
            headers=auth_headers,
        )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["platform_message_id"] == "5001"
    assert data["direction"] == "outbound"
    assert data["text_content"] == "On it!"
    assert data["sent_by_user_id"] == str(user_id)
    assert data["conversation_id"] == str(setup_conversation.id)


def test_provider_rejection_is_502(client, db, auth_headers, setup_conversation):
    send = AsyncMock(
        side_effect=PlatformSendError("telegram", "Forbidden: bot was blocked by the user", 403)
    )
    with patch.object(TelegramAdapter, "send", send):
        response = client.post(
            "/messages/send",
            json={"conversation_id": str(setup_conversation.id), "text_content": "hello"},
            headers=auth_headers,
        )

    assert response.status_code == 502
    assert response.json() == {
        "error": "telegram API error: Forbidden: bot was blocked by the user"
    }
    assert db.query(Message).count() == 0


def test_send_requires_auth(client, setup_conversation):
    response = client.post(
        "/messages/send",
        json={"conversation_id": str(setup_conversation.id), "text_content": "hello"},
    )
    assert response.status_code == 401
    assert "error" in response.json()


def test_send_rejects_bad_token(client, setup_conversation):
    response = client.post(
        "/messages/send",
        json={"conversation_id": str(setup_conversation.id), "text_content": "hello"},
        headers={"Authorization": "Bearer not-a-jwt"},
    )
    assert response.status_code == 401


def test_send_requires_content(client, auth_headers, setup_conversation):
    response = client.post(
        "/messages/send",
        json={"conversation_id": str(setup_conversation.id)},
        headers=auth_headers,
    )
    assert response.status_code == 400
    assert "text_content or media_url" in response.json()["error"]


def test_send_unknown_conversation(client, auth_headers):
    response = client.post(
        "/messages/send",
        json={"conversation_id": str(uuid.uuid4()), "text_content": "hello"},
        headers=auth_headers,
    )
    assert response.status_code == 404
    assert response.json() == {"error": "Conversation not found"}


def test_send_on_disconnected_account_is_409(
    client, db, auth_headers, setup_conversation, setup_telegram_account
):
    setup_telegram_account.status = "disconnected"
    db.commit()
    response = client.post(
        "/messages/send",
        json={"conversation_id": str(setup_conversation.id), "text_content": "hello"},
        headers=auth_headers,
    )
    assert response.status_code == 409
