"""Tests for the provider webhook endpoints."""

import hashlib
import hmac
import json
from unittest.mock import patch

from app.adapters.meta_profile_fetcher import ProfileResult
from app.adapters.twilio_whatsapp import compute_twilio_signature
from app.commands.webhooks.twilio_command import EMPTY_TWIML
from app.config import Settings, get_settings
from app.core.credentials import decrypt_credential_fields
from app.models.conversation import Conversation
from app.models.message import Message
from tests.fixtures.inbox_fixtures import TWILIO_NUMBER, WEBHOOK_SECRET

SECRET_HEADER = {"X-Telegram-Bot-Api-Secret-Token": WEBHOOK_SECRET}


def telegram_update(message_id=456, text="I want a refund for my order"):
    return {
        "update_id": 10000 + message_id,
        "message": {
            "message_id": message_id,
            "from": {"id": 789, "is_bot": False, "first_name": "Jane", "username": "jdoe"},
            "chat": {"id": 789, "type": "private"},
            "date": 1767268800,
            "text": text,
        },
    }


def override_settings(client, **values):
    settings = Settings(**values)
    client.app.dependency_overrides[get_settings] = lambda: settings


# Telegram


def test_telegram_update_is_stored_and_routed(
    client, db, setup_telegram_account, routing_delay
):
    response = client.post(
        f"/webhooks/telegram/{setup_telegram_account.id}",
        json=telegram_update(),
        headers=SECRET_HEADER,
    )

    assert response.status_code == 200
    assert response.text == "OK"

    conversation = db.query(Conversation).one()
    assert conversation.user_id == setup_telegram_account.user_id
    assert conversation.connected_account_id == setup_telegram_account.id
    assert conversation.platform_conversation_id == "telegram_789"
    assert conversation.participant_name == "Jane"
    assert conversation.status == "unread"
    assert conversation.message_count == 1

    message = db.query(Message).one()
    assert message.platform_message_id == "456"
    assert message.text_content == "I want a refund for my order"

    routing_delay.assert_called_once_with(str(conversation.id), str(message.id))
    db.refresh(setup_telegram_account)
    assert setup_telegram_account.messages_received == 1


def test_telegram_redelivery_is_idempotent(client, db, setup_telegram_account, routing_delay):
    url = f"/webhooks/telegram/{setup_telegram_account.id}"
    assert client.post(url, json=telegram_update(), headers=SECRET_HEADER).text == "OK"
    assert client.post(url, json=telegram_update(), headers=SECRET_HEADER).text == "OK"

    assert db.query(Message).count() == 1
    assert db.query(Conversation).one().message_count == 1
    assert routing_delay.call_count == 1


def test_telegram_redelivery_keeps_triage_status(client, db, setup_telegram_account):
    url = f"/webhooks/telegram/{setup_telegram_account.id}"
    client.post(url, json=telegram_update(), headers=SECRET_HEADER)
    conversation = db.query(Conversation).one()
    conversation.status = "replied"
    db.commit()

    assert client.post(url, json=telegram_update(), headers=SECRET_HEADER).text == "OK"

    db.refresh(conversation)
    assert conversation.status == "replied"
    assert conversation.message_count == 1


def test_telegram_second_message_same_conversation(client, db, setup_telegram_account):
    url = f"/webhooks/telegram/{setup_telegram_account.id}"
    client.post(url, json=telegram_update(456), headers=SECRET_HEADER)
    client.post(url, json=telegram_update(457, text="Any news?"), headers=SECRET_HEADER)

    conversation = db.query(Conversation).one()
    assert conversation.message_count == 2
    assert db.query(Message).count() == 2


def test_telegram_wrong_secret_is_rejected(client, db, setup_telegram_account):
    response = client.post(
        f"/webhooks/telegram/{setup_telegram_account.id}",
        json=telegram_update(),
        headers={"X-Telegram-Bot-Api-Secret-Token": "wrong"},
    )
    assert response.status_code == 403
    assert response.json() == {"error": "Invalid webhook secret"}
    assert db.query(Message).count() == 0


def test_telegram_malformed_payload_is_acknowledged(client, db, setup_telegram_account):
    url = f"/webhooks/telegram/{setup_telegram_account.id}"
    response = client.post(
        url,
        content=b"not json",
        headers={**SECRET_HEADER, "Content-Type": "application/json"},
    )
    assert response.status_code == 200
    assert response.text == "OK"

    response = client.post(url, json={"update_id": 1}, headers=SECRET_HEADER)
    assert response.text == "OK"
    assert db.query(Conversation).count() == 0


def test_telegram_unknown_account_is_acknowledged(client, db):
    response = client.post(
        "/webhooks/telegram/00000000-0000-0000-0000-000000000000",
        json=telegram_update(),
    )
    assert response.status_code == 200
    assert db.query(Message).count() == 0


def test_telegram_routing_disabled(client, setup_telegram_account, routing_delay):
    override_settings(client, inbox_ai_routing_enabled=False)
    client.post(
        f"/webhooks/telegram/{setup_telegram_account.id}",
        json=telegram_update(),
        headers=SECRET_HEADER,
    )
    routing_delay.assert_not_called()


def test_telegram_enqueue_failure_does_not_fail_webhook(
    client, db, setup_telegram_account, routing_delay
):
    routing_delay.side_effect = ConnectionError("broker down")
    response = client.post(
        f"/webhooks/telegram/{setup_telegram_account.id}",
        json=telegram_update(),
        headers=SECRET_HEADER,
    )
    assert response.text == "OK"
    assert db.query(Message).count() == 1


# Twilio WhatsApp


def twilio_form(**overrides):
    form = {
        "MessageSid": "SM123",
        "From": "whatsapp:+33600000000",
        "To": f"whatsapp:{TWILIO_NUMBER}",
        "Body": "Bonjour, une question sur ma commande",
        "ProfileName": "Marie",
        "NumMedia": "0",
    }
    form.update(overrides)
    return form


def test_twilio_message_is_stored(client, db, setup_whatsapp_account):
    response = client.post("/webhooks/twilio/whatsapp", data=twilio_form())

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/xml")
    assert response.text == EMPTY_TWIML

    conversation = db.query(Conversation).one()
    assert conversation.platform == "whatsapp_twilio"
    assert conversation.platform_conversation_id == "whatsapp_+33600000000"
    assert conversation.participant_name == "Marie"
    assert db.query(Message).one().platform_message_id == "SM123"


def test_twilio_unknown_number_is_acknowledged(client, db, setup_whatsapp_account):
    response = client.post("/webhooks/twilio/whatsapp", data=twilio_form(To="whatsapp:+19999"))
    assert response.status_code == 200
    assert db.query(Message).count() == 0


def test_twilio_signature_checked_when_enabled(client, db, setup_whatsapp_account):
    override_settings(client, twilio_validate_signature=True)
    auth_token = decrypt_credential_fields(setup_whatsapp_account.encrypted_credentials)[
        "auth_token"
    ]
    form = twilio_form()

    response = client.post(
        "/webhooks/twilio/whatsapp", data=form, headers={"X-Twilio-Signature": "forged"}
    )
    assert response.status_code == 403
    assert db.query(Message).count() == 0

    signature = compute_twilio_signature(
        auth_token, "https://inbox.example.com/webhooks/twilio/whatsapp", form
    )
    response = client.post(
        "/webhooks/twilio/whatsapp", data=form, headers={"X-Twilio-Signature": signature}
    )
    assert response.status_code == 200
    assert db.query(Message).count() == 1


# Meta


def test_meta_verify_handshake(client):
    response = client.get(
        "/webhooks/meta",
        params={
            "hub.mode": "subscribe",
            "hub.verify_token": "postelma_inbox_2025",
            "hub.challenge": "1158201444",
        },
    )
    assert response.status_code == 200
    assert response.text == "1158201444"


def test_meta_verify_wrong_token(client):
    response = client.get(
        "/webhooks/meta",
        params={"hub.mode": "subscribe", "hub.verify_token": "nope", "hub.challenge": "1"},
    )
    assert response.status_code == 403
    assert "error" in response.json()


def instagram_dm_payload(account_id):
    return {
        "object": "instagram",
        "entry": [
            {
                "id": account_id,
                "time": 1767268800,
                "messaging": [
                    {
                        "sender": {"id": "555"},
                        "recipient": {"id": account_id},
                        "timestamp": 1767268800000,
                        "message": {"mid": "m_1", "text": "Do you ship to Canada?"},
                    }
                ],
            }
        ],
    }


def test_meta_dm_is_stored_with_profile(client, db, setup_instagram_account):
    profile = ProfileResult(username="maple_fan", name="Maple Fan", avatar_url="https://a/p.jpg")
    with patch(
        "app.commands.webhooks.meta_command.MetaProfileFetcher.fetch", return_value=profile
    ):
        response = client.post(
            "/webhooks/meta",
            json=instagram_dm_payload(setup_instagram_account.platform_account_id),
        )

    assert response.status_code == 200
    assert response.json() == {"success": True}
    conversation = db.query(Conversation).one()
    assert conversation.platform == "instagram"
    assert conversation.participant_username == "maple_fan"
    assert conversation.participant_name == "Maple Fan"
    assert conversation.participant_avatar_url == "https://a/p.jpg"
    assert db.query(Message).one().text_content == "Do you ship to Canada?"


def test_meta_event_for_unknown_account_is_skipped(client, db, setup_instagram_account):
    response = client.post("/webhooks/meta", json=instagram_dm_payload("999"))
    assert response.json() == {"success": True}
    assert db.query(Conversation).count() == 0


def test_meta_signature_enforced_with_app_secret(client, db, setup_instagram_account):
    override_settings(client, meta_app_secret="app-secret")
    body = json.dumps(
        instagram_dm_payload(setup_instagram_account.platform_account_id)
    ).encode()

    response = client.post(
        "/webhooks/meta",
        content=body,
        headers={"Content-Type": "application/json", "X-Hub-Signature-256": "sha256=00"},
    )
    assert response.status_code == 403

    signature = "sha256=" + hmac.new(b"app-secret", body, hashlib.sha256).hexdigest()
    with patch(
        "app.commands.webhooks.meta_command.MetaProfileFetcher.fetch",
        return_value=ProfileResult(username="555", name="Unknown User"),
    ):
        response = client.post(
            "/webhooks/meta",
            content=body,
            headers={"Content-Type": "application/json", "X-Hub-Signature-256": signature},
        )
    assert response.status_code == 200
    assert db.query(Message).count() == 1
