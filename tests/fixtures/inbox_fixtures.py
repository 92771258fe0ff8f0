"""Fixtures for connected accounts, conversations, messages and teams."""

import uuid
from datetime import datetime, timezone

import pytest

from app.core.credentials import encrypt_credential_fields
from app.models.connected_account import ConnectedAccount
from app.models.conversation import Conversation
from app.models.message import Message
from app.models.team import Team

FAKE_BOT_TOKEN = "123456:AAHdqTcvCH1vGWJxfSeofSAs0K5P"
WEBHOOK_SECRET = "telegram-webhook-secret"
TWILIO_NUMBER = "+15550001111"


def _account(db, user_id, platform, platform_account_id, credentials, config=None, name=None):
    account = ConnectedAccount(
        user_id=user_id,
        platform=platform,
        platform_account_id=platform_account_id,
        account_name=name,
        status="active",
        config=config or {},
        encrypted_credentials=encrypt_credential_fields(credentials),
    )
    db.add(account)
    db.commit()
    db.refresh(account)
    return account


@pytest.fixture(scope="function")
def user_id():
    return uuid.uuid4()


@pytest.fixture(scope="function")
def setup_telegram_account(db, user_id):
    return _account(
        db,
        user_id,
        "telegram",
        "424242",
        {"bot_token": FAKE_BOT_TOKEN, "webhook_secret": WEBHOOK_SECRET},
        config={"bot_username": "postelma_bot"},
        name="@postelma_bot",
    )


@pytest.fixture(scope="function")
def setup_whatsapp_account(db, user_id, faker):
    return _account(
        db,
        user_id,
        "whatsapp_twilio",
        TWILIO_NUMBER,
        {"account_sid": "AC" + faker.hexify("^" * 32), "auth_token": faker.sha1()},
        config={
            "whatsapp_number": f"whatsapp:{TWILIO_NUMBER}",
            "phone_number": TWILIO_NUMBER,
        },
    )


@pytest.fixture(scope="function")
def setup_instagram_account(db, user_id, faker):
    return _account(
        db,
        user_id,
        "instagram",
        "17841400000000001",
        {"access_token": faker.sha256()},
        name="brand.ig",
    )


@pytest.fixture(scope="function")
def setup_gmail_account(db, user_id, faker):
    return _account(
        db,
        user_id,
        "gmail",
        "brand@example.com",
        {"access_token": faker.sha256()},
        config={"email": "brand@example.com"},
    )


@pytest.fixture(scope="function")
def setup_conversation(db, user_id, setup_telegram_account, faker):
    conversation = Conversation(
        user_id=user_id,
        connected_account_id=setup_telegram_account.id,
        platform="telegram",
        platform_conversation_id="telegram_789",
        participant_id="789",
        participant_username="jdoe",
        participant_name=faker.name(),
        status="unread",
        priority="normal",
        tags=[],
        message_count=1,
        last_message_at=datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc),
    )
    db.add(conversation)
    db.commit()
    db.refresh(conversation)
    return conversation


@pytest.fixture(scope="function")
def setup_inbound_message(db, setup_conversation):
    message = Message(
        conversation_id=setup_conversation.id,
        platform_message_id="456",
        direction="inbound",
        message_type="text",
        text_content="I want a refund for my order",
        sender_id="789",
        sender_name=setup_conversation.participant_name,
        sent_at=datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc),
    )
    db.add(message)
    db.commit()
    db.refresh(message)
    return message


@pytest.fixture(scope="function")
def setup_team(db, user_id):
    team = Team(user_id=user_id, name="Support", description="Refunds, orders, complaints")
    db.add(team)
    db.commit()
    db.refresh(team)
    return team


@pytest.fixture(scope="function")
def setup_sales_team(db, user_id):
    team = Team(user_id=user_id, name="Sales", description="Pricing and quotes", color="#10B981")
    db.add(team)
    db.commit()
    db.refresh(team)
    return team
