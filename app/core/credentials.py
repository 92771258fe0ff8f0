"""Credential validation and encryption for connected provider accounts."""

from __future__ import annotations

import json
from typing import Any, Dict, Type

from cryptography.fernet import Fernet
from pydantic import BaseModel

from app.config import get_settings
from app.schemas.connected_account import (
    AccessTokenCredentials,
    TelegramCredentials,
    TwilioCredentials,
)
from app.schemas.inbox import Platform


def _get_fernet() -> Fernet:
    """Get a Fernet instance with the credential master key."""
    settings = get_settings()
    key = settings.credential_master_key or settings.fernet_key
    if not key:
        raise ValueError(
            "CREDENTIAL_MASTER_KEY or FERNET_KEY must be set for credential encryption"
        )
    return Fernet(key.encode() if isinstance(key, str) else key)


def _encrypt_value(value: bytes) -> bytes:
    """Encrypt a value using the master key."""
    return _get_fernet().encrypt(value)


def _decrypt_value(value: bytes) -> bytes:
    """Decrypt a value using the master key."""
    return _get_fernet().decrypt(value)


credential_models: Dict[Platform, Type[BaseModel]] = {
    Platform.TELEGRAM: TelegramCredentials,
    Platform.WHATSAPP_TWILIO: TwilioCredentials,
    Platform.INSTAGRAM: AccessTokenCredentials,
    Platform.FACEBOOK: AccessTokenCredentials,
    Platform.GMAIL: AccessTokenCredentials,
    Platform.OUTLOOK: AccessTokenCredentials,
}


def validate_credential_fields(platform: str, fields: Dict[str, Any]) -> None:
    """Validate credential fields against the platform's model."""
    try:
        platform_enum = Platform(platform)
    except ValueError:
        raise ValueError(f"Unknown platform: {platform}") from None

    model = credential_models[platform_enum]
    try:
        model(**fields)
    except Exception as e:
        raise ValueError(f"Invalid credential fields: {str(e)}") from e


def encrypt_credential_fields(fields: Dict[str, Any]) -> bytes:
    """Encrypt credential fields."""
    plaintext = json.dumps(fields).encode()
    return _encrypt_value(plaintext)


def decrypt_credential_fields(encrypted_data: bytes) -> Dict[str, Any]:
    """Decrypt credential fields."""
    plaintext = _decrypt_value(encrypted_data)
    return json.loads(plaintext)
