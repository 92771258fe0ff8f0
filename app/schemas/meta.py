"""
Meta (Instagram / Facebook) webhook payload schemas.

One delivery carries ``entry[]``; each entry holds direct messages under
``messaging[]`` and feed/comment changes under ``changes[]``.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class MetaParty(BaseModel):
    id: str


class MetaAttachmentPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    url: Optional[str] = None


class MetaAttachment(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: str = "file"
    payload: MetaAttachmentPayload = Field(default_factory=MetaAttachmentPayload)


class MetaMessage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    mid: str
    text: Optional[str] = None
    attachments: list[MetaAttachment] = Field(default_factory=list)
    is_echo: bool = False


class MetaMessagingEvent(BaseModel):
    model_config = ConfigDict(extra="ignore")

    sender: MetaParty
    recipient: MetaParty
    timestamp: Optional[int] = None
    message: Optional[MetaMessage] = None


class MetaChange(BaseModel):
    model_config = ConfigDict(extra="ignore")

    field: str
    value: dict[str, Any] = Field(default_factory=dict)


class MetaEntry(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    time: Optional[int] = None
    messaging: list[MetaMessagingEvent] = Field(default_factory=list)
    changes: list[MetaChange] = Field(default_factory=list)


class MetaWebhookPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    object: str = "page"
    entry: list[MetaEntry] = Field(default_factory=list)
