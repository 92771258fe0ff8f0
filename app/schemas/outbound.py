"""Request schema for replying to a conversation."""

from __future__ import annotations

from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, model_validator


class SendMessageRequest(BaseModel):
    conversation_id: UUID
    text_content: Optional[str] = Field(default=None, max_length=10000)
    media_url: Optional[str] = None
    media_type: Optional[Literal["image", "video", "audio", "document"]] = None
    subject: Optional[str] = Field(default=None, max_length=500)
    # Email recipient override
    to: Optional[EmailStr] = None
    # Telegram chat override
    chat_id: Optional[str] = None

    @model_validator(mode="after")
    def require_content(self) -> "SendMessageRequest":
        if not self.text_content and not self.media_url:
            raise ValueError("Either text_content or media_url is required")
        return self
