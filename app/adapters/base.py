"""
Platform adapter interface.

Adapters encapsulate platform-specific logic and expose the normalized
inbox message format to commands and services.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from app.schemas.inbox import OutboundMessage, OutboundSendResult, Platform

# HTTP timeout applied to every provider call
TIMEOUT_SECONDS = 30


class BasePlatformAdapter(ABC):
    """Contract for platform adapters. New platforms implement this interface."""

    platform: Platform

    @abstractmethod
    async def send(self, outbound: OutboundMessage) -> OutboundSendResult:
        """Send normalized outbound message via platform API. Raise PlatformSendError on failure."""
        ...

    def verify_webhook(
        self, secret: Optional[str], request_headers: Optional[dict[str, str]] = None
    ) -> bool:
        """
        Verify webhook request (e.g. secret token). Override if platform supports it.
        Return True if valid or verification not required; False to reject.
        """
        return True


def find_header(headers: Optional[dict[str, str]], name: str) -> Optional[str]:
    """Case-insensitive header lookup."""
    name_lower = name.lower()
    for key, value in (headers or {}).items():
        if key.lower() == name_lower:
            return value
    return None
