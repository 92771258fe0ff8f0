"""Typed errors raised by inbox commands and adapters.

Routers translate these into HTTP responses with an ``{"error": ...}`` body
(see ``app.main``).
"""

from __future__ import annotations

from typing import Optional


class InboxError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class AuthError(InboxError):
    status_code = 401


class NotFoundError(InboxError):
    status_code = 404


class InvalidRequestError(InboxError):
    status_code = 400


class AccountUnavailableError(InboxError):
    """The connected account behind a conversation cannot send."""

    status_code = 409


class UnsupportedPlatformError(InboxError):
    status_code = 400

    def __init__(self, platform: str) -> None:
        super().__init__(f"Unsupported platform: {platform}")
        self.platform = platform


class PlatformSendError(InboxError):
    """A provider rejected (or failed) an outbound send."""

    status_code = 502

    def __init__(
        self,
        platform: str,
        detail: str,
        provider_status: Optional[int] = None,
    ) -> None:
        super().__init__(f"{platform} API error: {detail}")
        self.platform = platform
        self.detail = detail
        self.provider_status = provider_status


class RoutingError(InboxError):
    """AI routing could not be completed (missing rows, LLM failure, bad JSON)."""

    status_code = 500


class RoutingTargetNotFoundError(RoutingError):
    """The message or conversation to analyze does not exist."""

    status_code = 404


class WebhookVerificationError(InboxError):
    """Webhook secret or signature did not match."""

    status_code = 403
