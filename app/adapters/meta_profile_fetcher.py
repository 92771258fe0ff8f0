"""Fetcher for Instagram / Facebook participant profiles from the Graph API."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import requests

from app.infra.logging_config import get_logger
from app.schemas.inbox import Platform

logger = get_logger("meta_profile_fetcher")

TIMEOUT_SECONDS = 30
UNKNOWN_USER = "Unknown User"

_PROFILE_FIELDS = {
    Platform.INSTAGRAM: "username,name,profile_picture_url",
    Platform.FACEBOOK: "name,profile_pic",
}


@dataclass
class ProfileResult:
    """Result of a profile fetch. Falls back to the sender id on failure."""

    username: Optional[str] = None
    name: Optional[str] = None
    avatar_url: Optional[str] = None
    error: Optional[str] = None


def graph_host(platform: str) -> str:
    if platform == Platform.INSTAGRAM:
        return "https://graph.instagram.com"
    return "https://graph.facebook.com"


class MetaProfileFetcher:
    """Looks up the display identity of a DM or comment author."""

    def __init__(self, access_token: str) -> None:
        self._access_token = access_token

    def fetch(self, platform: str, user_id: str) -> ProfileResult:
        url = f"{graph_host(platform)}/{user_id}"
        params = {
            "fields": _PROFILE_FIELDS.get(platform, "name"),
            "access_token": self._access_token,
        }
        try:
            resp = requests.get(url, params=params, timeout=TIMEOUT_SECONDS)
        except requests.RequestException as e:
            return self._fallback(user_id, str(e))

        if resp.status_code != 200:
            return self._fallback(
                user_id,
                f"HTTP {resp.status_code}: {resp.text[:500] if resp.text else 'no body'}",
            )

        try:
            data = resp.json()
        except ValueError as e:
            return self._fallback(user_id, f"Invalid JSON: {e}")

        return ProfileResult(
            username=data.get("username") or user_id,
            name=data.get("name") or data.get("username") or UNKNOWN_USER,
            avatar_url=data.get("profile_picture_url") or data.get("profile_pic"),
        )

    @staticmethod
    def _fallback(user_id: str, error: str) -> ProfileResult:
        logger.warning("Meta profile lookup failed for %s: %s", user_id, error)
        return ProfileResult(username=user_id, name=UNKNOWN_USER, error=error)
