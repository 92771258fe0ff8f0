"""Connected account states and per-platform secret fields."""

from enum import StrEnum


class AccountStatus(StrEnum):
    """Lifecycle of a connected provider account."""

    ACTIVE = "active"
    DISCONNECTED = "disconnected"
    ERROR = "error"
    PENDING = "pending"
