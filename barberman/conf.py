"""
Barberman configuration.

Usage in settings.py:
    BARBERMAN = {
        "VISIT_POINTS": 1,
        "INACTIVITY_DAYS": 90,
        "KEEP_GOAL_AFTER_REDEMPTION": False,
    }
"""

from dataclasses import dataclass
from typing import Any

from django.conf import settings


@dataclass
class BarbermanSettings:
    """Barberman configuration settings."""

    # Progress (and lifetime) visits credited per recorded visit
    VISIT_POINTS: int = 1

    # Days without a visit before a client is considered inactive
    INACTIVITY_DAYS: int = 90

    # Keep the client's goal selected after it is redeemed
    KEEP_GOAL_AFTER_REDEMPTION: bool = False

    # Chunk size used when streaming visit history
    HISTORY_CHUNK_SIZE: int = 500

    # Number of rewards listed in the statistics ranking
    TOP_REWARDS_LIMIT: int = 5


def get_barberman_settings() -> BarbermanSettings:
    """Load settings from Django settings."""
    user_settings: dict[str, Any] = getattr(settings, "BARBERMAN", {})
    return BarbermanSettings(**user_settings)


class _LazySettings:
    """Lazy proxy that re-reads settings on every attribute access."""

    def __getattr__(self, name):
        return getattr(get_barberman_settings(), name)


barberman_settings = _LazySettings()
