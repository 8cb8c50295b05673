"""Barberman protocols."""

from barberman.protocols.loyalty import (
    LoyaltyProgressView,
    LoyaltyStatistics,
    RedemptionRecord,
    RedemptionRequest,
)

__all__ = [
    "LoyaltyProgressView",
    "LoyaltyStatistics",
    "RedemptionRecord",
    "RedemptionRequest",
]
