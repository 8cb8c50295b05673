"""Barberman models."""

from barberman.models.client import Client, LoyaltyStatus
from barberman.models.staff import Barber
from barberman.models.catalog import Service, Reward, RewardType
from barberman.models.visit import Visit, VisitLine, RewardRedemption
from barberman.models.milestone import RewardMilestone

__all__ = [
    # Clients and staff
    "Client",
    "LoyaltyStatus",
    "Barber",
    # Catalog
    "Service",
    "Reward",
    "RewardType",
    # Ledger
    "Visit",
    "VisitLine",
    "RewardRedemption",
    # Redemption windows
    "RewardMilestone",
]
