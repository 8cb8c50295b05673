"""Barberman services.

Leaf services (used by barberman.service.LoyaltyService):
- clients: client lookup, row locking and compare-and-swap writes
- catalog: RewardCatalog
- milestones: MilestoneTracker
- progress: ProgressCalculator
- status: LoyaltyStatusStateMachine
- redemption: RedemptionProcessor
- ledger: VisitLedger
"""

from barberman.services import clients
from barberman.services.catalog import RewardCatalog
from barberman.services.milestones import MilestoneTracker
from barberman.services.progress import ProgressCalculator
from barberman.services.status import LoyaltyStatusStateMachine
from barberman.services.redemption import RedemptionProcessor
from barberman.services.ledger import VisitLedger

__all__ = [
    "clients",
    "RewardCatalog",
    "MilestoneTracker",
    "ProgressCalculator",
    "LoyaltyStatusStateMachine",
    "RedemptionProcessor",
    "VisitLedger",
]
