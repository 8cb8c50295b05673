"""Loyalty protocols - read models handed to UI and API layers."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal


@dataclass(frozen=True)
class RedemptionRequest:
    """Reward to redeem on the visit being recorded."""

    reward_code: str
    redeemed_by: str = ""  # Staff code; defaults to the visit's barber


@dataclass(frozen=True)
class LoyaltyProgressView:
    """
    Derived loyalty snapshot for one client. Never persisted.

    ``can_redeem`` only answers "is the goal's requirement met";
    ``blocked_reason`` tells whether a met goal is still refused
    ("limit_reached" or "expired").
    """

    client_code: str
    selected_reward: str | None  # Reward code
    eligible_rewards: list[str] = field(default_factory=list)  # Reward codes
    visits_to_next_reward: int = 0
    progress_percentage: int = 0
    can_redeem: bool = False
    total_visits: int = 0
    current_progress_visits: int = 0
    rewards_redeemed: int = 0
    milestone_reached: bool = False
    loyalty_status: str = "new"
    blocked_reason: str | None = None
    milestone_reached_at: datetime | None = None
    redemption_expires_at: datetime | None = None


@dataclass(frozen=True)
class RedemptionRecord:
    """Committed redemption, as reported to callers."""

    client_code: str
    reward_code: str | None
    reward_name: str
    reward_type: str
    discount_percentage: int | None
    visits_consumed: int
    redeemed_at: datetime
    redeemed_by: str
    visit_id: int | None = None


@dataclass(frozen=True)
class LoyaltyStatistics:
    """Program-wide loyalty summary."""

    total_clients: int
    members: int  # Clients with at least one visit
    status_counts: dict[str, int]
    total_redemptions: int
    average_lifetime_visits: Decimal
    participation_rate: Decimal  # Percentage of clients with a goal selected
    top_rewards: list[tuple[str, int]] = field(default_factory=list)  # (reward code, redemptions)
