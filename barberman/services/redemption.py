"""Redemption processor - validates and applies a redemption on a visit draft."""

import logging
from datetime import datetime

from django.utils import timezone

from barberman.conf import barberman_settings
from barberman.exceptions import NotFoundError
from barberman.gates import Gates
from barberman.models import Client, Reward, RewardRedemption, Visit
from barberman.protocols import RedemptionRecord
from barberman.services.milestones import MilestoneTracker

logger = logging.getLogger(__name__)


class RedemptionProcessor:
    """
    Consumes a reached milestone on the visit being recorded.

    Works on the in-memory client; the caller (VisitLedger) holds the row
    lock and persists the counters with a compare-and-swap.
    """

    @classmethod
    def redeem(
        cls,
        client: Client,
        reward: Reward,
        visit: Visit,
        redeemed_by: str,
        *,
        now: datetime | None = None,
    ) -> RewardRedemption:
        """
        Validate and apply a redemption.

        MUST be called inside transaction.atomic() with the client row locked.

        Args:
            client: Locked client
            reward: Reward to redeem
            visit: Unsaved visit draft
            redeemed_by: Staff code
            now: Redemption time

        Returns:
            Unsaved RewardRedemption (saved by the caller after the visit)

        Raises:
            ValidationError: Visit already saved or already redeemed (R5)
            NotFoundError: Reward inactive
            IneligibleError: Not enough progress visits (R1)
            RedemptionLimitExceededError: Per-client cap reached (R2)
            ExpiredError: Redemption window lapsed (R3)
        """
        now = now or timezone.now()

        Gates.redemption_target(visit)
        if not reward.is_active:
            raise NotFoundError("REWARD_NOT_FOUND", reward_code=reward.code, is_active=False)
        Gates.eligibility(client, reward)
        Gates.redemption_limit(client, reward)

        # Requirement lowered after visits accrued: the window opens now
        milestone = MilestoneTracker.ensure(client, reward, now)
        Gates.milestone_window(reward, milestone.reached_at, now)

        visits_consumed = client.current_progress_visits

        client.rewards_earned += 1
        client.rewards_redeemed += 1
        client.current_progress_visits = 0
        MilestoneTracker.clear(client)

        if not (client.keep_reward_goal or barberman_settings.KEEP_GOAL_AFTER_REDEMPTION):
            client.selected_reward = None

        visit.reward_redeemed = True

        logger.info(
            "Client %s redeemed %s (%s visits consumed) by %s",
            client.code,
            reward.code,
            visits_consumed,
            redeemed_by or "-",
        )

        return RewardRedemption(
            visit=visit,
            client=client,
            reward=reward,
            reward_name=reward.name,
            reward_type=reward.reward_type,
            discount_percentage=reward.discount_percentage,
            visits_consumed=visits_consumed,
            redeemed_at=now,
            redeemed_by=redeemed_by,
        )

    @classmethod
    def to_record(cls, redemption: RewardRedemption) -> RedemptionRecord:
        """Convert a redemption row to the caller-facing record."""
        return RedemptionRecord(
            client_code=redemption.client.code,
            reward_code=redemption.reward.code if redemption.reward_id else None,
            reward_name=redemption.reward_name,
            reward_type=redemption.reward_type,
            discount_percentage=redemption.discount_percentage,
            visits_consumed=redemption.visits_consumed,
            redeemed_at=redemption.redeemed_at,
            redeemed_by=redemption.redeemed_by,
            visit_id=redemption.visit_id,
        )
