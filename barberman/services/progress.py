"""Progress calculator - derives LoyaltyProgressView. Never writes."""

from collections.abc import Sequence
from datetime import datetime, timedelta

from django.utils import timezone

from barberman.models import Client, Reward
from barberman.protocols import LoyaltyProgressView
from barberman.services.milestones import MilestoneTracker
from barberman.services.status import LoyaltyStatusStateMachine


def progress_percentage(progress: int, visits_required: int) -> int:
    """Percentage of ``visits_required`` met, rounded half up, clamped to [0, 100]."""
    if progress <= 0:
        return 0
    return min(100, (200 * progress + visits_required) // (2 * visits_required))


class ProgressCalculator:
    """Pure derivation of a client's loyalty progress."""

    @classmethod
    def compute_progress(
        cls,
        client: Client,
        active_rewards: Sequence[Reward],
        *,
        redemption_counts: dict[int, int] | None = None,
        milestones: dict[int, datetime] | None = None,
        now: datetime | None = None,
    ) -> LoyaltyProgressView:
        """
        Compute the client's progress view.

        Args:
            client: Client (in-memory counters are used)
            active_rewards: Active rewards (RewardCatalog.active_rewards())
            redemption_counts: reward_id -> redemptions by this client (queried when omitted)
            milestones: reward_id -> reached_at (queried when omitted)
            now: Evaluation time for expiry and status

        Returns:
            LoyaltyProgressView
        """
        now = now or timezone.now()

        if redemption_counts is None:
            from barberman.services.ledger import VisitLedger

            redemption_counts = VisitLedger.redemption_counts(client)
        if milestones is None:
            milestones = MilestoneTracker.reached(client)

        progress = client.current_progress_visits

        def capped(reward: Reward) -> bool:
            return (
                reward.max_redemptions is not None
                and redemption_counts.get(reward.pk, 0) >= reward.max_redemptions
            )

        eligible = [r for r in active_rewards if progress >= r.visits_required and not capped(r)]

        # A deactivated or deleted goal is not in active_rewards: progress is frozen
        selected = next((r for r in active_rewards if r.pk == client.selected_reward_id), None)

        if selected is None:
            return LoyaltyProgressView(
                client_code=client.code,
                selected_reward=None,
                eligible_rewards=[r.code for r in eligible],
                total_visits=client.total_lifetime_visits,
                current_progress_visits=progress,
                rewards_redeemed=client.rewards_redeemed,
                milestone_reached=bool(eligible),
                loyalty_status=LoyaltyStatusStateMachine.derive(client, False, now),
            )

        required = selected.visits_required
        visits_to_next = max(0, required - progress)
        can_redeem = visits_to_next == 0

        reached_at = milestones.get(selected.pk) if can_redeem else None
        expires_at = None
        if reached_at is not None and selected.valid_for_days:
            expires_at = reached_at + timedelta(days=selected.valid_for_days)

        blocked_reason = None
        if can_redeem:
            if capped(selected):
                blocked_reason = "limit_reached"
            elif expires_at is not None and now > expires_at:
                blocked_reason = "expired"

        return LoyaltyProgressView(
            client_code=client.code,
            selected_reward=selected.code,
            eligible_rewards=[r.code for r in eligible],
            visits_to_next_reward=visits_to_next,
            progress_percentage=progress_percentage(progress, required),
            can_redeem=can_redeem,
            total_visits=client.total_lifetime_visits,
            current_progress_visits=progress,
            rewards_redeemed=client.rewards_redeemed,
            milestone_reached=can_redeem,
            loyalty_status=LoyaltyStatusStateMachine.derive(client, can_redeem, now),
            blocked_reason=blocked_reason,
            milestone_reached_at=reached_at,
            redemption_expires_at=expires_at,
        )
