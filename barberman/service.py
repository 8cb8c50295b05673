"""
Barberman LoyaltyService - public facade for UI and API layers.

Usage:
    from barberman import LoyaltyService

    LoyaltyService.register_client("CLI-001", "Rafael", "Souza")
    LoyaltyService.select_reward("CLI-001", "free-cut")
    visit = LoyaltyService.record_visit("CLI-001", "BRB-01", [("haircut", 1)])
    view = LoyaltyService.progress("CLI-001")
"""

import logging
from datetime import datetime
from decimal import Decimal

from django.db import IntegrityError, transaction
from django.db.models import Avg, Count
from django.utils import timezone

from barberman.conf import barberman_settings
from barberman.exceptions import ValidationError
from barberman.gates import Gates
from barberman.models import Client, LoyaltyStatus, Reward, RewardRedemption
from barberman.protocols import LoyaltyProgressView, LoyaltyStatistics, RedemptionRecord
from barberman.services import clients
from barberman.services.catalog import RewardCatalog
from barberman.services.ledger import VisitLedger
from barberman.services.milestones import MilestoneTracker
from barberman.services.progress import ProgressCalculator
from barberman.services.status import LoyaltyStatusStateMachine

logger = logging.getLogger(__name__)


class LoyaltyService:
    """
    Loyalty program operations.

    Uses @classmethod for extensibility. Every write locks the client row
    and persists counters through a compare-and-swap on Client.version.
    """

    # =========================================================================
    # Clients
    # =========================================================================

    @classmethod
    def register_client(
        cls,
        code: str,
        first_name: str,
        last_name: str = "",
        phone: str = "",
        **fields,
    ) -> Client:
        """
        Register a new client with an empty loyalty aggregate.

        Raises:
            ValidationError: CLIENT_EXISTS if the code is taken
        """
        try:
            with transaction.atomic():
                client = Client.objects.create(
                    code=code,
                    first_name=first_name,
                    last_name=last_name,
                    phone=phone,
                    **fields,
                )
        except IntegrityError:
            raise ValidationError("CLIENT_EXISTS", client_code=code)

        logger.info("Registered client %s", code)
        return client

    @classmethod
    def progress(cls, client_code: str, now: datetime | None = None) -> LoyaltyProgressView:
        """Current progress view. Status is recomputed, not read from the cache."""
        client = clients.get(client_code)
        return ProgressCalculator.compute_progress(client, RewardCatalog.active_rewards(), now=now)

    # =========================================================================
    # Visits
    # =========================================================================

    @classmethod
    def record_visit(cls, client_code: str, barber_code: str, services, total_price=None, redemption=None, **kwargs):
        """Record a visit. See VisitLedger.record_visit()."""
        return VisitLedger.record_visit(client_code, barber_code, services, total_price, redemption, **kwargs)

    # =========================================================================
    # Goals
    # =========================================================================

    @classmethod
    def select_reward(
        cls,
        client_code: str,
        reward_code: str,
        *,
        expected_version: int | None = None,
    ) -> LoyaltyProgressView:
        """
        Set the reward the client is working toward.

        Accumulated progress is kept. Changing the goal closes the
        milestones of the previous and the new goal, so the new goal's
        redemption window opens now when its requirement is already met.

        Raises:
            NotFoundError: Unknown client, unknown or inactive reward
            RedemptionLimitExceededError: Client already used up this reward
            ConflictError: Stale expected_version or concurrent write
        """
        now = timezone.now()
        with transaction.atomic():
            client = clients.get_for_update(client_code, expected_version)
            reward = RewardCatalog.get_active(reward_code)
            Gates.redemption_limit(client, reward)

            if client.selected_reward_id != reward.pk:
                MilestoneTracker.discard(client, [client.selected_reward_id, reward.pk])
            client.selected_reward = reward
            if client.loyalty_joined_at is None:
                client.loyalty_joined_at = now

            active_rewards = RewardCatalog.active_rewards()
            milestones = MilestoneTracker.sync(client, active_rewards, now=now)
            view = ProgressCalculator.compute_progress(client, active_rewards, milestones=milestones, now=now)
            LoyaltyStatusStateMachine.refresh(client, view.can_redeem, now)
            clients.save_aggregate(client)

        logger.info("Client %s selected reward %s", client_code, reward_code)
        return view

    @classmethod
    def available_rewards(cls, client_code: str) -> list[Reward]:
        """Active rewards the client can still pursue (not capped), lowest requirement first."""
        client = clients.get(client_code)
        counts = VisitLedger.redemption_counts(client)
        return [
            reward
            for reward in RewardCatalog.active_rewards()
            if reward.max_redemptions is None or counts.get(reward.pk, 0) < reward.max_redemptions
        ]

    @classmethod
    def reward_history(cls, client_code: str, reward_code: str | None = None) -> list[RedemptionRecord]:
        """Committed redemptions, most recent first."""
        clients.get(client_code)
        return VisitLedger.redemption_history(client_code, reward_code)

    @classmethod
    def reset_progress(cls, client_code: str, *, expected_version: int | None = None) -> LoyaltyProgressView:
        """
        Admin reset: zero progress, clear goal and milestones.

        Lifetime visits and redemption history are kept.
        """
        now = timezone.now()
        with transaction.atomic():
            client = clients.get_for_update(client_code, expected_version)
            previous = client.current_progress_visits

            client.current_progress_visits = 0
            client.selected_reward = None
            MilestoneTracker.clear(client)

            view = ProgressCalculator.compute_progress(client, RewardCatalog.active_rewards(), milestones={}, now=now)
            LoyaltyStatusStateMachine.refresh(client, view.can_redeem, now)
            clients.save_aggregate(client)

        logger.info("Reset progress of client %s (was %s)", client_code, previous)
        return view

    # =========================================================================
    # Program-wide
    # =========================================================================

    @classmethod
    def statistics(cls) -> LoyaltyStatistics:
        """Program summary based on committed data and cached statuses."""
        status_counts = dict.fromkeys(LoyaltyStatus.values, 0)
        status_counts.update(
            Client.objects.filter(is_active=True)
            .values_list("loyalty_status")
            .annotate(total=Count("id"))
            .order_by()
        )

        total_clients = sum(status_counts.values())
        members = Client.objects.filter(is_active=True, total_lifetime_visits__gt=0)
        average = members.aggregate(avg=Avg("total_lifetime_visits"))["avg"] or 0
        with_goal = Client.objects.filter(is_active=True, selected_reward__isnull=False).count()

        participation = Decimal("0.00")
        if total_clients:
            participation = (Decimal(with_goal) * 100 / total_clients).quantize(Decimal("0.01"))

        top_rewards = list(
            RewardRedemption.objects.filter(reward__isnull=False)
            .values_list("reward__code")
            .annotate(total=Count("id"))
            .order_by("-total", "reward__code")[: barberman_settings.TOP_REWARDS_LIMIT]
        )

        return LoyaltyStatistics(
            total_clients=total_clients,
            members=members.count(),
            status_counts=status_counts,
            total_redemptions=RewardRedemption.objects.count(),
            average_lifetime_visits=Decimal(str(average)).quantize(Decimal("0.01")),
            participation_rate=participation,
            top_rewards=top_rewards,
        )

    @classmethod
    def refresh_statuses(cls, now: datetime | None = None) -> int:
        """
        Recompute the cached loyalty status of every active client.

        Returns:
            Number of clients whose status changed
        """
        now = now or timezone.now()
        active_rewards = RewardCatalog.active_rewards()
        changed = 0

        codes = list(Client.objects.filter(is_active=True).values_list("code", flat=True))
        for code in codes:
            with transaction.atomic():
                client = clients.get_for_update(code)
                view = ProgressCalculator.compute_progress(client, active_rewards, now=now)
                old, new = LoyaltyStatusStateMachine.refresh(client, view.can_redeem, now)
                if old != new:
                    clients.save_aggregate(client)
                    changed += 1

        logger.info("Refreshed loyalty statuses: %s changed", changed)
        return changed
