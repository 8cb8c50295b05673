"""
Milestone tracker - when each reward's requirement was first met.

A row exists for (client, reward) while the client's progress meets the
reward's requirement. The row is created the first time that happens and
removed on redemption, reset, goal change, or when progress no longer
meets the requirement (requirement raised after the fact).
"""

import logging
from collections.abc import Iterable
from datetime import datetime

from django.utils import timezone

from barberman.models import Client, Reward, RewardMilestone

logger = logging.getLogger(__name__)


class MilestoneTracker:
    """Persists milestone timestamps used by the redemption window."""

    @classmethod
    def reached(cls, client: Client) -> dict[int, datetime]:
        """Map of reward_id -> reached_at for the client's current milestones."""
        return dict(
            RewardMilestone.objects.filter(client_id=client.pk).values_list("reward_id", "reached_at")
        )

    @classmethod
    def sync(
        cls,
        client: Client,
        rewards: Iterable[Reward],
        now: datetime | None = None,
    ) -> dict[int, datetime]:
        """
        Bring milestone rows in line with the client's in-memory progress.

        Only ``rewards`` are considered (normally the active ones); rows of
        other rewards are left untouched.

        Returns:
            Map of reward_id -> reached_at after the sync
        """
        now = now or timezone.now()
        existing = cls.reached(client)
        progress = client.current_progress_visits

        met = {r.pk for r in rewards if progress >= r.visits_required}
        unmet = {r.pk for r in rewards if progress < r.visits_required}

        stale = unmet & existing.keys()
        if stale:
            RewardMilestone.objects.filter(client_id=client.pk, reward_id__in=stale).delete()
            for reward_id in stale:
                existing.pop(reward_id)

        new = met - existing.keys()
        if new:
            RewardMilestone.objects.bulk_create(
                [RewardMilestone(client_id=client.pk, reward_id=reward_id, reached_at=now) for reward_id in new]
            )
            existing.update(dict.fromkeys(new, now))
            logger.info("Client %s reached milestones for rewards %s", client.code, sorted(new))

        return existing

    @classmethod
    def ensure(cls, client: Client, reward: Reward, now: datetime | None = None) -> RewardMilestone:
        """Get the client's milestone for ``reward``, opening it at ``now`` when missing."""
        milestone, _ = RewardMilestone.objects.get_or_create(
            client_id=client.pk,
            reward_id=reward.pk,
            defaults={"reached_at": now or timezone.now()},
        )
        return milestone

    @classmethod
    def clear(cls, client: Client) -> int:
        """Delete all of the client's milestones. Returns the number removed."""
        deleted, _ = RewardMilestone.objects.filter(client_id=client.pk).delete()
        return deleted

    @classmethod
    def discard(cls, client: Client, reward_ids: Iterable[int | None]) -> int:
        """Delete the client's milestones for ``reward_ids``. Returns the number removed."""
        reward_ids = {pk for pk in reward_ids if pk is not None}
        if not reward_ids:
            return 0
        deleted, _ = RewardMilestone.objects.filter(client_id=client.pk, reward_id__in=reward_ids).delete()
        return deleted
