"""
RewardMilestone model - when a client first met a reward's requirement.

The redemption window of rewards with ``valid_for_days`` starts at
``reached_at``, not at the reward's creation date.
"""

from datetime import timedelta

from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _


class RewardMilestone(models.Model):
    """One row per (client, reward) whose requirement is currently met."""

    client = models.ForeignKey(
        "barberman.Client",
        on_delete=models.CASCADE,
        related_name="milestones",
        verbose_name=_("client"),
    )
    reward = models.ForeignKey(
        "barberman.Reward",
        on_delete=models.CASCADE,
        related_name="milestones",
        verbose_name=_("reward"),
    )
    reached_at = models.DateTimeField(_("reached at"), default=timezone.now)

    class Meta:
        verbose_name = _("reward milestone")
        verbose_name_plural = _("reward milestones")
        constraints = [
            models.UniqueConstraint(
                fields=["client", "reward"],
                name="barberman_unique_milestone_per_client_reward",
            ),
        ]

    def __str__(self):
        return f"{self.client_id}:{self.reward_id} @ {self.reached_at:%Y-%m-%d}"

    def expires_at(self, valid_for_days: int | None):
        """End of the redemption window, or None when the reward never expires."""
        if not valid_for_days:
            return None
        return self.reached_at + timedelta(days=valid_for_days)
