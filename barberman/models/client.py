"""Client model - identity plus the loyalty aggregate.

Data architecture:
    Client counters (total_lifetime_visits, current_progress_visits,
    rewards_earned, rewards_redeemed)
        Aggregate state written only by the loyalty services
        (VisitLedger, RedemptionProcessor, LoyaltyService.select_reward,
        LoyaltyService.reset_progress). Every write is a compare-and-swap
        on ``version``.

    Visit / RewardRedemption
        Source of truth for history. Counters can always be audited
        against them.

    loyalty_status
        Cache of LoyaltyStatusStateMachine.derive(). Refreshed on every
        visit/redemption write; read paths recompute it.
"""

import uuid as uuid_lib

from django.db import models
from django.db.models import F, Q
from django.utils.translation import gettext_lazy as _


class LoyaltyStatus(models.TextChoices):
    NEW = "new", _("New")
    ACTIVE = "active", _("Active")
    MILESTONE_REACHED = "milestone_reached", _("Milestone reached")
    INACTIVE = "inactive", _("Inactive")


class Client(models.Model):
    """
    Barbershop client.

    Never hard-deleted while visits reference it; deactivate with
    ``is_active = False`` instead.
    """

    # Identification
    code = models.CharField(
        _("code"),
        max_length=50,
        unique=True,
        help_text=_("Unique client code (e.g. CLI-001)"),
    )
    uuid = models.UUIDField(default=uuid_lib.uuid4, editable=False, unique=True)

    first_name = models.CharField(_("first name"), max_length=100)
    last_name = models.CharField(_("last name"), max_length=100, blank=True)
    phone = models.CharField(_("phone"), max_length=20, blank=True, db_index=True)

    is_active = models.BooleanField(_("account active"), default=True, db_index=True)

    # Loyalty aggregate
    total_lifetime_visits = models.PositiveIntegerField(
        _("lifetime visits"),
        default=0,
        help_text=_("Total visits ever recorded (never decreases)"),
    )
    current_progress_visits = models.PositiveIntegerField(
        _("progress visits"),
        default=0,
        help_text=_("Visits accumulated since the last redemption"),
    )
    rewards_earned = models.PositiveIntegerField(_("rewards earned"), default=0)
    rewards_redeemed = models.PositiveIntegerField(_("rewards redeemed"), default=0)

    selected_reward = models.ForeignKey(
        "barberman.Reward",
        on_delete=models.SET_NULL,
        related_name="pursuing_clients",
        null=True,
        blank=True,
        verbose_name=_("selected reward"),
    )
    keep_reward_goal = models.BooleanField(
        _("keep reward goal"),
        default=False,
        help_text=_("Keep pursuing the same reward after redeeming it"),
    )

    loyalty_status = models.CharField(
        _("loyalty status"),
        max_length=20,
        choices=LoyaltyStatus.choices,
        default=LoyaltyStatus.NEW,
        db_index=True,
    )
    last_visit_at = models.DateTimeField(_("last visit"), null=True, blank=True)
    loyalty_joined_at = models.DateTimeField(_("joined loyalty at"), null=True, blank=True)

    # Optimistic concurrency counter for the aggregate
    version = models.PositiveIntegerField(_("version"), default=0)

    notes = models.TextField(_("notes"), blank=True)
    metadata = models.JSONField(_("metadata"), default=dict, blank=True)

    created_at = models.DateTimeField(_("created at"), auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(_("updated at"), auto_now=True)

    class Meta:
        verbose_name = _("client")
        verbose_name_plural = _("clients")
        ordering = ["first_name", "last_name"]
        indexes = [
            models.Index(fields=["loyalty_status", "-total_lifetime_visits"], name="barberman_cli_status_idx"),
            models.Index(fields=["-last_visit_at"], name="barberman_cli_lastvisit_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(rewards_redeemed__lte=F("rewards_earned")),
                name="barberman_client_redeemed_lte_earned",
            ),
        ]

    def __str__(self):
        return f"{self.name} ({self.code})"

    @property
    def name(self) -> str:
        """Full name (first + last)."""
        return f"{self.first_name} {self.last_name}".strip()

    def save(self, *args, **kwargs):
        if self.phone:
            self.phone = "".join(filter(str.isdigit, self.phone))
        super().save(*args, **kwargs)
