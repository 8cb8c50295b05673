"""Visit models - the append-only ledger of rendered services."""

from decimal import Decimal

from django.db import models
from django.db.models import Q
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from barberman.exceptions import BarbermanError
from barberman.models.catalog import RewardType


class Visit(models.Model):
    """
    Immutable record of one service transaction.

    Written exactly once by VisitLedger.record_visit(). A redemption, if
    any, is persisted in the same transaction (see RewardRedemption) and
    never attached to a visit afterwards.
    """

    client = models.ForeignKey(
        "barberman.Client",
        on_delete=models.PROTECT,
        related_name="visits",
        verbose_name=_("client"),
    )
    barber = models.ForeignKey(
        "barberman.Barber",
        on_delete=models.PROTECT,
        related_name="visits",
        verbose_name=_("barber"),
    )
    visited_at = models.DateTimeField(_("visited at"), default=timezone.now, db_index=True)
    visit_number = models.PositiveIntegerField(
        _("visit number"),
        help_text=_("Client's lifetime visit count including this visit"),
    )
    total_price = models.DecimalField(_("total price"), max_digits=10, decimal_places=2)
    loyalty_points_earned = models.PositiveIntegerField(_("loyalty points"), default=1)
    reward_redeemed = models.BooleanField(_("reward redeemed"), default=False)
    notes = models.TextField(_("notes"), blank=True)

    created_at = models.DateTimeField(_("created at"), auto_now_add=True)

    class Meta:
        verbose_name = _("visit")
        verbose_name_plural = _("visits")
        ordering = ["-visited_at"]
        indexes = [
            models.Index(fields=["client", "-visited_at"], name="barberman_visit_client_idx"),
            models.Index(fields=["barber", "-visited_at"], name="barberman_visit_barber_idx"),
            models.Index(fields=["reward_redeemed", "-visited_at"], name="barberman_visit_redeemed_idx"),
        ]

    def __str__(self):
        return f"Visit #{self.visit_number} - {self.client_id} @ {self.visited_at:%Y-%m-%d}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise BarbermanError("VISIT_IMMUTABLE", visit_id=self.pk)
        super().save(*args, **kwargs)


class VisitLine(models.Model):
    """One (service, quantity) pair of a visit, with the price at the time."""

    visit = models.ForeignKey(
        Visit,
        on_delete=models.CASCADE,
        related_name="lines",
        verbose_name=_("visit"),
    )
    service = models.ForeignKey(
        "barberman.Service",
        on_delete=models.PROTECT,
        related_name="visit_lines",
        verbose_name=_("service"),
    )
    quantity = models.PositiveIntegerField(_("quantity"), default=1)
    unit_price = models.DecimalField(_("unit price"), max_digits=10, decimal_places=2)

    class Meta:
        verbose_name = _("visit line")
        verbose_name_plural = _("visit lines")
        constraints = [
            models.CheckConstraint(
                condition=Q(quantity__gte=1),
                name="barberman_visitline_quantity_positive",
            ),
        ]

    def __str__(self):
        return f"{self.quantity}x {self.service_id}"

    @property
    def subtotal(self) -> Decimal:
        return self.unit_price * self.quantity


class RewardRedemption(models.Model):
    """
    Reward consumed on a specific visit.

    One per visit at most (OneToOne). Reward details are snapshotted so
    that history survives edits or deletion of the reward definition.
    """

    visit = models.OneToOneField(
        Visit,
        on_delete=models.CASCADE,
        related_name="redemption",
        verbose_name=_("visit"),
    )
    client = models.ForeignKey(
        "barberman.Client",
        on_delete=models.PROTECT,
        related_name="redemptions",
        verbose_name=_("client"),
    )
    reward = models.ForeignKey(
        "barberman.Reward",
        on_delete=models.SET_NULL,
        related_name="redemptions",
        null=True,
        blank=True,
        verbose_name=_("reward"),
    )

    reward_name = models.CharField(_("reward name"), max_length=200)
    reward_type = models.CharField(_("reward type"), max_length=20, choices=RewardType.choices)
    discount_percentage = models.PositiveSmallIntegerField(
        _("discount percentage"),
        null=True,
        blank=True,
    )
    visits_consumed = models.PositiveIntegerField(
        _("visits consumed"),
        help_text=_("Progress visits the client had when redeeming"),
    )

    redeemed_at = models.DateTimeField(_("redeemed at"), default=timezone.now, db_index=True)
    redeemed_by = models.CharField(_("redeemed by"), max_length=100, blank=True)

    class Meta:
        verbose_name = _("reward redemption")
        verbose_name_plural = _("reward redemptions")
        ordering = ["-redeemed_at"]
        indexes = [
            models.Index(fields=["client", "reward"], name="barberman_redem_cli_rew_idx"),
        ]

    def __str__(self):
        return f"{self.reward_name} - {self.client_id} @ {self.redeemed_at:%Y-%m-%d}"
