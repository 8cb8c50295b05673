"""Catalog models - services rendered and rewards offered."""

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q
from django.utils.translation import gettext_lazy as _


class Service(models.Model):
    """A service the shop renders (haircut, beard trim, ...)."""

    code = models.SlugField(_("code"), max_length=50, unique=True)
    name = models.CharField(_("name"), max_length=200)
    price = models.DecimalField(_("price"), max_digits=10, decimal_places=2, default=0)
    duration_minutes = models.PositiveIntegerField(_("duration (minutes)"), default=30)
    is_active = models.BooleanField(_("active"), default=True)

    created_at = models.DateTimeField(_("created at"), auto_now_add=True)
    updated_at = models.DateTimeField(_("updated at"), auto_now=True)

    class Meta:
        verbose_name = _("service")
        verbose_name_plural = _("services")
        ordering = ["name"]

    def __str__(self):
        return self.name


class RewardType(models.TextChoices):
    FREE = "free", _("Free service")
    DISCOUNT = "discount", _("Discount")


class Reward(models.Model):
    """
    Redeemable offer definition, authored by admins.

    A discount reward always carries a percentage in [1, 100]; a free
    reward never does. Deactivating a reward keeps past redemptions
    intact but removes it from eligibility, selection and redemption.
    """

    code = models.SlugField(_("code"), max_length=50, unique=True)
    name = models.CharField(_("name"), max_length=200)
    description = models.TextField(_("description"), blank=True)

    visits_required = models.PositiveIntegerField(_("visits required"))
    reward_type = models.CharField(
        _("type"),
        max_length=20,
        choices=RewardType.choices,
        default=RewardType.FREE,
    )
    discount_percentage = models.PositiveSmallIntegerField(
        _("discount percentage"),
        null=True,
        blank=True,
        help_text=_("Required for discount rewards (1-100)"),
    )
    applicable_services = models.ManyToManyField(
        Service,
        related_name="rewards",
        verbose_name=_("applicable services"),
    )

    max_redemptions = models.PositiveIntegerField(
        _("max redemptions per client"),
        null=True,
        blank=True,
        help_text=_("Lifetime cap per client (empty = unlimited)"),
    )
    valid_for_days = models.PositiveIntegerField(
        _("valid for days"),
        null=True,
        blank=True,
        help_text=_("Days to redeem after the milestone is reached (empty = no expiry)"),
    )

    is_active = models.BooleanField(_("active"), default=True, db_index=True)

    created_at = models.DateTimeField(_("created at"), auto_now_add=True)
    updated_at = models.DateTimeField(_("updated at"), auto_now=True)

    class Meta:
        verbose_name = _("reward")
        verbose_name_plural = _("rewards")
        ordering = ["visits_required", "name"]
        constraints = [
            models.CheckConstraint(
                condition=Q(visits_required__gte=1),
                name="barberman_reward_visits_required_positive",
            ),
            models.CheckConstraint(
                condition=(
                    Q(
                        reward_type=RewardType.DISCOUNT,
                        discount_percentage__isnull=False,
                        discount_percentage__gte=1,
                        discount_percentage__lte=100,
                    )
                    | Q(reward_type=RewardType.FREE, discount_percentage__isnull=True)
                ),
                name="barberman_reward_discount_matches_type",
            ),
            models.CheckConstraint(
                condition=Q(max_redemptions__isnull=True) | Q(max_redemptions__gte=1),
                name="barberman_reward_max_redemptions_positive",
            ),
            models.CheckConstraint(
                condition=Q(valid_for_days__isnull=True) | Q(valid_for_days__gte=1),
                name="barberman_reward_valid_for_days_positive",
            ),
        ]

    def __str__(self):
        return f"{self.name} ({self.visits_required} visits)"

    @property
    def benefit_label(self) -> str:
        if self.reward_type == RewardType.DISCOUNT:
            return f"{self.discount_percentage}% off"
        return "Free service"

    def clean(self):
        errors = {}
        if self.visits_required is not None and self.visits_required < 1:
            errors["visits_required"] = _("Visits required must be at least 1.")
        if self.reward_type == RewardType.DISCOUNT:
            pct = self.discount_percentage
            if pct is None or not 1 <= pct <= 100:
                errors["discount_percentage"] = _(
                    "Discount percentage is required for discount rewards and must be between 1-100."
                )
        elif self.discount_percentage is not None:
            errors["discount_percentage"] = _("Free rewards do not take a discount percentage.")
        if errors:
            raise ValidationError(errors)
