"""Tests for Barberman models."""

from datetime import timedelta
from decimal import Decimal

import pytest
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction
from django.utils import timezone

from barberman.exceptions import BarbermanError
from barberman.models import (
    Client,
    LoyaltyStatus,
    Reward,
    RewardMilestone,
    RewardType,
    Visit,
    VisitLine,
)


pytestmark = pytest.mark.django_db


class TestClientModel:
    """Tests for Client model."""

    def test_defaults(self, client_a):
        """New clients start with an empty aggregate."""
        assert client_a.loyalty_status == LoyaltyStatus.NEW
        assert client_a.total_lifetime_visits == 0
        assert client_a.current_progress_visits == 0
        assert client_a.rewards_earned == 0
        assert client_a.rewards_redeemed == 0
        assert client_a.selected_reward is None
        assert client_a.version == 0

    def test_name(self, client_a):
        assert client_a.name == "Rafael Souza"
        assert str(client_a) == "Rafael Souza (CLI-001)"

    def test_phone_normalized(self, client_a):
        """Phone keeps digits only."""
        assert client_a.phone == "11999990001"

    def test_redeemed_cannot_exceed_earned(self, client_a):
        """DB constraint: rewards_redeemed <= rewards_earned."""
        with pytest.raises(IntegrityError):
            with transaction.atomic():
                Client.objects.filter(pk=client_a.pk).update(rewards_redeemed=1)


class TestRewardModel:
    """Tests for Reward model."""

    def test_benefit_label(self, free_cut, half_off):
        assert free_cut.benefit_label == "Free service"
        assert half_off.benefit_label == "50% off"

    def test_ordering_by_requirement(self, free_cut, half_off):
        assert list(Reward.objects.values_list("code", flat=True)) == ["half-off", "free-cut"]

    def test_clean_requires_discount_percentage(self):
        reward = Reward(code="bad", name="Bad", visits_required=3, reward_type=RewardType.DISCOUNT)
        with pytest.raises(DjangoValidationError) as exc_info:
            reward.clean()
        assert "discount_percentage" in exc_info.value.message_dict

    def test_clean_rejects_percentage_on_free_reward(self):
        reward = Reward(code="bad", name="Bad", visits_required=3, discount_percentage=10)
        with pytest.raises(DjangoValidationError) as exc_info:
            reward.clean()
        assert "discount_percentage" in exc_info.value.message_dict

    def test_clean_rejects_zero_visits(self):
        reward = Reward(code="bad", name="Bad", visits_required=0)
        with pytest.raises(DjangoValidationError) as exc_info:
            reward.clean()
        assert "visits_required" in exc_info.value.message_dict

    def test_discount_without_percentage_rejected_by_db(self, db):
        with pytest.raises(IntegrityError):
            with transaction.atomic():
                Reward.objects.create(
                    code="bad",
                    name="Bad",
                    visits_required=3,
                    reward_type=RewardType.DISCOUNT,
                )

    def test_discount_percentage_cleared_rejected_by_db(self, half_off):
        with pytest.raises(IntegrityError):
            with transaction.atomic():
                Reward.objects.filter(pk=half_off.pk).update(discount_percentage=None)

    def test_percentage_out_of_range_rejected_by_db(self, db):
        with pytest.raises(IntegrityError):
            with transaction.atomic():
                Reward.objects.create(
                    code="bad",
                    name="Bad",
                    visits_required=3,
                    reward_type=RewardType.DISCOUNT,
                    discount_percentage=120,
                )

    def test_zero_visits_rejected_by_db(self, db):
        with pytest.raises(IntegrityError):
            with transaction.atomic():
                Reward.objects.create(code="bad", name="Bad", visits_required=0)


class TestVisitModel:
    """Visits are append-only."""

    def test_saved_visit_is_immutable(self, client_a, barber, haircut):
        visit = Visit.objects.create(
            client=client_a,
            barber=barber,
            visit_number=1,
            total_price=Decimal("40.00"),
        )
        visit.notes = "edited"
        with pytest.raises(BarbermanError, match="VISIT_IMMUTABLE"):
            visit.save()

    def test_line_subtotal(self, client_a, barber, haircut):
        visit = Visit.objects.create(
            client=client_a,
            barber=barber,
            visit_number=1,
            total_price=Decimal("80.00"),
        )
        line = VisitLine.objects.create(visit=visit, service=haircut, quantity=2, unit_price=Decimal("40.00"))
        assert line.subtotal == Decimal("80.00")


class TestRewardMilestoneModel:
    """Tests for RewardMilestone model."""

    def test_expires_at(self, client_a, free_cut):
        reached = timezone.now()
        milestone = RewardMilestone.objects.create(client=client_a, reward=free_cut, reached_at=reached)
        assert milestone.expires_at(7) == reached + timedelta(days=7)
        assert milestone.expires_at(None) is None

    def test_unique_per_client_and_reward(self, client_a, free_cut):
        RewardMilestone.objects.create(client=client_a, reward=free_cut)
        with pytest.raises(IntegrityError):
            with transaction.atomic():
                RewardMilestone.objects.create(client=client_a, reward=free_cut)
