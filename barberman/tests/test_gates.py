"""Tests for Barberman gates (R1-R5)."""

from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from barberman.exceptions import (
    BarbermanError,
    ExpiredError,
    IneligibleError,
    RedemptionLimitExceededError,
    ValidationError,
)
from barberman.gates import GateResult, Gates
from barberman.models import RewardType, Visit


pytestmark = pytest.mark.django_db


# ═══════════════════════════════════════════════════════════════════
# R1: Eligibility
# ═══════════════════════════════════════════════════════════════════


class TestEligibilityGate:
    def test_passes_when_requirement_met(self, client_a, free_cut):
        client_a.current_progress_visits = 10
        result = Gates.eligibility(client_a, free_cut)
        assert isinstance(result, GateResult)
        assert result.passed is True
        assert result.gate_name == "R1_Eligibility"

    def test_fails_with_visits_missing(self, client_a, free_cut):
        client_a.current_progress_visits = 7
        with pytest.raises(IneligibleError) as exc_info:
            Gates.eligibility(client_a, free_cut)
        assert exc_info.value.code == "REWARD_NOT_ELIGIBLE"
        assert exc_info.value.data["visits_missing"] == 3

    def test_check_variant(self, client_a, free_cut):
        assert Gates.check_eligibility(client_a, free_cut) is False
        client_a.current_progress_visits = 12
        assert Gates.check_eligibility(client_a, free_cut) is True


# ═══════════════════════════════════════════════════════════════════
# R2: Redemption Limit
# ═══════════════════════════════════════════════════════════════════


class TestRedemptionLimitGate:
    def test_unlimited(self, client_a, free_cut):
        assert Gates.redemption_limit(client_a, free_cut, redeemed_count=50).passed is True

    def test_below_cap(self, client_a, half_off):
        assert Gates.redemption_limit(client_a, half_off).passed is True

    def test_cap_reached(self, client_a, half_off):
        with pytest.raises(RedemptionLimitExceededError) as exc_info:
            Gates.redemption_limit(client_a, half_off, redeemed_count=1)
        assert exc_info.value.data["max_redemptions"] == 1
        assert exc_info.value.kind == "blocked"


# ═══════════════════════════════════════════════════════════════════
# R3: Milestone Window
# ═══════════════════════════════════════════════════════════════════


class TestMilestoneWindowGate:
    def test_no_expiry(self, free_cut):
        reached = timezone.now() - timedelta(days=400)
        assert Gates.milestone_window(free_cut, reached).passed is True

    def test_within_window(self, free_cut):
        free_cut.valid_for_days = 7
        now = timezone.now()
        assert Gates.milestone_window(free_cut, now - timedelta(days=7), now).passed is True

    def test_expired(self, free_cut):
        free_cut.valid_for_days = 7
        now = timezone.now()
        with pytest.raises(ExpiredError, match="REWARD_EXPIRED"):
            Gates.milestone_window(free_cut, now - timedelta(days=10), now)

    def test_missing_milestone_opens_window(self, free_cut):
        free_cut.valid_for_days = 7
        assert Gates.check_milestone_window(free_cut, None) is True


# ═══════════════════════════════════════════════════════════════════
# R4: Reward Definition
# ═══════════════════════════════════════════════════════════════════


class TestRewardDefinitionGate:
    def test_valid_free_reward(self, haircut):
        result = Gates.reward_definition(
            visits_required=10,
            reward_type=RewardType.FREE,
            applicable_services=[haircut],
        )
        assert result.passed is True

    def test_discount_needs_percentage(self, haircut):
        with pytest.raises(ValidationError) as exc_info:
            Gates.reward_definition(
                visits_required=5,
                reward_type=RewardType.DISCOUNT,
                applicable_services=[haircut],
            )
        assert exc_info.value.code == "INVALID_REWARD"
        assert exc_info.value.data["field"] == "discount_percentage"

    @pytest.mark.parametrize("pct", [0, 101])
    def test_discount_percentage_range(self, haircut, pct):
        assert not Gates.check_reward_definition(
            visits_required=5,
            reward_type=RewardType.DISCOUNT,
            discount_percentage=pct,
            applicable_services=[haircut],
        )

    def test_free_reward_rejects_percentage(self, haircut):
        assert not Gates.check_reward_definition(
            visits_required=5,
            reward_type=RewardType.FREE,
            discount_percentage=10,
            applicable_services=[haircut],
        )

    def test_requires_services(self):
        with pytest.raises(ValidationError) as exc_info:
            Gates.reward_definition(visits_required=5, reward_type=RewardType.FREE)
        assert exc_info.value.data["field"] == "applicable_services"

    def test_requires_positive_visits(self, haircut):
        assert not Gates.check_reward_definition(
            visits_required=0,
            reward_type=RewardType.FREE,
            applicable_services=[haircut],
        )

    def test_optional_limits_positive(self, haircut):
        with pytest.raises(ValidationError) as exc_info:
            Gates.reward_definition(
                visits_required=5,
                reward_type=RewardType.FREE,
                applicable_services=[haircut],
                valid_for_days=0,
            )
        assert exc_info.value.data["field"] == "valid_for_days"


# ═══════════════════════════════════════════════════════════════════
# R5: Redemption Target
# ═══════════════════════════════════════════════════════════════════


class TestRedemptionTargetGate:
    def test_draft_visit_passes(self, client_a, barber):
        visit = Visit(client=client_a, barber=barber, visit_number=1, total_price=Decimal("40"))
        assert Gates.redemption_target(visit).passed is True

    def test_saved_visit_rejected(self, client_a, barber):
        visit = Visit.objects.create(client=client_a, barber=barber, visit_number=1, total_price=Decimal("40"))
        with pytest.raises(ValidationError, match="VISIT_IMMUTABLE"):
            Gates.redemption_target(visit)

    def test_already_redeemed_rejected(self, client_a, barber):
        visit = Visit(client=client_a, barber=barber, visit_number=1, total_price=Decimal("40"))
        visit.reward_redeemed = True
        with pytest.raises(BarbermanError, match="VISIT_ALREADY_REDEEMED"):
            Gates.redemption_target(visit)
