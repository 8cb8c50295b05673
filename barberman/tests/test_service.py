"""Tests for LoyaltyService facade."""

from datetime import timedelta
from decimal import Decimal
from io import StringIO

import pytest
from django.core.management import call_command
from django.utils import timezone

from barberman import LoyaltyService as LazyLoyaltyService
from barberman.exceptions import (
    ConflictError,
    NotFoundError,
    RedemptionLimitExceededError,
    ValidationError,
)
from barberman.models import Client, LoyaltyStatus, Reward, RewardMilestone, RewardType
from barberman.service import LoyaltyService


pytestmark = pytest.mark.django_db


# ═══════════════════════════════════════════════════════════════════
# Package API
# ═══════════════════════════════════════════════════════════════════


class TestPackageExports:
    def test_lazy_export(self):
        assert LazyLoyaltyService is LoyaltyService


# ═══════════════════════════════════════════════════════════════════
# Clients
# ═══════════════════════════════════════════════════════════════════


class TestRegisterClient:
    def test_register(self, db):
        client = LoyaltyService.register_client("CLI-100", "Ana", phone="11 98888-7777")
        assert client.code == "CLI-100"
        assert client.phone == "11988887777"
        assert client.loyalty_status == LoyaltyStatus.NEW

    def test_duplicate_code(self, client_a):
        with pytest.raises(ValidationError, match="CLIENT_EXISTS"):
            LoyaltyService.register_client("CLI-001", "Other")
        assert Client.objects.filter(code="CLI-001").count() == 1

    def test_progress_unknown_client(self, db):
        with pytest.raises(NotFoundError, match="CLIENT_NOT_FOUND"):
            LoyaltyService.progress("NOPE")


# ═══════════════════════════════════════════════════════════════════
# Goal selection
# ═══════════════════════════════════════════════════════════════════


class TestSelectReward:
    def test_select(self, client_a, free_cut):
        view = LoyaltyService.select_reward("CLI-001", "free-cut")

        client_a.refresh_from_db()
        assert client_a.selected_reward == free_cut
        assert client_a.loyalty_joined_at is not None
        assert view.selected_reward == "free-cut"
        assert view.visits_to_next_reward == 10

    def test_progress_kept_on_switch(self, client_a, free_cut, half_off, record_visits):
        LoyaltyService.select_reward("CLI-001", "free-cut")
        record_visits("CLI-001", 6)

        view = LoyaltyService.select_reward("CLI-001", "half-off")

        assert view.current_progress_visits == 6
        assert view.can_redeem is True

    def test_switch_records_milestone(self, client_a, free_cut, record_visits):
        """Requirement already met when selecting: the milestone opens at selection time."""
        record_visits("CLI-001", 10)
        RewardMilestone.objects.all().delete()

        view = LoyaltyService.select_reward("CLI-001", "free-cut")

        assert view.milestone_reached_at is not None
        assert RewardMilestone.objects.filter(client=client_a, reward=free_cut).exists()

    def test_goal_change_reopens_window(self, client_a, haircut, free_cut, record_visits):
        """Switching away and back to a lapsed goal opens a fresh redemption window."""
        weekly = Reward.objects.create(
            code="weekly",
            name="Weekly cut",
            visits_required=3,
            reward_type=RewardType.FREE,
            valid_for_days=7,
        )
        weekly.applicable_services.add(haircut)
        LoyaltyService.select_reward("CLI-001", "weekly")
        record_visits("CLI-001", 3, end=timezone.now() - timedelta(days=30))
        assert LoyaltyService.progress("CLI-001").blocked_reason == "expired"

        LoyaltyService.select_reward("CLI-001", "free-cut")
        view = LoyaltyService.select_reward("CLI-001", "weekly")

        assert view.blocked_reason is None
        assert timezone.now() - view.milestone_reached_at < timedelta(minutes=1)
        visit = LoyaltyService.record_visit("CLI-001", "brb-01", ["haircut"], redemption="weekly")
        assert visit.reward_redeemed is True

    def test_reselecting_same_goal_keeps_milestone(self, client_a, free_cut, record_visits):
        LoyaltyService.select_reward("CLI-001", "free-cut")
        record_visits("CLI-001", 10, end=timezone.now() - timedelta(days=5))
        reached_at = RewardMilestone.objects.get(client=client_a, reward=free_cut).reached_at

        view = LoyaltyService.select_reward("CLI-001", "free-cut")

        assert view.milestone_reached_at == reached_at

    def test_inactive_reward(self, client_a, free_cut):
        Reward.objects.filter(pk=free_cut.pk).update(is_active=False)
        with pytest.raises(NotFoundError, match="REWARD_NOT_FOUND"):
            LoyaltyService.select_reward("CLI-001", "free-cut")

    def test_capped_reward(self, client_a, half_off, record_visits):
        record_visits("CLI-001", 4)
        LoyaltyService.record_visit("CLI-001", "brb-01", ["haircut"], redemption="half-off")

        with pytest.raises(RedemptionLimitExceededError):
            LoyaltyService.select_reward("CLI-001", "half-off")

    def test_stale_version(self, client_a, free_cut, half_off):
        LoyaltyService.select_reward("CLI-001", "free-cut", expected_version=0)
        with pytest.raises(ConflictError):
            LoyaltyService.select_reward("CLI-001", "half-off", expected_version=0)

    def test_available_rewards_excludes_capped(self, client_a, free_cut, half_off, record_visits):
        assert [r.code for r in LoyaltyService.available_rewards("CLI-001")] == ["half-off", "free-cut"]

        record_visits("CLI-001", 4)
        LoyaltyService.record_visit("CLI-001", "brb-01", ["haircut"], redemption="half-off")

        assert [r.code for r in LoyaltyService.available_rewards("CLI-001")] == ["free-cut"]


# ═══════════════════════════════════════════════════════════════════
# History and reset
# ═══════════════════════════════════════════════════════════════════


class TestRewardHistory:
    def test_most_recent_first(self, client_a, free_cut, half_off, record_visits):
        start = timezone.now() - timedelta(days=40)
        record_visits("CLI-001", 4, end=start)
        LoyaltyService.record_visit(
            "CLI-001", "brb-01", ["haircut"], redemption="half-off", visited_at=start + timedelta(days=1)
        )
        record_visits("CLI-001", 9, end=start + timedelta(days=20))
        LoyaltyService.record_visit("CLI-001", "brb-01", ["haircut"], redemption="free-cut")

        history = LoyaltyService.reward_history("CLI-001")

        assert [r.reward_code for r in history] == ["free-cut", "half-off"]
        assert [r.reward_code for r in LoyaltyService.reward_history("CLI-001", "half-off")] == ["half-off"]

    def test_empty(self, client_a):
        assert LoyaltyService.reward_history("CLI-001") == []


class TestResetProgress:
    def test_reset(self, client_a, free_cut, record_visits):
        LoyaltyService.select_reward("CLI-001", "free-cut")
        record_visits("CLI-001", 10)

        view = LoyaltyService.reset_progress("CLI-001")

        client_a.refresh_from_db()
        assert view.current_progress_visits == 0
        assert view.selected_reward is None
        assert client_a.selected_reward is None
        assert client_a.total_lifetime_visits == 10
        assert client_a.loyalty_status == LoyaltyStatus.ACTIVE
        assert not RewardMilestone.objects.filter(client=client_a).exists()


# ═══════════════════════════════════════════════════════════════════
# Program-wide
# ═══════════════════════════════════════════════════════════════════


class TestStatistics:
    def test_statistics(self, client_a, free_cut, half_off, record_visits):
        LoyaltyService.register_client("CLI-002", "Bruno")
        LoyaltyService.select_reward("CLI-001", "free-cut")
        record_visits("CLI-001", 4)
        LoyaltyService.record_visit("CLI-001", "brb-01", ["haircut"], redemption="half-off")

        stats = LoyaltyService.statistics()

        assert stats.total_clients == 2
        assert stats.members == 1
        assert stats.status_counts["new"] == 1
        assert stats.status_counts["active"] == 1
        assert stats.total_redemptions == 1
        assert stats.average_lifetime_visits == Decimal("5.00")
        assert stats.top_rewards == [("half-off", 1)]
        assert stats.participation_rate == Decimal("0.00")

    def test_empty_program(self, db):
        stats = LoyaltyService.statistics()
        assert stats.total_clients == 0
        assert stats.participation_rate == Decimal("0.00")
        assert stats.top_rewards == []


class TestRefreshStatuses:
    def test_marks_inactive(self, client_a, record_visits):
        record_visits("CLI-001", 2, end=timezone.now() - timedelta(days=120))
        client_a.refresh_from_db()
        assert client_a.loyalty_status == LoyaltyStatus.ACTIVE

        changed = LoyaltyService.refresh_statuses()

        client_a.refresh_from_db()
        assert changed == 1
        assert client_a.loyalty_status == LoyaltyStatus.INACTIVE

    def test_progress_recomputes_status(self, client_a, record_visits):
        """Read path does not trust the cached label."""
        record_visits("CLI-001", 2, end=timezone.now() - timedelta(days=120))

        assert LoyaltyService.progress("CLI-001").loyalty_status == LoyaltyStatus.INACTIVE

    def test_visit_reactivates(self, client_a, record_visits):
        record_visits("CLI-001", 2, end=timezone.now() - timedelta(days=120))
        LoyaltyService.refresh_statuses()

        record_visits("CLI-001", 1)

        client_a.refresh_from_db()
        assert client_a.loyalty_status == LoyaltyStatus.ACTIVE

    def test_management_command(self, client_a, record_visits):
        record_visits("CLI-001", 1, end=timezone.now() - timedelta(days=120))
        out = StringIO()

        call_command("barberman_refresh_status", stdout=out)

        assert "Updated loyalty status of 1 clients." in out.getvalue()
