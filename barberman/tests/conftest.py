"""Pytest fixtures for Barberman tests."""

from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from barberman.models import Barber, Reward, RewardType, Service
from barberman.service import LoyaltyService


@pytest.fixture
def barber(db):
    """Create a barber."""
    return Barber.objects.create(code="brb-01", name="Carlos")


@pytest.fixture
def haircut(db):
    """Create the haircut service."""
    return Service.objects.create(code="haircut", name="Haircut", price=Decimal("40.00"))


@pytest.fixture
def beard(db):
    """Create the beard trim service."""
    return Service.objects.create(code="beard", name="Beard trim", price=Decimal("25.00"), duration_minutes=20)


@pytest.fixture
def free_cut(haircut):
    """Free haircut after 10 visits."""
    reward = Reward.objects.create(
        code="free-cut",
        name="Free haircut",
        visits_required=10,
        reward_type=RewardType.FREE,
    )
    reward.applicable_services.add(haircut)
    return reward


@pytest.fixture
def half_off(haircut, beard):
    """50% off after 5 visits, at most once per client."""
    reward = Reward.objects.create(
        code="half-off",
        name="Half price",
        visits_required=5,
        reward_type=RewardType.DISCOUNT,
        discount_percentage=50,
        max_redemptions=1,
    )
    reward.applicable_services.add(haircut, beard)
    return reward


@pytest.fixture
def client_a(db):
    """Register a client (the Django ``client`` fixture name is taken)."""
    return LoyaltyService.register_client("CLI-001", "Rafael", "Souza", phone="(11) 99999-0001")


@pytest.fixture
def record_visits(barber, haircut):
    """Record ``n`` haircut visits for a client, one day apart, ending ``end`` (default now)."""

    def _record(client_code, n, end=None):
        end = end or timezone.now()
        visits = []
        for i in range(n):
            visits.append(
                LoyaltyService.record_visit(
                    client_code,
                    barber.code,
                    ["haircut"],
                    visited_at=end - timedelta(days=n - 1 - i),
                )
            )
        return visits

    return _record
