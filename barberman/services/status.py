"""
Loyalty status state machine.

    new ──> active <──> milestone_reached
              ^  │             │
              │  v             │
              inactive <───────┘

The label is a pure derivation of the client's counters and last visit.
Client.loyalty_status only caches it; transitions never fail.
"""

import logging
from datetime import datetime, timedelta

from django.db import transaction
from django.utils import timezone

from barberman.conf import barberman_settings
from barberman.models import Client, LoyaltyStatus
from barberman.signals import loyalty_status_changed

logger = logging.getLogger(__name__)


_ALLOWED_TRANSITIONS = {
    LoyaltyStatus.NEW: {LoyaltyStatus.ACTIVE},
    LoyaltyStatus.ACTIVE: {LoyaltyStatus.MILESTONE_REACHED, LoyaltyStatus.INACTIVE},
    LoyaltyStatus.MILESTONE_REACHED: {LoyaltyStatus.ACTIVE, LoyaltyStatus.INACTIVE},
    LoyaltyStatus.INACTIVE: {LoyaltyStatus.ACTIVE},
}


class LoyaltyStatusStateMachine:
    """Derives and caches the coarse loyalty status label."""

    @classmethod
    def derive(cls, client: Client, can_redeem: bool, now: datetime | None = None) -> str:
        """
        Status for ``client`` at ``now``.

        Args:
            client: Client (in-memory counters are used)
            can_redeem: Whether the selected reward's requirement is met
            now: Evaluation time (defaults to timezone.now())
        """
        if client.total_lifetime_visits == 0:
            return LoyaltyStatus.NEW

        now = now or timezone.now()
        if client.last_visit_at is not None:
            window = timedelta(days=barberman_settings.INACTIVITY_DAYS)
            if now - client.last_visit_at > window:
                return LoyaltyStatus.INACTIVE

        if can_redeem:
            return LoyaltyStatus.MILESTONE_REACHED

        return LoyaltyStatus.ACTIVE

    @classmethod
    def is_allowed(cls, from_status: str, to_status: str) -> bool:
        """Whether ``from_status -> to_status`` is a regular transition (staying put is)."""
        from_status, to_status = LoyaltyStatus(from_status), LoyaltyStatus(to_status)
        if from_status == to_status:
            return True
        return to_status in _ALLOWED_TRANSITIONS.get(from_status, set())

    @classmethod
    def refresh(
        cls,
        client: Client,
        can_redeem: bool,
        now: datetime | None = None,
    ) -> tuple[str, str]:
        """
        Update the cached label on the in-memory client.

        The caller persists it (normally via clients.save_aggregate).
        loyalty_status_changed is sent once the surrounding transaction
        commits.

        Returns:
            Tuple of (old_status, new_status)
        """
        old = client.loyalty_status
        new = cls.derive(client, can_redeem, now)

        if old == new:
            return old, new

        if not cls.is_allowed(old, new):
            logger.warning("Unexpected loyalty status jump for client %s: %s -> %s", client.code, old, new)

        client.loyalty_status = new
        transaction.on_commit(
            lambda: loyalty_status_changed.send(
                sender=Client,
                client=client,
                old_status=old,
                new_status=new,
            )
        )
        return old, new
