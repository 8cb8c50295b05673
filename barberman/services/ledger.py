"""
Visit ledger - append-only visit recording.

record_visit() is the only way a visit enters the system. Counter
increments, milestone bookkeeping, an optional redemption and the status
cache refresh all commit or roll back together.
"""

import logging
from collections.abc import Iterator, Sequence
from datetime import datetime
from decimal import Decimal, InvalidOperation

from django.db import transaction
from django.db.models import Count
from django.utils import timezone

from barberman.conf import barberman_settings
from barberman.exceptions import ValidationError
from barberman.models import Client, RewardRedemption, Visit, VisitLine
from barberman.protocols import RedemptionRecord, RedemptionRequest
from barberman.services import clients
from barberman.services.catalog import RewardCatalog
from barberman.services.milestones import MilestoneTracker
from barberman.services.progress import ProgressCalculator
from barberman.services.redemption import RedemptionProcessor
from barberman.services.status import LoyaltyStatusStateMachine
from barberman.signals import reward_redeemed, visit_recorded

logger = logging.getLogger(__name__)


class VisitLedger:
    """Append-only record of client visits and the redemptions made on them."""

    @classmethod
    def record_visit(
        cls,
        client_code: str,
        barber_code: str,
        services: Sequence,
        total_price: Decimal | None = None,
        redemption: RedemptionRequest | str | None = None,
        *,
        visited_at: datetime | None = None,
        notes: str = "",
        expected_version: int | None = None,
    ) -> Visit:
        """
        Record a visit, optionally redeeming a reward on it.

        Args:
            client_code: Client code
            barber_code: Barber code
            services: (service_code, quantity) pairs or bare service codes
            total_price: Amount charged (computed from catalog prices when None)
            redemption: RedemptionRequest or bare reward code
            visited_at: Visit time (defaults to now); also the redemption time
            notes: Free text
            expected_version: Client version the caller last saw

        Returns:
            Saved Visit (``visit.redemption`` exists when a reward was redeemed)

        Raises:
            ValidationError: Bad services, quantity or price; visit not redeemable
            NotFoundError: Unknown/inactive client, barber or reward
            IneligibleError, RedemptionLimitExceededError, ExpiredError:
                Redemption refused (nothing is recorded)
            ConflictError: Stale expected_version or concurrent write
        """
        lines = cls._normalize_services(services)
        if total_price is not None:
            total_price = cls._normalize_price(total_price)
        if isinstance(redemption, str):
            redemption = RedemptionRequest(reward_code=redemption)

        visited_at = visited_at or timezone.now()
        barber = clients.get_barber(barber_code)

        catalog = RewardCatalog.services_by_code(code for code, _ in lines)
        unknown = sorted({code for code, _ in lines if code not in catalog})
        if unknown:
            raise ValidationError("SERVICE_NOT_FOUND", service_codes=unknown)

        if total_price is None:
            total_price = sum(
                (catalog[code].price * quantity for code, quantity in lines),
                Decimal("0.00"),
            )

        with transaction.atomic():
            client = clients.get_for_update(client_code, expected_version)
            active_rewards = RewardCatalog.active_rewards()
            points = barberman_settings.VISIT_POINTS

            cls._credit_visit(client, points, active_rewards)
            if client.last_visit_at is None or visited_at > client.last_visit_at:
                client.last_visit_at = visited_at
            if client.loyalty_joined_at is None:
                client.loyalty_joined_at = visited_at

            visit = Visit(
                client=client,
                barber=barber,
                visited_at=visited_at,
                visit_number=Visit.objects.filter(client_id=client.pk).count() + 1,
                total_price=total_price,
                loyalty_points_earned=points,
                notes=notes,
            )

            MilestoneTracker.sync(client, active_rewards, now=visited_at)

            redeemed = None
            if redemption is not None:
                reward = RewardCatalog.get(redemption.reward_code)
                redeemed = RedemptionProcessor.redeem(
                    client,
                    reward,
                    visit,
                    redemption.redeemed_by or barber.code,
                    now=visited_at,
                )

            visit.save()
            VisitLine.objects.bulk_create(
                [
                    VisitLine(
                        visit=visit,
                        service=catalog[code],
                        quantity=quantity,
                        unit_price=catalog[code].price,
                    )
                    for code, quantity in lines
                ]
            )
            if redeemed is not None:
                redeemed.visit = visit
                redeemed.save()

            view = ProgressCalculator.compute_progress(client, active_rewards, now=visited_at)
            LoyaltyStatusStateMachine.refresh(client, view.can_redeem, visited_at)
            clients.save_aggregate(client)

            transaction.on_commit(
                lambda: visit_recorded.send(sender=Client, client=client, visit=visit)
            )
            if redeemed is not None:
                record = RedemptionProcessor.to_record(redeemed)
                transaction.on_commit(
                    lambda: reward_redeemed.send(sender=Client, client=client, visit=visit, record=record)
                )

        logger.info(
            "Recorded visit #%s for client %s (barber %s, progress %s%s)",
            visit.visit_number,
            client.code,
            barber.code,
            client.current_progress_visits,
            f", redeemed {redemption.reward_code}" if redeemed is not None else "",
        )
        return visit

    @classmethod
    def visits_since(cls, client_code: str, since: datetime) -> Iterator[Visit]:
        """Stream the client's visits at or after ``since``, oldest first."""
        queryset = (
            Visit.objects.filter(client__code=client_code, visited_at__gte=since)
            .select_related("barber")
            .order_by("visited_at", "pk")
        )
        return queryset.iterator(chunk_size=barberman_settings.HISTORY_CHUNK_SIZE)

    @classmethod
    def last_visit_at(cls, client_code: str) -> datetime | None:
        """Time of the client's most recent visit, or None."""
        return (
            Visit.objects.filter(client__code=client_code)
            .order_by("-visited_at")
            .values_list("visited_at", flat=True)
            .first()
        )

    @classmethod
    def redemption_counts(cls, client: Client) -> dict[int, int]:
        """Map of reward_id -> committed redemptions by ``client``."""
        return dict(
            RewardRedemption.objects.filter(client_id=client.pk, reward__isnull=False)
            .values("reward_id")
            .annotate(total=Count("id"))
            .values_list("reward_id", "total")
        )

    @classmethod
    def redemption_history(cls, client_code: str, reward_code: str | None = None) -> list[RedemptionRecord]:
        """Committed redemptions of the client, most recent first."""
        queryset = RewardRedemption.objects.filter(client__code=client_code).select_related("client", "reward")
        if reward_code:
            queryset = queryset.filter(reward__code=reward_code)
        return [
            RedemptionProcessor.to_record(redemption)
            for redemption in queryset.order_by("-redeemed_at", "-pk")
        ]

    # =========================================================================
    # Internals
    # =========================================================================

    @classmethod
    def _normalize_services(cls, services: Sequence) -> list[tuple[str, int]]:
        """Turn bare codes and (code, qty) pairs into (code, qty) tuples, validating quantities."""
        if not services:
            raise ValidationError("NO_SERVICES")

        lines = []
        for item in services:
            if isinstance(item, str):
                code, quantity = item, 1
            else:
                try:
                    code, quantity = item
                except (TypeError, ValueError):
                    raise ValidationError("INVALID_SERVICE", service=repr(item)) from None
            if not isinstance(code, str) or not code:
                raise ValidationError("INVALID_SERVICE", service=repr(item))
            if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
                raise ValidationError("INVALID_QUANTITY", service_code=code, quantity=quantity)
            lines.append((code, quantity))
        return lines

    @classmethod
    def _normalize_price(cls, total_price) -> Decimal:
        """Parse ``total_price`` as a finite, non-negative Decimal."""
        if isinstance(total_price, bool):
            raise ValidationError("INVALID_PRICE", total_price=repr(total_price))
        try:
            price = Decimal(total_price)
        except (InvalidOperation, TypeError, ValueError):
            raise ValidationError("INVALID_PRICE", total_price=repr(total_price)) from None
        if not price.is_finite() or price < 0:
            raise ValidationError("INVALID_PRICE", total_price=str(price))
        return price

    @classmethod
    def _credit_visit(cls, client: Client, points: int, active_rewards: Sequence) -> None:
        """
        Add ``points`` to lifetime and progress counters.

        Progress toward an active goal stops at the goal's requirement;
        an overshoot that already exists is kept as is.
        """
        client.total_lifetime_visits += points
        progress = client.current_progress_visits + points

        goal = next((r for r in active_rewards if r.pk == client.selected_reward_id), None)
        if goal is not None and progress > goal.visits_required:
            progress = max(goal.visits_required, client.current_progress_visits)
            logger.debug(
                "Progress for client %s capped at %s (goal %s)",
                client.code,
                progress,
                goal.code,
            )
        client.current_progress_visits = progress
