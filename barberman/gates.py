"""
Barberman Gates - Redemption and reward definition rules.

R1: Eligibility - Progress visits must meet the reward's requirement
R2: RedemptionLimit - Lifetime redemptions per client stay below max_redemptions
R3: MilestoneWindow - Redemption happens within valid_for_days of the milestone
R4: RewardDefinition - Reward definitions are consistent (type, percentage, services)
R5: RedemptionTarget - Only an unsaved visit without a redemption can carry one
"""

from dataclasses import dataclass
from datetime import datetime, timedelta

from django.utils import timezone

from barberman.exceptions import (
    BarbermanError,
    ExpiredError,
    IneligibleError,
    RedemptionLimitExceededError,
    ValidationError,
)


@dataclass
class GateResult:
    """Result of a gate check."""

    passed: bool
    gate_name: str
    message: str = ""


# =============================================================================
# Gates
# =============================================================================


class Gates:
    """Barberman validation gates."""

    # =========================================================================
    # R1: Eligibility
    # =========================================================================

    @classmethod
    def eligibility(cls, client, reward) -> GateResult:
        """
        R1: current_progress_visits >= reward.visits_required.

        Args:
            client: Client (counters as currently held in memory)
            reward: Reward being redeemed

        Raises:
            IneligibleError: If the client is short of visits
        """
        missing = reward.visits_required - client.current_progress_visits
        if missing > 0:
            raise IneligibleError(
                reward_code=reward.code,
                visits_required=reward.visits_required,
                current_progress_visits=client.current_progress_visits,
                visits_missing=missing,
            )

        return GateResult(True, "R1_Eligibility")

    @classmethod
    def check_eligibility(cls, *args, **kwargs) -> bool:
        """Check without raising (returns bool)."""
        try:
            cls.eligibility(*args, **kwargs)
            return True
        except BarbermanError:
            return False

    # =========================================================================
    # R2: Redemption Limit
    # =========================================================================

    @classmethod
    def redemption_limit(cls, client, reward, redeemed_count: int | None = None) -> GateResult:
        """
        R2: Lifetime redemptions of ``reward`` by ``client`` < max_redemptions.

        Args:
            client: Client
            reward: Reward being redeemed
            redeemed_count: Pre-computed count (queried when omitted)

        Raises:
            RedemptionLimitExceededError: If the cap is reached
        """
        if reward.max_redemptions is None:
            return GateResult(True, "R2_RedemptionLimit", "unlimited")

        if redeemed_count is None:
            from barberman.models import RewardRedemption

            redeemed_count = RewardRedemption.objects.filter(
                client_id=client.pk,
                reward_id=reward.pk,
            ).count()

        if redeemed_count >= reward.max_redemptions:
            raise RedemptionLimitExceededError(
                reward_code=reward.code,
                max_redemptions=reward.max_redemptions,
                redeemed=redeemed_count,
            )

        return GateResult(True, "R2_RedemptionLimit")

    @classmethod
    def check_redemption_limit(cls, *args, **kwargs) -> bool:
        """Check without raising (returns bool)."""
        try:
            cls.redemption_limit(*args, **kwargs)
            return True
        except BarbermanError:
            return False

    # =========================================================================
    # R3: Milestone Window
    # =========================================================================

    @classmethod
    def milestone_window(
        cls,
        reward,
        reached_at: datetime | None,
        now: datetime | None = None,
    ) -> GateResult:
        """
        R3: now - reached_at <= valid_for_days.

        A reward without ``valid_for_days`` never expires. A missing
        ``reached_at`` means the window opens now.

        Raises:
            ExpiredError: If the redemption window has lapsed
        """
        if not reward.valid_for_days or reached_at is None:
            return GateResult(True, "R3_MilestoneWindow")

        now = now or timezone.now()
        expires_at = reached_at + timedelta(days=reward.valid_for_days)
        if now > expires_at:
            raise ExpiredError(
                reward_code=reward.code,
                valid_for_days=reward.valid_for_days,
                reached_at=reached_at.isoformat(),
                expired_at=expires_at.isoformat(),
            )

        return GateResult(True, "R3_MilestoneWindow")

    @classmethod
    def check_milestone_window(cls, *args, **kwargs) -> bool:
        """Check without raising (returns bool)."""
        try:
            cls.milestone_window(*args, **kwargs)
            return True
        except BarbermanError:
            return False

    # =========================================================================
    # R4: Reward Definition
    # =========================================================================

    @classmethod
    def reward_definition(
        cls,
        *,
        visits_required: int | None,
        reward_type: str,
        discount_percentage: int | None = None,
        applicable_services=(),
        max_redemptions: int | None = None,
        valid_for_days: int | None = None,
    ) -> GateResult:
        """
        R4: Reward definition is internally consistent.

        - visits_required >= 1
        - discount rewards carry a percentage in [1, 100], free rewards none
        - at least one applicable service
        - optional limits, when set, are >= 1

        Raises:
            ValidationError: INVALID_REWARD with the offending ``field``
        """
        from barberman.models import RewardType

        if visits_required is None or visits_required < 1:
            raise ValidationError(
                "INVALID_REWARD",
                "Visits required must be at least 1.",
                field="visits_required",
            )

        if reward_type == RewardType.DISCOUNT:
            if discount_percentage is None or not 1 <= discount_percentage <= 100:
                raise ValidationError(
                    "INVALID_REWARD",
                    "Discount percentage is required for discount rewards and must be between 1-100.",
                    field="discount_percentage",
                )
        elif reward_type == RewardType.FREE:
            if discount_percentage is not None:
                raise ValidationError(
                    "INVALID_REWARD",
                    "Free rewards do not take a discount percentage.",
                    field="discount_percentage",
                )
        else:
            raise ValidationError(
                "INVALID_REWARD",
                f"Unknown reward type '{reward_type}'.",
                field="reward_type",
            )

        if not applicable_services:
            raise ValidationError(
                "INVALID_REWARD",
                "At least one applicable service is required.",
                field="applicable_services",
            )

        for field_name, value in (("max_redemptions", max_redemptions), ("valid_for_days", valid_for_days)):
            if value is not None and value < 1:
                raise ValidationError(
                    "INVALID_REWARD",
                    f"{field_name} must be at least 1 when set.",
                    field=field_name,
                )

        return GateResult(True, "R4_RewardDefinition")

    @classmethod
    def check_reward_definition(cls, *args, **kwargs) -> bool:
        """Check without raising (returns bool)."""
        try:
            cls.reward_definition(*args, **kwargs)
            return True
        except BarbermanError:
            return False

    # =========================================================================
    # R5: Redemption Target
    # =========================================================================

    @classmethod
    def redemption_target(cls, visit) -> GateResult:
        """
        R5: The visit is an unsaved draft that carries no redemption yet.

        Redemptions are only attached while a visit is being recorded;
        saved visits are immutable.

        Raises:
            ValidationError: VISIT_IMMUTABLE or VISIT_ALREADY_REDEEMED
        """
        if not visit._state.adding:
            raise ValidationError("VISIT_IMMUTABLE", visit_id=visit.pk)

        if visit.reward_redeemed:
            raise ValidationError("VISIT_ALREADY_REDEEMED")

        return GateResult(True, "R5_RedemptionTarget")

    @classmethod
    def check_redemption_target(cls, *args, **kwargs) -> bool:
        """Check without raising (returns bool)."""
        try:
            cls.redemption_target(*args, **kwargs)
            return True
        except BarbermanError:
            return False
