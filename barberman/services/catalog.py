"""Reward catalog - read-only lookups over rewards and services."""

from collections.abc import Iterable

from barberman.exceptions import NotFoundError
from barberman.models import Reward, Service


class RewardCatalog:
    """Read-only access to reward definitions and the service catalog."""

    @classmethod
    def active_rewards(cls) -> list[Reward]:
        """All active rewards, lowest requirement first. Eligibility is not filtered here."""
        return list(Reward.objects.filter(is_active=True).order_by("visits_required", "name"))

    @classmethod
    def get(cls, reward_code: str) -> Reward:
        """Get reward by code, active or not."""
        try:
            return Reward.objects.get(code=reward_code)
        except Reward.DoesNotExist:
            raise NotFoundError("REWARD_NOT_FOUND", reward_code=reward_code)

    @classmethod
    def get_active(cls, reward_code: str) -> Reward:
        """Get active reward by code or raise REWARD_NOT_FOUND."""
        reward = cls.get(reward_code)
        if not reward.is_active:
            raise NotFoundError("REWARD_NOT_FOUND", reward_code=reward_code, is_active=False)
        return reward

    @classmethod
    def services_by_code(cls, codes: Iterable[str]) -> dict[str, Service]:
        """Active services for ``codes``, keyed by code. Unknown/inactive codes are absent."""
        return {
            service.code: service
            for service in Service.objects.filter(code__in=set(codes), is_active=True)
        }
