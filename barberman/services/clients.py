"""Client service - lookup, locking and versioned aggregate writes.

Every change to the loyalty counters goes through save_aggregate(),
a compare-and-swap on Client.version.
"""

import logging

from django.db.models import F
from django.utils import timezone

from barberman.exceptions import ConflictError, NotFoundError
from barberman.models import Barber, Client

logger = logging.getLogger(__name__)


# Fields owned by the loyalty services (written only via save_aggregate)
AGGREGATE_FIELDS = (
    "total_lifetime_visits",
    "current_progress_visits",
    "rewards_earned",
    "rewards_redeemed",
    "selected_reward_id",
    "loyalty_status",
    "last_visit_at",
    "loyalty_joined_at",
)


def get(code: str) -> Client:
    """Get active client by code or raise CLIENT_NOT_FOUND."""
    try:
        return Client.objects.select_related("selected_reward").get(code=code, is_active=True)
    except Client.DoesNotExist:
        raise NotFoundError("CLIENT_NOT_FOUND", client_code=code)


def get_for_update(code: str, expected_version: int | None = None) -> Client:
    """
    Get active client with a row-level lock for mutation.

    MUST be called inside transaction.atomic().

    Args:
        code: Client code
        expected_version: Version the caller last saw (checked when given)

    Raises:
        NotFoundError: CLIENT_NOT_FOUND
        ConflictError: If expected_version is stale
    """
    try:
        client = Client.objects.select_for_update().get(code=code, is_active=True)
    except Client.DoesNotExist:
        raise NotFoundError("CLIENT_NOT_FOUND", client_code=code)

    if expected_version is not None and client.version != expected_version:
        logger.warning(
            "Stale version for client %s: expected %s, found %s",
            code,
            expected_version,
            client.version,
        )
        raise ConflictError(
            client_code=code,
            expected_version=expected_version,
            current_version=client.version,
        )

    return client


def get_barber(code: str) -> Barber:
    """Get active barber by code or raise BARBER_NOT_FOUND."""
    try:
        return Barber.objects.get(code=code, is_active=True)
    except Barber.DoesNotExist:
        raise NotFoundError("BARBER_NOT_FOUND", barber_code=code)


def save_aggregate(client: Client) -> Client:
    """
    Write the in-memory loyalty aggregate back with a compare-and-swap.

    ``UPDATE ... WHERE pk = ? AND version = ?`` bumps the version; zero
    rows updated means another writer got there first.

    Raises:
        ConflictError: If the row's version moved since ``client`` was loaded
    """
    loaded_version = client.version
    values = {name: getattr(client, name) for name in AGGREGATE_FIELDS}

    updated = Client.objects.filter(pk=client.pk, version=loaded_version).update(
        version=F("version") + 1,
        updated_at=timezone.now(),
        **values,
    )
    if updated != 1:
        logger.warning("Concurrent update on client %s (version %s)", client.code, loaded_version)
        raise ConflictError(client_code=client.code, expected_version=loaded_version)

    client.version = loaded_version + 1
    return client
