"""Management command to refresh cached loyalty statuses."""

from django.core.management.base import BaseCommand

from barberman.service import LoyaltyService


class Command(BaseCommand):
    help = "Recompute the cached loyalty status of all active clients (e.g. to mark inactive ones)"

    def handle(self, *args, **options):
        changed = LoyaltyService.refresh_statuses()
        self.stdout.write(
            self.style.SUCCESS(f"Updated loyalty status of {changed} clients.")
        )
