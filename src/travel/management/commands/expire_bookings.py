from django.core.management.base import BaseCommand

from src.travel.lifecycle import expire_pending_bookings


class Command(BaseCommand):
    """Cancel pending bookings whose hold has run out. Meant for cron, every minute."""

    help = "Expire unpaid pending bookings and release their seats."

    def handle(self, *args, **opts):
        count = expire_pending_bookings()
        self.stdout.write(self.style.SUCCESS(f"Expired bookings: {count}"))
