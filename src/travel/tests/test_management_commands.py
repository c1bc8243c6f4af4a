from io import StringIO

from django.core.management import call_command
from django.test import TestCase

from src.travel.factories import BookingFactory, TravelPackageFactory
from src.travel.models import Booking, DiscountCode, GlobalDiscountCode, TravelPackage


class ExpireBookingsCommandTests(TestCase):
    def test_expires_only_stale_pending_bookings(self):
        package = TravelPackageFactory(current_bookings=4)
        stale = BookingFactory(package=package, stale=True)
        fresh = BookingFactory(package=package)

        out = StringIO()
        call_command("expire_bookings", stdout=out)

        self.assertIn("Expired bookings: 1", out.getvalue())
        stale.refresh_from_db()
        fresh.refresh_from_db()
        self.assertEqual(stale.status, Booking.CANCELLED)
        self.assertEqual(fresh.status, Booking.PENDING)
        package.refresh_from_db()
        self.assertEqual(package.current_bookings, 2)


class SeedDemoCommandTests(TestCase):
    def test_seed_is_repeatable(self):
        args = ["--seed", "1", "--advertisers", "2", "--customers", "2", "--packages", "3", "--bookings", "4"]
        call_command("seed_demo", *args, stdout=StringIO())
        call_command("seed_demo", *args, stdout=StringIO())

        self.assertGreaterEqual(TravelPackage.objects.count(), 3)
        self.assertTrue(DiscountCode.objects.exists())
        self.assertEqual(GlobalDiscountCode.objects.filter(code__in=["WELCOME10", "SAVE500"]).count(), 2)
