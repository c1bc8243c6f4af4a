from __future__ import annotations

import random
from datetime import timedelta
from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from src.travel import lifecycle
from src.travel.models import Booking, DiscountCode, GlobalDiscountCode, InclusionType, PackageInclusion, TravelPackage
from src.travel.factories import (
    AdvertiserFactory,
    DiscountCodeFactory,
    GlobalDiscountCodeFactory,
    ManagerFactory,
    TravelPackageFactory,
    UserFactory,
)

# (name, category)
DEMO_INCLUSIONS = (
    ("Hotel", "stay"),
    ("Breakfast", "meals"),
    ("Airport transfer", "transport"),
    ("Tour guide", "service"),
    ("Travel insurance", "service"),
    ("Entrance fees", "activities"),
)


class Command(BaseCommand):
    """
    Seed the database with demo data:
    - one manager, advertisers and customers (password: Passw0rd!)
    - packages across Thai destinations, each with 1-2 assigned advertisers
    - one advertiser code per assignment and a couple of global codes
    - a small inclusion catalog, a few inclusions per package
    - bookings created through the real lifecycle; roughly two thirds are paid
    """

    help = "Seed the DB with demo packages, codes and bookings."

    def add_arguments(self, parser):
        parser.add_argument("--seed", type=int, default=None, help="Random seed for reproducibility.")
        parser.add_argument("--wipe", action="store_true", help="Delete packages, codes and bookings first.")
        parser.add_argument("--advertisers", type=int, default=3, help="How many advertisers to create.")
        parser.add_argument("--customers", type=int, default=8, help="How many customers to create.")
        parser.add_argument("--packages", type=int, default=20, help="How many packages to create.")
        parser.add_argument("--bookings", type=int, default=3, help="Bookings per package.")

    @transaction.atomic
    def handle(self, *args, **opts):
        seed = opts.get("seed")
        if seed is not None:
            random.seed(seed)

        if opts["wipe"]:
            self.stdout.write(self.style.WARNING("Wiping packages, codes and bookings..."))
            Booking.objects.all().delete()
            DiscountCode.objects.all().delete()
            GlobalDiscountCode.objects.all().delete()
            TravelPackage.objects.all().delete()

        manager = ManagerFactory(email="manager@example.com", password="Passw0rd!")
        advertisers = [AdvertiserFactory(password="Passw0rd!") for _ in range(opts["advertisers"])]
        customers = [UserFactory(password="Passw0rd!") for _ in range(opts["customers"])]
        self.stdout.write(self.style.SUCCESS(
            f"Users: manager={manager.email}, advertisers={len(advertisers)}, "
            f"customers={len(customers)} (password: Passw0rd!)"
        ))

        today = timezone.localdate()
        packages = []
        for _ in range(opts["packages"]):
            start = today + timedelta(days=random.randint(0, 30))
            package = TravelPackageFactory(
                created_by=manager,
                price=Decimal(random.randrange(1500, 25000, 500)),
                discount_percentage=Decimal(random.choice([0, 0, 5, 10, 15])),
                max_guests=random.randint(8, 30),
                available_from=start,
                available_to=start + timedelta(days=random.randint(60, 180)),
                advertisers=random.sample(advertisers, k=min(len(advertisers), random.randint(1, 2))),
            )
            packages.append(package)

        inclusions = [
            InclusionType.objects.get_or_create(
                name__iexact=name, defaults={"name": name, "category": category, "display_order": order},
            )[0]
            for order, (name, category) in enumerate(DEMO_INCLUSIONS)
        ]
        for package in packages:
            PackageInclusion.objects.bulk_create([
                PackageInclusion(package=package, inclusion=inclusion)
                for inclusion in random.sample(inclusions, k=random.randint(2, len(inclusions)))
            ])

        codes = []
        for package in packages:
            for advertiser in package.advertisers.all():
                codes.append(DiscountCodeFactory(
                    code="",
                    advertiser=advertiser,
                    package=package,
                    discount_value=Decimal(random.choice([5, 10, 15])),
                    commission_rate=None,
                    max_uses=random.choice([None, 10, 20]),
                ))
        if not GlobalDiscountCode.objects.filter(code="WELCOME10").exists():
            GlobalDiscountCodeFactory(code="WELCOME10", discount_type="percentage", discount_value=Decimal("10"),
                                      created_by=manager)
        if not GlobalDiscountCode.objects.filter(code="SAVE500").exists():
            GlobalDiscountCodeFactory(code="SAVE500", discount_value=Decimal("500"), max_uses=50, created_by=manager)

        made = paid = 0
        for package in packages:
            package_codes = [c.code for c in codes if c.package_id == package.pk] + ["WELCOME10", ""]
            for _ in range(opts["bookings"]):
                guests = random.randint(1, 4)
                if package.remaining_capacity < guests:
                    break
                booking = lifecycle.create_booking(
                    customer=random.choice(customers),
                    package_id=package.pk,
                    guest_count=guests,
                    booking_date=package.available_from + timedelta(days=random.randint(0, 30)),
                    discount_code=random.choice(package_codes),
                )
                package.refresh_from_db(fields=["current_bookings"])
                made += 1
                if random.random() < 0.66:
                    lifecycle.confirm_payment(booking, f"pi_demo_{booking.pk}")
                    paid += 1

        self.stdout.write(self.style.SUCCESS(
            f"Seeding done: packages={len(packages)}, codes={len(codes)}, bookings={made} (paid={paid})"
        ))
