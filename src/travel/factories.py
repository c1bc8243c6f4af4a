import random
from decimal import Decimal
from datetime import timedelta

import factory
from django.contrib.auth import get_user_model
from django.utils import timezone
from factory import Faker, LazyAttribute, LazyFunction, post_generation
from factory.django import DjangoModelFactory

from .models import Booking, DiscountCode, GlobalDiscountCode, InclusionType, TravelPackage
from .pricing import quote

# (location, tags)
DESTINATIONS = {
    "phuket": ("Phuket, Thailand", "beach,island,diving"),
    "chiang_mai": ("Chiang Mai, Thailand", "mountains,temples,culture"),
    "krabi": ("Krabi, Thailand", "beach,climbing,island"),
    "bangkok": ("Bangkok, Thailand", "city,food,culture"),
    "koh_samui": ("Koh Samui, Thailand", "beach,family,spa"),
    "pai": ("Pai, Thailand", "mountains,hiking,backpacking"),
    "ayutthaya": ("Ayutthaya, Thailand", "history,temples,day-trip"),
    "kanchanaburi": ("Kanchanaburi, Thailand", "nature,waterfalls,history"),
}

TRIP_KINDS = ("Getaway", "Adventure", "Escape", "Discovery Tour", "Retreat")


def rand_destination() -> str:
    return random.choice(list(DESTINATIONS.keys()))

# ---------------------------------------------------------------------------

class UserFactory(DjangoModelFactory):
    """Customer by default. Password is hashed in @post_generation."""
    class Meta:
        model = get_user_model()
        django_get_or_create = ("email",)

    email = factory.Sequence(lambda n: f"user{n}@example.com")
    first_name = Faker("first_name")
    last_name = Faker("last_name")
    role = "customer"

    @post_generation
    def password(self, create, extracted, **kwargs):
        self.set_password(extracted or "Passw0rd!")
        if create:
            self.save()


class AdvertiserFactory(UserFactory):
    email = factory.Sequence(lambda n: f"advertiser{n}@example.com")
    role = "advertiser"


class ManagerFactory(UserFactory):
    email = factory.Sequence(lambda n: f"manager{n}@example.com")
    role = "manager"

# ---------------------------------------------------------------------------

class TravelPackageFactory(DjangoModelFactory):
    class Meta:
        model = TravelPackage

    class Params:
        destination = factory.LazyFunction(rand_destination)

    title = LazyAttribute(
        lambda o: f"{DESTINATIONS[o.destination][0].split(',')[0]} {random.choice(TRIP_KINDS)}"
    )
    description = Faker("paragraph", nb_sentences=4)
    location = LazyAttribute(lambda o: DESTINATIONS[o.destination][0])
    tags = LazyAttribute(lambda o: DESTINATIONS[o.destination][1])

    price = Decimal("1000.00")
    discount_percentage = Decimal("0")
    max_guests = 20
    duration_days = LazyFunction(lambda: random.randint(2, 7))
    available_from = None
    available_to = None
    is_active = True

    @post_generation
    def advertisers(self, create, extracted, **kwargs):
        if create and extracted:
            self.advertisers.set(extracted)


class InclusionTypeFactory(DjangoModelFactory):
    class Meta:
        model = InclusionType

    name = factory.Sequence(lambda n: f"Inclusion {n}")
    name_en = LazyAttribute(lambda o: o.name)
    category = "general"
    display_order = factory.Sequence(lambda n: n)
    is_active = True


class DiscountCodeFactory(DjangoModelFactory):
    class Meta:
        model = DiscountCode

    advertiser = factory.SubFactory(AdvertiserFactory)
    code = factory.Sequence(lambda n: f"ADV{n:04d}")
    discount_type = DiscountCode.DiscountType.PERCENTAGE
    discount_value = Decimal("10")
    commission_rate = Decimal("5")
    is_active = True


class GlobalDiscountCodeFactory(DjangoModelFactory):
    class Meta:
        model = GlobalDiscountCode

    code = factory.Sequence(lambda n: f"GLOBAL{n:04d}")
    discount_type = GlobalDiscountCode.DiscountType.FIXED
    discount_value = Decimal("100")
    is_active = True


class BookingFactory(DjangoModelFactory):
    """
    Pending booking priced like the real flow, without reserving seats.
    Use `lifecycle.create_booking` when capacity matters.
    """
    class Meta:
        model = Booking

    package = factory.SubFactory(TravelPackageFactory)
    customer = factory.SubFactory(UserFactory)
    guest_count = 2
    booking_date = LazyFunction(lambda: timezone.localdate() + timedelta(days=random.randint(10, 60)))
    contact_name = LazyAttribute(lambda o: o.customer.display_name)
    contact_email = LazyAttribute(lambda o: o.customer.email)

    total_amount = LazyAttribute(
        lambda o: quote(o.package.price, o.guest_count, o.package.discount_percentage).subtotal
    )
    discount_amount = Decimal("0.00")
    final_amount = LazyAttribute(lambda o: o.total_amount - o.discount_amount)

    status = Booking.PENDING
    payment_status = Booking.PAYMENT_PENDING
    expires_at = LazyFunction(lambda: timezone.now() + timedelta(minutes=30))

    class Params:
        paid = factory.Trait(
            status=Booking.CONFIRMED,
            payment_status=Booking.PAYMENT_COMPLETED,
            expires_at=None,
        )
        stale = factory.Trait(
            expires_at=LazyFunction(lambda: timezone.now() - timedelta(minutes=5)),
        )
