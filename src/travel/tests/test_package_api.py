from datetime import timedelta
from decimal import Decimal

from django.urls import reverse
from django.utils import timezone
from rest_framework.test import APITestCase

from src.travel.factories import AdvertiserFactory, ManagerFactory, TravelPackageFactory, UserFactory
from src.travel.models import TravelPackage


def rows(resp):
    return resp.data["results"] if isinstance(resp.data, dict) and "results" in resp.data else resp.data


class PackageCatalogTests(APITestCase):
    def setUp(self):
        self.manager = ManagerFactory()
        self.customer = UserFactory()
        self.beach = TravelPackageFactory(
            title="Phuket Beach", location="Phuket, Thailand", tags="beach,island",
            price=Decimal("3000"), max_guests=4,
        )
        self.hills = TravelPackageFactory(
            title="Pai Hills", location="Pai, Thailand", tags="mountains,hiking",
            price=Decimal("8000"), max_guests=2, current_bookings=2,
        )
        self.hidden = TravelPackageFactory(title="Draft Trip", is_active=False)

    def test_anonymous_sees_active_only(self):
        r = self.client.get(reverse("travel:package-list"))
        self.assertEqual(r.status_code, 200)
        titles = {p["title"] for p in rows(r)}
        self.assertEqual(titles, {"Phuket Beach", "Pai Hills"})

    def test_manager_sees_inactive(self):
        self.client.force_authenticate(self.manager)
        r = self.client.get(reverse("travel:package-list"))
        self.assertEqual(len(rows(r)), 3)

    def test_filters(self):
        url = reverse("travel:package-list")
        self.assertEqual([p["title"] for p in rows(self.client.get(url, {"price_max": 5000}))], ["Phuket Beach"])
        self.assertEqual([p["title"] for p in rows(self.client.get(url, {"tag": "hiking"}))], ["Pai Hills"])
        self.assertEqual([p["title"] for p in rows(self.client.get(url, {"has_capacity": "true"}))], ["Phuket Beach"])
        self.assertEqual([p["title"] for p in rows(self.client.get(url, {"q": "phuket"}))], ["Phuket Beach"])
        self.assertEqual([p["title"] for p in rows(self.client.get(url, {"location": "pai"}))], ["Pai Hills"])

    def test_tag_filter_matches_whole_tags(self):
        r = self.client.get(reverse("travel:package-list"), {"tag": "isl"})
        self.assertEqual(rows(r), [])

    def test_available_on_filter(self):
        day = timezone.localdate() + timedelta(days=30)
        self.beach.available_to = day - timedelta(days=1)
        self.beach.save()
        r = self.client.get(reverse("travel:package-list"), {"available_on": str(day)})
        self.assertEqual([p["title"] for p in rows(r)], ["Pai Hills"])

    def test_unit_price_and_capacity_fields(self):
        self.beach.discount_percentage = Decimal("10")
        self.beach.save()
        r = self.client.get(reverse("travel:package-detail", args=[self.beach.id]))
        self.assertEqual(r.data["unit_price"], "2700.00")
        self.assertEqual(r.data["remaining_capacity"], 4)
        self.assertEqual(r.data["tags"], ["beach", "island"])

    def test_customer_cannot_create(self):
        self.client.force_authenticate(self.customer)
        r = self.client.post(reverse("travel:package-list"), {"title": "x"}, format="json")
        self.assertEqual(r.status_code, 403)

    def test_manager_creates_package(self):
        self.client.force_authenticate(self.manager)
        payload = {
            "title": "Krabi Climb",
            "description": "Limestone cliffs",
            "location": "Krabi, Thailand",
            "price": "4500.00",
            "discount_percentage": "5",
            "max_guests": 10,
            "duration_days": 3,
            "tags": ["climbing", "Beach", "climbing"],
        }
        r = self.client.post(reverse("travel:package-list"), payload, format="json")
        self.assertEqual(r.status_code, 201, r.data)
        package = TravelPackage.objects.get(pk=r.data["id"])
        self.assertEqual(package.created_by, self.manager)
        self.assertEqual(package.tag_list, ["climbing", "beach"])

    def test_discount_percentage_range(self):
        self.client.force_authenticate(self.manager)
        r = self.client.patch(
            reverse("travel:package-detail", args=[self.beach.id]), {"discount_percentage": "120"}, format="json"
        )
        self.assertEqual(r.status_code, 400)

    def test_max_guests_not_below_reserved(self):
        self.client.force_authenticate(self.manager)
        r = self.client.patch(reverse("travel:package-detail", args=[self.hills.id]), {"max_guests": 1}, format="json")
        self.assertEqual(r.status_code, 400)
        self.assertIn("max_guests", r.data)

    def test_window_order(self):
        self.client.force_authenticate(self.manager)
        today = timezone.localdate()
        r = self.client.patch(
            reverse("travel:package-detail", args=[self.beach.id]),
            {"available_from": str(today), "available_to": str(today - timedelta(days=1))},
            format="json",
        )
        self.assertEqual(r.status_code, 400)

    def test_assign_advertisers(self):
        advertiser = AdvertiserFactory()
        url = reverse("travel:package-assign-advertisers", args=[self.beach.id])

        self.client.force_authenticate(self.customer)
        self.assertEqual(self.client.post(url, {"advertisers": [advertiser.id]}, format="json").status_code, 403)

        self.client.force_authenticate(self.manager)
        r = self.client.post(url, {"advertisers": [advertiser.id, self.customer.id]}, format="json")
        self.assertEqual(r.status_code, 400)

        r = self.client.post(url, {"advertisers": [advertiser.id]}, format="json")
        self.assertEqual(r.status_code, 200, r.data)
        self.assertEqual([a["id"] for a in r.data["advertisers"]], [advertiser.id])
        self.assertTrue(self.beach.advertisers.filter(pk=advertiser.pk).exists())

    def test_tags_listing(self):
        TravelPackageFactory(tags="beach,family")
        r = self.client.get(reverse("travel:package-tags"))
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.data[0], {"tag": "beach", "count": 2})

    def test_toggle(self):
        self.client.force_authenticate(self.manager)
        r = self.client.post(reverse("travel:package-toggle", args=[self.beach.id]))
        self.assertEqual(r.status_code, 200)
        self.assertFalse(r.data["is_active"])

    def test_quote(self):
        url = reverse("travel:package-quote", args=[self.beach.id])
        r = self.client.get(url, {"guests": 2})
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.data["final_amount"], "6000.00")
        self.assertEqual(self.client.get(url, {"guests": 0}).status_code, 400)
        self.assertEqual(self.client.get(url, {"guests": 1, "code": "NOPE"}).status_code, 400)
