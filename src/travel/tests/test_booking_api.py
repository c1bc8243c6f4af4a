from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone
from rest_framework.test import APIClient

from src.travel.factories import (
    AdvertiserFactory, BookingFactory, DiscountCodeFactory, ManagerFactory, TravelPackageFactory, UserFactory,
)
from src.travel.models import Booking


def rows(resp):
    return resp.data["results"] if isinstance(resp.data, dict) and "results" in resp.data else resp.data


@pytest.mark.django_db
class TestBookingAPI:
    def setup_method(self):
        self.client = APIClient()
        self.customer = UserFactory()
        self.other = UserFactory()
        self.advertiser = AdvertiserFactory()
        self.manager = ManagerFactory()
        self.package = TravelPackageFactory(
            price=Decimal("1000"), discount_percentage=Decimal("10"), max_guests=6,
            advertisers=[self.advertiser],
        )
        self.travel_day = str(timezone.localdate() + timedelta(days=7))

    def _auth(self, user):
        self.client.force_authenticate(user=user)

    def _create(self, **extra):
        payload = {"package": self.package.id, "guest_count": 2, "booking_date": self.travel_day, **extra}
        return self.client.post("/api/bookings/", payload, format="json")

    # ---------- create ----------
    def test_create_ignores_client_amounts(self):
        self._auth(self.customer)
        r = self._create(final_amount="1.00", total_amount="1.00")
        assert r.status_code == 201, r.data
        assert r.data["final_amount"] == "1800.00"
        assert r.data["status"] == "pending"
        assert r.data["payment_status"] == "pending"
        assert r.data["can_pay"] is True
        assert r.data["customer"]["email"] == self.customer.email

    def test_create_requires_auth(self):
        assert self._create().status_code == 401

    def test_create_with_bad_code(self):
        self._auth(self.customer)
        r = self._create(discount_code="NOPE")
        assert r.status_code == 400
        assert r.data["reason"] == "not_found"

    def test_create_over_capacity(self):
        self._auth(self.customer)
        r = self._create(guest_count=7)
        assert r.status_code == 400
        assert "guest_count" in r.data

    def test_create_with_advertiser_code(self):
        DiscountCodeFactory(code="ADV20", advertiser=self.advertiser, discount_value=Decimal("20"))
        self._auth(self.customer)
        r = self._create(discount_code="adv20")
        assert r.status_code == 201, r.data
        assert r.data["final_amount"] == "1440.00"
        assert r.data["discount_code"] == "ADV20"
        assert r.data["code_type"] == "advertiser"

    def test_invalid_date_format(self):
        self._auth(self.customer)
        r = self._create(booking_date="2030-02-30")
        assert r.status_code == 400
        assert "booking_date" in r.data

    # ---------- visibility ----------
    def test_list_by_role(self):
        mine = BookingFactory(package=self.package, customer=self.customer)
        BookingFactory(package=self.package, customer=self.other)
        unrelated = BookingFactory(customer=self.other)

        self._auth(self.customer)
        assert [b["id"] for b in rows(self.client.get("/api/bookings/"))] == [mine.id]

        self._auth(self.advertiser)
        ids = {b["id"] for b in rows(self.client.get("/api/bookings/"))}
        assert mine.id in ids and unrelated.id not in ids and len(ids) == 2

        self._auth(self.manager)
        assert len(rows(self.client.get("/api/bookings/"))) == 3

    def test_manager_filters_by_status(self):
        BookingFactory(package=self.package, paid=True)
        BookingFactory(package=self.package)
        self._auth(self.manager)
        r = self.client.get("/api/bookings/?payment_status=completed")
        assert [b["payment_status"] for b in rows(r)] == ["completed"]

    def test_other_customer_gets_404(self):
        booking = BookingFactory(package=self.package, customer=self.customer)
        self._auth(self.other)
        assert self.client.get(f"/api/bookings/{booking.id}/").status_code == 404

    def test_no_update_or_delete(self):
        booking = BookingFactory(package=self.package, customer=self.customer)
        self._auth(self.customer)
        assert self.client.patch(f"/api/bookings/{booking.id}/", {"guest_count": 1}, format="json").status_code == 405
        assert self.client.delete(f"/api/bookings/{booking.id}/").status_code == 405

    # ---------- actions ----------
    def test_checkout_and_verify_in_mock_mode(self):
        self._auth(self.customer)
        booking_id = self._create().data["id"]

        r = self.client.post(f"/api/bookings/{booking_id}/checkout/", {}, format="json")
        assert r.status_code == 200, r.data
        assert r.data["mock"] is True
        session_id = r.data["session_id"]

        r = self.client.post(f"/api/bookings/{booking_id}/verify-payment/", {"session_id": session_id}, format="json")
        assert r.status_code == 200, r.data
        assert r.data["paid"] is True
        assert r.data["booking"]["status"] == "confirmed"

        # second checkout on a paid booking
        r = self.client.post(f"/api/bookings/{booking_id}/checkout/", {}, format="json")
        assert r.status_code == 409

    def test_advertiser_cannot_checkout(self):
        booking = BookingFactory(package=self.package, customer=self.customer)
        self._auth(self.advertiser)
        assert self.client.post(f"/api/bookings/{booking.id}/checkout/").status_code == 403

    def test_manager_cannot_checkout_for_customer(self):
        booking = BookingFactory(package=self.package, customer=self.customer)
        self._auth(self.manager)
        assert self.client.post(f"/api/bookings/{booking.id}/checkout/").status_code == 403

    def test_cancel_releases_seats_then_conflicts(self):
        self._auth(self.customer)
        booking_id = self._create(guest_count=3).data["id"]
        self.package.refresh_from_db()
        assert self.package.current_bookings == 3

        r = self.client.post(f"/api/bookings/{booking_id}/cancel/")
        assert r.status_code == 200
        assert r.data["status"] == "cancelled"
        assert r.data["payment_status"] == "failed"
        self.package.refresh_from_db()
        assert self.package.current_bookings == 0

        r = self.client.post(f"/api/bookings/{booking_id}/cancel/")
        assert r.status_code == 409
        assert r.data["detail"].code == "invalid_transition"

    def test_manager_can_cancel(self):
        booking = BookingFactory(package=self.package, customer=self.customer)
        self._auth(self.manager)
        assert self.client.post(f"/api/bookings/{booking.id}/cancel/").status_code == 200

    def test_expire_is_manager_only(self):
        stale = BookingFactory(package=self.package, customer=self.customer, stale=True)
        self._auth(self.customer)
        assert self.client.post("/api/bookings/expire/").status_code == 403

        self._auth(self.manager)
        r = self.client.post("/api/bookings/expire/")
        assert r.status_code == 200
        assert r.data["expired"] == 1
        stale.refresh_from_db()
        assert stale.status == Booking.CANCELLED

    def test_stats(self):
        BookingFactory(package=self.package, customer=self.customer, paid=True, guest_count=2)
        BookingFactory(package=self.package, customer=self.customer)
        self._auth(self.customer)
        r = self.client.get("/api/bookings/stats/")
        assert r.status_code == 200
        assert r.data["total_bookings"] == 2
        assert r.data["confirmed_bookings"] == 1
        assert r.data["total_guests"] == 2
        assert r.data["total_revenue"] == "1800.00"
