import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

User = get_user_model()


@pytest.mark.django_db
class TestMemberRoles:
    def setup_method(self):
        self.client = APIClient()
        self.manager = User.objects.create_user(email="boss@example.com", password="x", role="manager")
        self.customer = User.objects.create_user(email="cust@example.com", password="x")

    def test_manager_promotes_customer_to_advertiser(self):
        self.client.force_authenticate(self.manager)
        r = self.client.patch(f"/api/auth/members/{self.customer.id}/role/", {"role": "advertiser"}, format="json")
        assert r.status_code == 200, r.data
        self.customer.refresh_from_db()
        assert self.customer.is_advertiser

    def test_unknown_role_rejected(self):
        self.client.force_authenticate(self.manager)
        r = self.client.patch(f"/api/auth/members/{self.customer.id}/role/", {"role": "king"}, format="json")
        assert r.status_code == 400

    def test_manager_cannot_demote_self(self):
        self.client.force_authenticate(self.manager)
        r = self.client.put(f"/api/auth/members/{self.manager.id}/role/", {"role": "customer"}, format="json")
        assert r.status_code == 400
        self.manager.refresh_from_db()
        assert self.manager.is_manager

    def test_non_manager_cannot_list_members(self):
        self.client.force_authenticate(self.customer)
        assert self.client.get("/api/auth/members/").status_code == 403

    def test_members_filter_by_role(self):
        User.objects.create_user(email="adv@example.com", password="x", role="advertiser")
        self.client.force_authenticate(self.manager)
        r = self.client.get("/api/auth/members/?role=advertiser")
        assert r.status_code == 200
        rows = r.data["results"] if isinstance(r.data, dict) and "results" in r.data else r.data
        assert [row["email"] for row in rows] == ["adv@example.com"]

    def test_superuser_counts_as_manager(self):
        root = User.objects.create_superuser(email="root@example.com", password="x")
        assert root.role == User.Role.MANAGER
        assert root.is_manager
