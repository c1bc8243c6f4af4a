from django.contrib.auth import get_user_model
from django.urls import reverse
from rest_framework.test import APITestCase

User = get_user_model()


class RegisterLoginTests(APITestCase):

    def test_register_creates_customer_and_sets_cookies(self):
        payload = {
            "email": "traveller@example.com",
            "password": "S0lid-Passphrase!",
            "first_name": "Nok",
            "last_name": "Suk",
            "role": "manager",  # ignored
        }
        r = self.client.post(reverse("users:register"), payload, format="json")
        self.assertEqual(r.status_code, 201, r.data)
        self.assertEqual(r.data["user"]["role"], "customer")
        self.assertIn("access_token", r.cookies)
        self.assertIn("refresh_token", r.cookies)
        self.assertTrue(r.cookies["access_token"]["httponly"])
        self.assertEqual(User.objects.get(email="traveller@example.com").role, User.Role.CUSTOMER)

    def test_register_rejects_weak_password(self):
        r = self.client.post(
            reverse("users:register"),
            {"email": "weak@example.com", "password": "123"},
            format="json",
        )
        self.assertEqual(r.status_code, 400)
        self.assertIn("password", r.data)

    def test_login_returns_role(self):
        User.objects.create_user(email="adv@example.com", password="S0lid-Passphrase!", role="advertiser")
        r = self.client.post(
            reverse("users:login"),
            {"email": "adv@example.com", "password": "S0lid-Passphrase!"},
            format="json",
        )
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.data["role"], "advertiser")
        self.assertIn("access_token", r.cookies)

    def test_login_wrong_password(self):
        User.objects.create_user(email="c@example.com", password="S0lid-Passphrase!")
        r = self.client.post(reverse("users:login"), {"email": "c@example.com", "password": "nope"}, format="json")
        self.assertEqual(r.status_code, 401)

    def test_cookie_authenticates_me(self):
        User.objects.create_user(email="me@example.com", password="S0lid-Passphrase!")
        login = self.client.post(
            reverse("users:login"),
            {"email": "me@example.com", "password": "S0lid-Passphrase!"},
            format="json",
        )
        self.assertEqual(login.status_code, 200)
        # APIClient keeps the cookies; the middleware turns them into a Bearer header
        r = self.client.get(reverse("users:me"))
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.data["email"], "me@example.com")

    def test_me_requires_auth(self):
        r = self.client.get(reverse("users:me"))
        self.assertEqual(r.status_code, 401)

    def test_logout_clears_cookies(self):
        user = User.objects.create_user(email="out@example.com", password="x")
        self.client.force_authenticate(user)
        r = self.client.post(reverse("users:logout"))
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.cookies["access_token"].value, "")

    def test_no_token_introspection_endpoint(self):
        self.client.cookies["access_token"] = "anything"
        r = self.client.get("/api/auth/debug-tokens/")
        self.assertEqual(r.status_code, 404)
