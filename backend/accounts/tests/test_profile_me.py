"""
Integration tests — the current-user profile (settings page).

Endpoint under test:  GET / PATCH /api/accounts/me/
                      (named URL: accounts:me)
"""

from __future__ import annotations

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

User = get_user_model()


class TestProfileMe(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.user = User.objects.create_user(
            username="me@example.com",
            email="me@example.com",
            display_name="Achieng",
        )

    def setUp(self):
        self.client = APIClient()
        self.client.force_authenticate(user=self.user)
        self.url = reverse("accounts:me")

    def test_get_profile(self):
        resp = self.client.get(self.url)

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["email"], "me@example.com")
        self.assertEqual(resp.data["display_name"], "Achieng")
        self.assertEqual(resp.data["phone_number"], "")

    def test_update_profile_fields(self):
        resp = self.client.patch(
            self.url,
            {"display_name": "Achieng O.", "phone_number": "+254 712-345678", "address": "Kisumu"},
            format="json",
        )

        self.assertEqual(resp.status_code, status.HTTP_200_OK, msg=resp.data)
        self.user.refresh_from_db()
        self.assertEqual(self.user.display_name, "Achieng O.")
        self.assertEqual(self.user.phone_number, "+254 712-345678")
        self.assertEqual(self.user.address, "Kisumu")

    def test_email_cannot_be_changed(self):
        self.client.patch(self.url, {"email": "other@example.com"}, format="json")
        self.user.refresh_from_db()
        self.assertEqual(self.user.email, "me@example.com")

    def test_invalid_phone_number(self):
        resp = self.client.patch(self.url, {"phone_number": "call me"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("phone_number", resp.data)

    def test_blank_phone_number_allowed(self):
        resp = self.client.patch(self.url, {"phone_number": ""}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)

    def test_unauthenticated(self):
        resp = APIClient().get(self.url)
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)
