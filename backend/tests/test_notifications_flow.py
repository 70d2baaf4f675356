"""
Notification inbox flow — notifications produced by reporting,
claiming and collecting, read back through the API.

Endpoints under test:
    GET  /api/core/notifications/             (named URL: core:notification-list)
    POST /api/core/notifications/{id}/read/   (named URL: core:notification-read)
"""

from __future__ import annotations

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from reports.models import Report
from reports.services import CollectionTaskService, ReportService

User = get_user_model()


class TestNotificationsFlow(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.reporter = User.objects.create_user(username="r@example.com", email="r@example.com")
        cls.collector = User.objects.create_user(username="c@example.com", email="c@example.com")

    def setUp(self):
        self.client = APIClient()
        self.client.force_authenticate(user=self.reporter)
        self.list_url = reverse("core:notification-list")

    def _submit(self) -> Report:
        return ReportService.submit_report(
            self.reporter,
            {"location": "Ngong Road", "category": "books_paper", "item_type": "newspapers", "amount": "10 kg"},
        )

    def test_report_produces_reward_notification(self):
        report = self._submit()

        resp = self.client.get(self.list_url)
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(len(resp.data), 1)
        entry = resp.data[0]
        self.assertEqual(entry["title"], "Report Submitted")
        self.assertEqual(entry["message"], "You've earned 100 points for recycling books & paper!")
        self.assertEqual(entry["notification_type"], "reward")
        self.assertFalse(entry["is_read"])
        self.assertEqual(entry["object_id"], report.pk)

    def test_claim_notifies_reporter_only(self):
        report = self._submit()
        CollectionTaskService.claim_task(report.pk, self.collector)

        resp = self.client.get(self.list_url)
        self.assertEqual(
            {n["title"] for n in resp.data},
            {"Item Being Collected", "Report Submitted"},
        )

        collector_client = APIClient()
        collector_client.force_authenticate(user=self.collector)
        self.assertEqual(collector_client.get(self.list_url).data, [])

    def test_mark_as_read_removes_from_active_set(self):
        self._submit()
        notification_id = self.client.get(self.list_url).data[0]["id"]

        resp = self.client.post(reverse("core:notification-read", args=[notification_id]))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertTrue(resp.data["is_read"])

        self.assertEqual(self.client.get(self.list_url).data, [])
        everything = self.client.get(self.list_url, {"all": "true"}).data
        self.assertEqual([n["id"] for n in everything], [notification_id])

    def test_cannot_read_other_users_notification(self):
        self._submit()
        notification_id = self.client.get(self.list_url).data[0]["id"]

        stranger = APIClient()
        stranger.force_authenticate(user=self.collector)
        resp = stranger.post(reverse("core:notification-read", args=[notification_id]))
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)
