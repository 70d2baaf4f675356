"""
Integration tests — the collection task state machine.

    pending ──claim──▶ in_progress ──verify (accepted)──▶ verified

Endpoints under test:
    GET  /api/tasks/               (named URL: task-list)
    POST /api/tasks/{id}/claim/    (named URL: task-claim)
    POST /api/tasks/{id}/verify/   (named URL: task-verify)
"""

from __future__ import annotations

import random
from unittest import mock

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from conftest import FakeClassifier, make_image
from core.constants import COLLECT_REWARD_MAX, COLLECT_REWARD_MIN
from core.domain.exceptions import InvalidTransition, PermissionDenied
from core.models import Notification
from reports.models import CollectedItem, Report, TaskStatus
from reports.services import CollectionTaskService
from rewards.models import Transaction, TransactionKind
from rewards.services import LedgerService

User = get_user_model()

_ACCEPTED = {"clothTypeMatch": True, "quantityMatch": True, "confidence": 0.85}
_WRONG_TYPE = {"clothTypeMatch": False, "quantityMatch": True, "confidence": 0.95}
_UNSURE = {"clothTypeMatch": True, "quantityMatch": True, "confidence": 0.7}


class _TaskTestCase(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.reporter = User.objects.create_user(
            username="reporter@example.com", email="reporter@example.com", display_name="Reporter",
        )
        cls.collector = User.objects.create_user(
            username="collector@example.com", email="collector@example.com", display_name="Collector",
        )
        cls.rival = User.objects.create_user(
            username="rival@example.com", email="rival@example.com", display_name="Rival",
        )

    def setUp(self):
        self.report = Report.objects.create(
            reporter=self.reporter,
            location="Tom Mboya Street",
            category="clothes",
            item_type="cotton",
            amount="5 kg",
        )

    def client_for(self, user) -> APIClient:
        client = APIClient()
        client.force_authenticate(user=user)
        return client

    def claim(self, user, report=None):
        report = report or self.report
        return self.client_for(user).post(reverse("task-claim", args=[report.pk]))

    def verify(self, user, classifier, image=True):
        data = {"image": make_image("evidence.jpg")} if image else {}
        with mock.patch("reports.views.get_classifier", return_value=classifier):
            return self.client_for(user).post(
                reverse("task-verify", args=[self.report.pk]),
                data,
                format="multipart",
            )


class TestTaskListing(_TaskTestCase):

    def test_own_reports_are_excluded(self):
        Report.objects.create(reporter=self.collector, location="Mine", item_type="wool", amount="1 kg")

        resp = self.client_for(self.collector).get(reverse("task-list"))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual([t["id"] for t in resp.data], [self.report.pk])

    def test_filters(self):
        Report.objects.create(
            reporter=self.reporter, location="Westlands", category="electronics",
            item_type="laptop", amount="1", status=TaskStatus.IN_PROGRESS,
        )
        client = self.client_for(self.collector)

        by_status = client.get(reverse("task-list"), {"status": "pending"})
        self.assertEqual([t["id"] for t in by_status.data], [self.report.pk])

        by_search = client.get(reverse("task-list"), {"search": "westlands"})
        self.assertEqual([t["location"] for t in by_search.data], ["Westlands"])

        by_category = client.get(reverse("task-list"), {"category": "electronics"})
        self.assertEqual(len(by_category.data), 1)

    def test_limit(self):
        for i in range(25):
            Report.objects.create(reporter=self.reporter, location=f"Stop {i}", item_type="wool", amount="1 kg")
        resp = self.client_for(self.collector).get(reverse("task-list"))
        self.assertEqual(len(resp.data), 20)


class TestClaim(_TaskTestCase):

    def test_claim_pending_task(self):
        resp = self.claim(self.collector)

        self.assertEqual(resp.status_code, status.HTTP_200_OK, msg=resp.data)
        self.assertEqual(resp.data["status"], TaskStatus.IN_PROGRESS)
        self.assertEqual(resp.data["collector"], self.collector.pk)
        self.report.refresh_from_db()
        self.assertEqual(self.report.collector, self.collector)
        self.assertTrue(
            Notification.objects.filter(recipient=self.reporter, notification_type="task").exists()
        )

    def test_second_claim_conflicts(self):
        self.claim(self.collector)
        resp = self.claim(self.rival)

        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(resp.data["code"], "invalid_transition")
        self.report.refresh_from_db()
        self.assertEqual(self.report.collector, self.collector)

    def test_cannot_claim_own_report(self):
        resp = self.claim(self.reporter)

        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)
        self.report.refresh_from_db()
        self.assertEqual(self.report.status, TaskStatus.PENDING)
        self.assertIsNone(self.report.collector)

    def test_claim_missing_task(self):
        resp = self.client_for(self.collector).post(reverse("task-claim", args=[99999]))
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)

    def test_service_raises_domain_errors(self):
        with self.assertRaises(PermissionDenied):
            CollectionTaskService.claim_task(self.report.pk, self.reporter)
        CollectionTaskService.claim_task(self.report.pk, self.collector)
        with self.assertRaises(InvalidTransition):
            CollectionTaskService.claim_task(self.report.pk, self.rival)


class TestVerify(_TaskTestCase):

    def setUp(self):
        super().setUp()
        CollectionTaskService.claim_task(self.report.pk, self.collector)

    def test_accepted_collection(self):
        classifier = FakeClassifier(_ACCEPTED)
        resp = self.verify(self.collector, classifier)

        self.assertEqual(resp.status_code, status.HTTP_200_OK, msg=resp.data)
        self.assertTrue(resp.data["accepted"])
        self.assertEqual(resp.data["status"], TaskStatus.VERIFIED)

        points = resp.data["reward_points"]
        self.assertGreaterEqual(points, COLLECT_REWARD_MIN)
        self.assertLessEqual(points, COLLECT_REWARD_MAX)

        entry = Transaction.objects.get(user=self.collector)
        self.assertEqual(entry.kind, TransactionKind.EARNED_COLLECT)
        self.assertEqual(entry.amount, points)
        self.assertEqual(entry.description, "Points earned for collecting clothes")
        self.assertEqual(LedgerService.compute_balance(self.collector), points)

        item = CollectedItem.objects.get(report=self.report)
        self.assertEqual(item.collector, self.collector)
        self.assertEqual(item.reward_points, points)
        self.assertTrue(item.verification_result["accepted"])
        self.assertTrue(item.evidence_image.name.startswith("collections/"))

        self.assertTrue(Notification.objects.filter(recipient=self.collector, notification_type="reward").exists())
        self.assertTrue(
            Notification.objects.filter(recipient=self.reporter, title="Item Collected").exists()
        )
        self.assertIn("5 kg", classifier.calls[0]["prompt"])

    def test_mismatch_changes_nothing(self):
        resp = self.verify(self.collector, FakeClassifier(_WRONG_TYPE))

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertFalse(resp.data["accepted"])
        self.assertEqual(resp.data["status"], TaskStatus.IN_PROGRESS)
        self.assertFalse(resp.data["verification"]["accepted"])
        self.assertFalse(Transaction.objects.filter(user=self.collector).exists())
        self.assertFalse(CollectedItem.objects.exists())

    def test_confidence_at_threshold_is_rejected(self):
        resp = self.verify(self.collector, FakeClassifier(_UNSURE))
        self.assertFalse(resp.data["accepted"])

    def test_unparseable_answer_is_a_failed_attempt(self):
        resp = self.verify(self.collector, FakeClassifier("```the photo shows clothes```"))

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertFalse(resp.data["accepted"])
        self.assertIsNone(resp.data["verification"])
        self.report.refresh_from_db()
        self.assertEqual(self.report.status, TaskStatus.IN_PROGRESS)

    def test_retry_after_failure(self):
        self.verify(self.collector, FakeClassifier(_WRONG_TYPE))
        resp = self.verify(self.collector, FakeClassifier(_ACCEPTED))
        self.assertTrue(resp.data["accepted"])

    def test_only_assigned_collector_may_verify(self):
        classifier = FakeClassifier(_ACCEPTED)
        resp = self.verify(self.rival, classifier)

        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(classifier.calls, [])

    def test_image_required(self):
        resp = self.verify(self.collector, FakeClassifier(_ACCEPTED), image=False)
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_verified_task_cannot_be_verified_again(self):
        self.verify(self.collector, FakeClassifier(_ACCEPTED))
        resp = self.verify(self.collector, FakeClassifier(_ACCEPTED))

        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(Transaction.objects.filter(user=self.collector).count(), 1)

    def test_verified_task_cannot_be_claimed(self):
        self.verify(self.collector, FakeClassifier(_ACCEPTED))
        resp = self.claim(self.rival)
        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)

    def test_service_uses_supplied_rng(self):
        result = CollectionTaskService.verify_collection(
            self.report.pk,
            self.collector,
            make_image(),
            FakeClassifier(_ACCEPTED),
            rng=random.Random(7),
        )
        expected = random.Random(7).randint(COLLECT_REWARD_MIN, COLLECT_REWARD_MAX)
        self.assertEqual(result.reward_points, expected)
        self.assertEqual(result.collected_item.reward_points, expected)


class TestVerifyPendingTask(_TaskTestCase):

    def test_unclaimed_task_cannot_be_verified(self):
        resp = self.verify(self.collector, FakeClassifier(_ACCEPTED))
        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)


class TestVerifyFurnitureTask(_TaskTestCase):

    def setUp(self):
        self.report = Report.objects.create(
            reporter=self.reporter,
            location="Lavington Green",
            category="furniture",
            item_type="wooden chairs",
            amount="4 chairs",
        )
        CollectionTaskService.claim_task(self.report.pk, self.collector)

    def test_furniture_keys_are_accepted(self):
        classifier = FakeClassifier({"furnitureTypeMatch": True, "sizeMatch": True, "confidence": 0.8})
        resp = self.verify(self.collector, classifier)

        self.assertEqual(resp.status_code, status.HTTP_200_OK, msg=resp.data)
        self.assertTrue(resp.data["accepted"])
        self.assertEqual(resp.data["status"], TaskStatus.VERIFIED)
        self.assertEqual(resp.data["verification"]["category"], "furniture")
        self.assertTrue(resp.data["verification"]["sizeMatch"])
        self.assertIn('"furnitureTypeMatch"', classifier.calls[0]["prompt"])

        entry = Transaction.objects.get(user=self.collector)
        self.assertEqual(entry.description, "Points earned for collecting furniture")

    def test_clothes_keys_do_not_verify_furniture(self):
        resp = self.verify(self.collector, FakeClassifier(_ACCEPTED))

        self.assertFalse(resp.data["accepted"])
        self.assertIsNone(resp.data["verification"])
        self.report.refresh_from_db()
        self.assertEqual(self.report.status, TaskStatus.IN_PROGRESS)
