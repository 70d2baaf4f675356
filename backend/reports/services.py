"""
Reports app Service Layer.

Views must remain thin: validate input via serializers, call a service
method, and return the result wrapped in a DRF ``Response``.

Architecture
------------
- ``ReportService``         — image analysis, report submission and
                              report listings.
- ``CollectionTaskService`` — the collection task state machine
                              (``pending → in_progress → verified``).

The image classifier is always passed in by the caller; it is built
per request with ``reports.classifier.get_classifier()``.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Any

from django.db import transaction
from django.db.models import Q, QuerySet

from core.constants import (
    COLLECTION_TASKS_LIMIT,
    RECENT_REPORTS_LIMIT,
    REPORT_REWARD_POINTS,
)
from core.domain.exceptions import (
    DomainError,
    InvalidTransition,
    NotFound,
    PermissionDenied,
)
from core.domain.notifications import NotificationService
from core.domain.transactions import atomic_transition
from core.services import RewardCalculatorService
from rewards.models import TransactionKind
from rewards.services import LedgerService

from .classifier import (
    ImageClassifier,
    VerificationJudgement,
    analyze_report_image,
    verify_collection_image,
)
from .models import CollectedItem, ItemCategory, Report, TaskStatus

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_MIME_TYPE = "image/jpeg"


def _read_upload(upload: Any) -> tuple[bytes, str]:
    """Return ``(bytes, mime_type)`` of an uploaded file and rewind it."""
    data = upload.read()
    if hasattr(upload, "seek"):
        upload.seek(0)
    if not data:
        raise DomainError("The uploaded image is empty.")
    mime_type = getattr(upload, "content_type", None) or DEFAULT_IMAGE_MIME_TYPE
    return data, mime_type


def _category_label(category: str) -> str:
    return ItemCategory(category).label.lower()


# ═══════════════════════════════════════════════════════════════════
#  Report Service
# ═══════════════════════════════════════════════════════════════════


class ReportService:
    """Creating and listing recycling reports."""

    @staticmethod
    def analyze_image(
        classifier: ImageClassifier,
        category: str,
        image: Any,
    ) -> dict[str, Any]:
        """
        Ask the classifier what the reporter's photo shows.

        An unparseable response is reported as ``verified=False``;
        nothing is persisted either way.
        """
        image_bytes, mime_type = _read_upload(image)
        analysis = analyze_report_image(classifier, category, image_bytes, mime_type)
        if analysis is None:
            return {
                "verified": False,
                "category": category,
                "detail": "Failed to verify the image. Please try again.",
            }
        return {
            "verified": True,
            "category": category,
            **analysis.as_dict(),
            "estimated_points": analysis.estimated_points,
        }

    @staticmethod
    def submit_report(reporter: Any, validated_data: dict[str, Any]) -> Report:
        """
        Persist a report and credit the reporter.

        One atomic unit: the report row (``pending``), a flat
        ``REPORT_REWARD_POINTS`` ``earned_report`` credit and the
        reporter's notification.  ``estimated_points`` is computed from
        the estimated value for display and is not credited.
        """
        data = dict(validated_data)
        category = data.setdefault("category", ItemCategory.CLOTHES)
        data["estimated_points"] = RewardCalculatorService.compute_points_from_estimated_value(
            data.get("estimated_value"),
        )
        label = _category_label(category)

        with transaction.atomic():
            report = Report.objects.create(
                reporter=reporter,
                status=TaskStatus.PENDING,
                **data,
            )
            LedgerService.record_earning(
                reporter,
                TransactionKind.EARNED_REPORT,
                REPORT_REWARD_POINTS,
                f"Points earned for recycling {label}",
            )
            NotificationService.create(
                actor=reporter,
                recipients=reporter,
                event_type="report_reward",
                payload={"points": REPORT_REWARD_POINTS, "category": label},
                related_object=report,
            )

        logger.info("Report #%s submitted by user=%s (%s)", report.pk, reporter, category)
        return report

    @staticmethod
    def list_user_reports(user: Any) -> QuerySet[Report]:
        return (
            Report.objects
            .filter(reporter=user)
            .select_related("collector")
            .order_by("-created_at")
        )

    @staticmethod
    def list_recent_reports(limit: int = RECENT_REPORTS_LIMIT) -> QuerySet[Report]:
        """Newest reports across all users."""
        return Report.objects.select_related("reporter").order_by("-created_at")[:limit]

    @staticmethod
    def get_report(report_id: int) -> Report:
        try:
            return Report.objects.select_related("reporter", "collector").get(pk=report_id)
        except Report.DoesNotExist:
            raise NotFound(f"Report with id {report_id} not found.")


# ═══════════════════════════════════════════════════════════════════
#  Collection Task Service
# ═══════════════════════════════════════════════════════════════════


@dataclass
class CollectionResult:
    """Outcome of one verification attempt."""

    report: Report
    accepted: bool
    judgement: VerificationJudgement | None = None
    reward_points: int = 0
    collected_item: CollectedItem | None = None

    @property
    def message(self) -> str:
        if self.accepted:
            return f"Collection verified. You earned {self.reward_points} points."
        if self.judgement is None:
            return "Failed to verify the collection. Please try again."
        return "The photo does not match the reported item. Please try again."


class CollectionTaskService:
    """
    The collection task state machine.

    Transitions
    -----------
    ``claim_task``:        ``pending → in_progress`` (collector assigned)
    ``verify_collection``: ``in_progress → verified`` (classifier accepted)

    Both go through ``atomic_transition`` so the status check and the
    write happen under one row lock.
    """

    @staticmethod
    def list_collection_tasks(
        requesting_user: Any,
        filters: dict[str, Any] | None = None,
        limit: int = COLLECTION_TASKS_LIMIT,
    ) -> QuerySet[Report]:
        """
        Reports the user could collect, newest first.

        The user's own reports are never listed.

        Supported ``filters`` keys:
        - ``status``   : str (``TaskStatus`` value)
        - ``category`` : str (``ItemCategory`` value)
        - ``search``   : str (case-insensitive match on location or item type)
        """
        filters = filters or {}
        qs = (
            Report.objects
            .exclude(reporter=requesting_user)
            .select_related("reporter", "collector")
        )
        if filters.get("status"):
            qs = qs.filter(status=filters["status"])
        if filters.get("category"):
            qs = qs.filter(category=filters["category"])
        if filters.get("search"):
            term = filters["search"]
            qs = qs.filter(Q(location__icontains=term) | Q(item_type__icontains=term))
        return qs.order_by("-created_at")[:limit]

    @staticmethod
    def claim_task(report_id: int, collector: Any) -> Report:
        """
        ``pending → in_progress``; records the collector.

        Raises
        ------
        NotFound
            No such report.
        PermissionDenied
            The collector is the reporter.
        InvalidTransition
            The task is no longer pending (e.g. another collector won).
        """
        report = ReportService.get_report(report_id)

        def _not_own_report(locked: Report) -> None:
            if locked.reporter_id == collector.pk:
                raise PermissionDenied("You cannot collect your own report.")

        with transaction.atomic():
            report = atomic_transition(
                instance=report,
                target_status=TaskStatus.IN_PROGRESS,
                allowed_sources={TaskStatus.PENDING},
                updates={"collector": collector},
                guard=_not_own_report,
            )
            NotificationService.create(
                actor=collector,
                recipients=report.reporter,
                event_type="task_claimed",
                payload={"category": _category_label(report.category)},
                related_object=report,
            )

        logger.info("Report #%s claimed by user=%s", report.pk, collector)
        return report

    @staticmethod
    def verify_collection(
        report_id: int,
        collector: Any,
        image: Any,
        classifier: ImageClassifier,
        rng: random.Random | None = None,
    ) -> CollectionResult:
        """
        Check the collector's photo and, if accepted, complete the task.

        The classifier is consulted outside any database transaction.
        On acceptance one atomic unit moves the task to ``verified``,
        rolls the reward, appends the ``earned_collect`` credit, stores
        a ``CollectedItem`` and notifies both parties.  A rejected or
        unparseable response changes nothing.

        Raises
        ------
        NotFound
            No such report.
        PermissionDenied
            The caller is not the assigned collector.
        InvalidTransition
            The task is not ``in_progress``.
        DomainError
            No evidence image was supplied.
        """
        report = ReportService.get_report(report_id)
        if report.status != TaskStatus.IN_PROGRESS:
            raise InvalidTransition(
                current=report.status,
                target=TaskStatus.VERIFIED,
                reason="only claimed tasks can be verified",
            )
        if report.collector_id != collector.pk:
            raise PermissionDenied("Only the assigned collector can verify this task.")
        if not image:
            raise DomainError("An evidence image is required to verify a collection.")

        image_bytes, mime_type = _read_upload(image)
        judgement = verify_collection_image(
            classifier,
            category=report.category,
            item_type=report.item_type,
            amount=report.amount,
            image_bytes=image_bytes,
            mime_type=mime_type,
        )
        if judgement is None or not judgement.accepted:
            logger.warning(
                "Collection of report #%s by user=%s rejected: %s",
                report.pk, collector, judgement.as_dict() if judgement else "unparseable",
            )
            return CollectionResult(report=report, accepted=False, judgement=judgement)

        def _still_assigned(locked: Report) -> None:
            if locked.collector_id != collector.pk:
                raise PermissionDenied("Only the assigned collector can verify this task.")

        label = _category_label(report.category)
        with transaction.atomic():
            report = atomic_transition(
                instance=report,
                target_status=TaskStatus.VERIFIED,
                allowed_sources={TaskStatus.IN_PROGRESS},
                guard=_still_assigned,
            )
            points = RewardCalculatorService.roll_collection_reward(rng)
            LedgerService.record_earning(
                collector,
                TransactionKind.EARNED_COLLECT,
                points,
                f"Points earned for collecting {label}",
            )
            collected = CollectedItem.objects.create(
                report=report,
                collector=collector,
                status=TaskStatus.VERIFIED,
                evidence_image=image,
                verification_result=judgement.as_dict(),
                reward_points=points,
            )
            NotificationService.create(
                actor=collector,
                recipients=collector,
                event_type="collection_reward",
                payload={"points": points, "category": label},
                related_object=report,
            )
            NotificationService.create(
                actor=collector,
                recipients=report.reporter,
                event_type="item_collected",
                payload={"category": label},
                related_object=report,
            )

        logger.info(
            "Report #%s verified for collector=%s (+%d points)",
            report.pk, collector, points,
        )
        return CollectionResult(
            report=report,
            accepted=True,
            judgement=judgement,
            reward_points=points,
            collected_item=collected,
        )
