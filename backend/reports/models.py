"""
Reports app models.

Covers the lifecycle of a reported recyclable item — from the
reporter's submission, through a collector claiming it, to the
collector's photo evidence being accepted by the image classifier.
"""

from django.conf import settings
from django.db import models
from django.utils import timezone

from core.models import TimeStampedModel


# ────────────────────────────────────────────────────────────────────
# Choice enumerations
# ────────────────────────────────────────────────────────────────────

class ItemCategory(models.TextChoices):
    """Kinds of recyclable items; each has its own classifier schema."""

    CLOTHES = "clothes", "Clothes"
    APPLIANCES = "appliances", "Appliances"
    ELECTRONICS = "electronics", "Electronics"
    BOOKS_PAPER = "books_paper", "Books & Paper"
    FURNITURE = "furniture", "Furniture"


class TaskStatus(models.TextChoices):
    """
    Collection task states.

    ``pending → in_progress → verified``.  ``COMPLETED`` exists for rows
    written by earlier clients; no transition produces it.
    """

    PENDING = "pending", "Pending"
    IN_PROGRESS = "in_progress", "In Progress"
    COMPLETED = "completed", "Completed"
    VERIFIED = "verified", "Verified"


# ────────────────────────────────────────────────────────────────────
# Models
# ────────────────────────────────────────────────────────────────────

class Report(TimeStampedModel):
    """
    One reported recyclable item, doubling as its collection task.

    The reporter and the collector are never the same user.
    """

    reporter = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="reports",
        verbose_name="Reporter",
    )
    location = models.CharField(
        max_length=500,
        verbose_name="Location",
    )
    category = models.CharField(
        max_length=20,
        choices=ItemCategory.choices,
        default=ItemCategory.CLOTHES,
        verbose_name="Category",
        db_index=True,
    )
    item_type = models.CharField(
        max_length=255,
        verbose_name="Item Type",
        help_text="Free text, e.g. 'cotton' for clothes or 'microwave' for appliances.",
    )
    amount = models.CharField(
        max_length=255,
        verbose_name="Amount / Condition",
        help_text="Quantity or condition descriptor, e.g. '5 kg' or '3 pieces'.",
    )
    estimated_value = models.CharField(
        max_length=255,
        blank=True,
        default="",
        verbose_name="Estimated Value",
        help_text="Classifier estimate such as 'Approximately 1000-2000 KSH'.",
    )
    estimated_points = models.PositiveIntegerField(
        default=0,
        verbose_name="Estimated Points",
        help_text="Display-only value derived from the estimated value; never credited.",
    )
    image = models.FileField(
        upload_to="reports/%Y/%m/",
        blank=True,
        verbose_name="Image",
    )
    verification_result = models.JSONField(
        null=True,
        blank=True,
        verbose_name="Verification Result",
        help_text="Classifier output captured when the report was prepared.",
    )
    status = models.CharField(
        max_length=20,
        choices=TaskStatus.choices,
        default=TaskStatus.PENDING,
        verbose_name="Status",
        db_index=True,
    )
    collector = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="collection_tasks",
        verbose_name="Collector",
    )

    class Meta:
        verbose_name = "Report"
        verbose_name_plural = "Reports"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status", "-created_at"], name="report_status_created_idx"),
        ]

    def __str__(self):
        return f"Report #{self.pk} — {self.get_category_display()} at {self.location}"


class CollectedItem(TimeStampedModel):
    """
    Proof that a collector picked up a reported item and the classifier
    accepted their photo.
    """

    report = models.OneToOneField(
        Report,
        on_delete=models.CASCADE,
        related_name="collection",
        verbose_name="Report",
    )
    collector = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="collected_items",
        verbose_name="Collector",
    )
    collection_date = models.DateTimeField(
        default=timezone.now,
        verbose_name="Collection Date",
    )
    status = models.CharField(
        max_length=20,
        default=TaskStatus.VERIFIED,
        verbose_name="Status",
    )
    evidence_image = models.FileField(
        upload_to="collections/%Y/%m/",
        blank=True,
        verbose_name="Evidence Image",
    )
    verification_result = models.JSONField(
        default=dict,
        blank=True,
        verbose_name="Verification Result",
    )
    reward_points = models.PositiveIntegerField(
        default=0,
        verbose_name="Reward Points",
    )

    class Meta:
        verbose_name = "Collected Item"
        verbose_name_plural = "Collected Items"
        ordering = ["-collection_date"]

    def __str__(self):
        return f"Report #{self.report_id} collected by {self.collector}"
