"""
Reports app serializers.

Field definitions and input validation only; workflow rules live in
``services.py``.
"""

from __future__ import annotations

from rest_framework import serializers

from .models import CollectedItem, ItemCategory, Report, TaskStatus


# ────────────────────────────────────────────────────────────────────
# Reports
# ────────────────────────────────────────────────────────────────────

class ReportCreateSerializer(serializers.ModelSerializer):
    """``POST /api/reports/`` body (multipart when an image is attached)."""

    class Meta:
        model = Report
        fields = [
            "location",
            "category",
            "item_type",
            "amount",
            "estimated_value",
            "image",
            "verification_result",
        ]
        extra_kwargs = {
            "category": {"required": False},
            "estimated_value": {"required": False},
            "image": {"required": False},
            "verification_result": {"required": False},
        }

    def validate_location(self, value: str) -> str:
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Location cannot be blank.")
        return value

    def validate_verification_result(self, value):
        if value is not None and not isinstance(value, dict):
            raise serializers.ValidationError("Must be a JSON object.")
        return value


class ReportSerializer(serializers.ModelSerializer):
    """Read representation of a report."""

    reporter_name = serializers.CharField(source="reporter.public_name", read_only=True)
    category_display = serializers.CharField(source="get_category_display", read_only=True)
    status_display = serializers.CharField(source="get_status_display", read_only=True)

    class Meta:
        model = Report
        fields = [
            "id",
            "reporter",
            "reporter_name",
            "location",
            "category",
            "category_display",
            "item_type",
            "amount",
            "estimated_value",
            "estimated_points",
            "image",
            "verification_result",
            "status",
            "status_display",
            "collector",
            "created_at",
        ]
        read_only_fields = fields


class ReportAnalyzeRequestSerializer(serializers.Serializer):
    """``POST /api/reports/analyze/`` multipart body."""

    category = serializers.ChoiceField(
        choices=ItemCategory.choices,
        default=ItemCategory.CLOTHES,
    )
    image = serializers.FileField()


class ReportAnalysisSerializer(serializers.Serializer):
    verified = serializers.BooleanField()
    category = serializers.CharField()
    item_type = serializers.CharField(required=False)
    quantity = serializers.CharField(required=False)
    estimated_value = serializers.CharField(required=False)
    confidence = serializers.FloatField(required=False)
    estimated_points = serializers.IntegerField(required=False)
    detail = serializers.CharField(required=False)


# ────────────────────────────────────────────────────────────────────
# Collection tasks
# ────────────────────────────────────────────────────────────────────

class CollectionTaskSerializer(serializers.ModelSerializer):
    """A report as seen by a prospective collector."""

    collector_name = serializers.SerializerMethodField()

    class Meta:
        model = Report
        fields = [
            "id",
            "location",
            "category",
            "item_type",
            "amount",
            "estimated_value",
            "status",
            "collector",
            "collector_name",
            "created_at",
        ]
        read_only_fields = fields

    def get_collector_name(self, obj: Report) -> str | None:
        return obj.collector.public_name if obj.collector_id else None


class TaskFilterSerializer(serializers.Serializer):
    """Query parameters accepted by ``GET /api/tasks/``."""

    status = serializers.ChoiceField(choices=TaskStatus.choices, required=False)
    category = serializers.ChoiceField(choices=ItemCategory.choices, required=False)
    search = serializers.CharField(required=False, max_length=255)


class CollectionVerifyRequestSerializer(serializers.Serializer):
    """``POST /api/tasks/{id}/verify/`` multipart body."""

    image = serializers.FileField()


class CollectedItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = CollectedItem
        fields = [
            "id",
            "report",
            "collector",
            "collection_date",
            "status",
            "evidence_image",
            "verification_result",
            "reward_points",
        ]
        read_only_fields = fields


class CollectionResultSerializer(serializers.Serializer):
    accepted = serializers.BooleanField()
    message = serializers.CharField()
    status = serializers.CharField(source="report.status")
    reward_points = serializers.IntegerField()
    verification = serializers.SerializerMethodField()
    collected_item = CollectedItemSerializer(allow_null=True)

    def get_verification(self, obj) -> dict | None:
        return obj.judgement.as_dict() if obj.judgement is not None else None
