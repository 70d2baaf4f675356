import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Report",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created At")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated At")),
                ("location", models.CharField(max_length=500, verbose_name="Location")),
                (
                    "category",
                    models.CharField(
                        choices=[
                            ("clothes", "Clothes"),
                            ("appliances", "Appliances"),
                            ("electronics", "Electronics"),
                            ("books_paper", "Books & Paper"),
                            ("furniture", "Furniture"),
                        ],
                        db_index=True,
                        default="clothes",
                        max_length=20,
                        verbose_name="Category",
                    ),
                ),
                (
                    "item_type",
                    models.CharField(
                        help_text="Free text, e.g. 'cotton' for clothes or 'microwave' for appliances.",
                        max_length=255,
                        verbose_name="Item Type",
                    ),
                ),
                (
                    "amount",
                    models.CharField(
                        help_text="Quantity or condition descriptor, e.g. '5 kg' or '3 pieces'.",
                        max_length=255,
                        verbose_name="Amount / Condition",
                    ),
                ),
                (
                    "estimated_value",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Classifier estimate such as 'Approximately 1000-2000 KSH'.",
                        max_length=255,
                        verbose_name="Estimated Value",
                    ),
                ),
                (
                    "estimated_points",
                    models.PositiveIntegerField(
                        default=0,
                        help_text="Display-only value derived from the estimated value; never credited.",
                        verbose_name="Estimated Points",
                    ),
                ),
                ("image", models.FileField(blank=True, upload_to="reports/%Y/%m/", verbose_name="Image")),
                (
                    "verification_result",
                    models.JSONField(
                        blank=True,
                        help_text="Classifier output captured when the report was prepared.",
                        null=True,
                        verbose_name="Verification Result",
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("in_progress", "In Progress"),
                            ("completed", "Completed"),
                            ("verified", "Verified"),
                        ],
                        db_index=True,
                        default="pending",
                        max_length=20,
                        verbose_name="Status",
                    ),
                ),
                (
                    "collector",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="collection_tasks",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="Collector",
                    ),
                ),
                (
                    "reporter",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="reports",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="Reporter",
                    ),
                ),
            ],
            options={
                "verbose_name": "Report",
                "verbose_name_plural": "Reports",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["status", "-created_at"], name="report_status_created_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="CollectedItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created At")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated At")),
                ("collection_date", models.DateTimeField(default=django.utils.timezone.now, verbose_name="Collection Date")),
                ("status", models.CharField(default="verified", max_length=20, verbose_name="Status")),
                (
                    "evidence_image",
                    models.FileField(blank=True, upload_to="collections/%Y/%m/", verbose_name="Evidence Image"),
                ),
                ("verification_result", models.JSONField(blank=True, default=dict, verbose_name="Verification Result")),
                ("reward_points", models.PositiveIntegerField(default=0, verbose_name="Reward Points")),
                (
                    "collector",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="collected_items",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="Collector",
                    ),
                ),
                (
                    "report",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="collection",
                        to="reports.report",
                        verbose_name="Report",
                    ),
                ),
            ],
            options={
                "verbose_name": "Collected Item",
                "verbose_name_plural": "Collected Items",
                "ordering": ["-collection_date"],
            },
        ),
    ]
