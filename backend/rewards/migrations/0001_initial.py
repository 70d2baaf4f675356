import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Prize",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created At")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated At")),
                ("name", models.CharField(max_length=255, verbose_name="Name")),
                ("cost", models.PositiveIntegerField(verbose_name="Cost (points)")),
                ("description", models.TextField(blank=True, default="", verbose_name="Description")),
                (
                    "collection_info",
                    models.TextField(
                        blank=True,
                        default="",
                        help_text="Where / how the prize is collected.",
                        verbose_name="Collection Info",
                    ),
                ),
                ("is_available", models.BooleanField(default=True, verbose_name="Available")),
            ],
            options={
                "verbose_name": "Prize",
                "verbose_name_plural": "Prizes",
                "ordering": ["cost", "name"],
            },
        ),
        migrations.CreateModel(
            name="Reward",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created At")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated At")),
                ("points", models.IntegerField(default=0, verbose_name="Points")),
                ("level", models.PositiveSmallIntegerField(default=1, verbose_name="Level")),
                (
                    "user",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="reward",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="User",
                    ),
                ),
            ],
            options={
                "verbose_name": "Reward",
                "verbose_name_plural": "Rewards",
                "ordering": ["-points"],
            },
        ),
        migrations.CreateModel(
            name="Transaction",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "kind",
                    models.CharField(
                        choices=[
                            ("earned_report", "Earned (Report)"),
                            ("earned_collect", "Earned (Collection)"),
                            ("earned_recycle", "Earned (Recycling)"),
                            ("redeemed", "Redeemed"),
                        ],
                        db_index=True,
                        max_length=30,
                        verbose_name="Kind",
                    ),
                ),
                ("amount", models.PositiveIntegerField(verbose_name="Amount")),
                ("description", models.CharField(blank=True, default="", max_length=255, verbose_name="Description")),
                ("date", models.DateTimeField(auto_now_add=True, verbose_name="Date")),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="transactions",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="Owner",
                    ),
                ),
            ],
            options={
                "verbose_name": "Transaction",
                "verbose_name_plural": "Transactions",
                "ordering": ["-date", "-id"],
                "indexes": [
                    models.Index(fields=["user", "-date"], name="txn_user_date_idx"),
                ],
            },
        ),
    ]
