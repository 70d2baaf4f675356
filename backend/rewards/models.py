"""
Rewards app models.

The ledger is the append-only ``Transaction`` log.  A user's balance is
always *derived* from it; ``Reward`` is a per-user cache of that sum
used for leaderboard display and rebuilt from the log on every ledger
write.  ``Prize`` is the redeemable catalogue.
"""

from django.conf import settings
from django.db import models

from core.models import TimeStampedModel


# ────────────────────────────────────────────────────────────────────
# Choice enumerations
# ────────────────────────────────────────────────────────────────────

#: Every credit kind starts with this prefix; aggregation relies on it.
EARNED_PREFIX = "earned"


class TransactionKind(models.TextChoices):
    """
    Ledger entry kinds.  Credits are recognised by the ``earned``
    prefix, so any new earning category must be named ``earned_*``.
    """

    EARNED_REPORT = "earned_report", "Earned (Report)"
    EARNED_COLLECT = "earned_collect", "Earned (Collection)"
    EARNED_RECYCLE = "earned_recycle", "Earned (Recycling)"
    REDEEMED = "redeemed", "Redeemed"

    @classmethod
    def is_credit(cls, kind: str) -> bool:
        return str(kind).startswith(EARNED_PREFIX)


# ────────────────────────────────────────────────────────────────────
# Models
# ────────────────────────────────────────────────────────────────────

class Transaction(models.Model):
    """
    Immutable ledger entry.

    ``amount`` is stored unsigned; its contribution to the balance is
    positive for ``earned_*`` kinds and negative for ``redeemed``.
    Rows are never updated or deleted once written.
    """

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="transactions",
        verbose_name="Owner",
    )
    kind = models.CharField(
        max_length=30,
        choices=TransactionKind.choices,
        verbose_name="Kind",
        db_index=True,
    )
    amount = models.PositiveIntegerField(verbose_name="Amount")
    description = models.CharField(
        max_length=255,
        blank=True,
        default="",
        verbose_name="Description",
    )
    date = models.DateTimeField(
        auto_now_add=True,
        verbose_name="Date",
    )

    class Meta:
        verbose_name = "Transaction"
        verbose_name_plural = "Transactions"
        ordering = ["-date", "-id"]
        indexes = [
            models.Index(fields=["user", "-date"], name="txn_user_date_idx"),
        ]

    def __str__(self):
        return f"{self.get_kind_display()} {self.amount} → {self.user}"

    @property
    def is_credit(self) -> bool:
        return TransactionKind.is_credit(self.kind)

    @property
    def signed_amount(self) -> int:
        return self.amount if self.is_credit else -self.amount

    def save(self, *args, **kwargs):
        if self.pk is not None and not self._state.adding:
            raise ValueError("Ledger transactions are immutable.")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError("Ledger transactions cannot be deleted.")


class Reward(TimeStampedModel):
    """
    Per-user cached aggregate of the ledger.

    ``points`` equals the signed sum of the user's transactions; it is
    recomputed from the log whenever the log changes and must never be
    adjusted on its own.  ``level`` is a display attribute for the
    leaderboard.
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="reward",
        verbose_name="User",
    )
    points = models.IntegerField(default=0, verbose_name="Points")
    level = models.PositiveSmallIntegerField(default=1, verbose_name="Level")

    class Meta:
        verbose_name = "Reward"
        verbose_name_plural = "Rewards"
        ordering = ["-points"]

    def __str__(self):
        return f"{self.user}: {self.points} pts (level {self.level})"


class Prize(TimeStampedModel):
    """A catalogue item that can be bought with points."""

    name = models.CharField(max_length=255, verbose_name="Name")
    cost = models.PositiveIntegerField(verbose_name="Cost (points)")
    description = models.TextField(blank=True, default="", verbose_name="Description")
    collection_info = models.TextField(
        blank=True,
        default="",
        verbose_name="Collection Info",
        help_text="Where / how the prize is collected.",
    )
    is_available = models.BooleanField(default=True, verbose_name="Available")

    class Meta:
        verbose_name = "Prize"
        verbose_name_plural = "Prizes"
        ordering = ["cost", "name"]

    def __str__(self):
        return f"{self.name} ({self.cost} pts)"
