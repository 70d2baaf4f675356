"""
Accounts app models.

Defines the custom ``User`` model.  The email address resolved by the
external identity provider is the sole cross-reference key into the user
store; ``username`` mirrors it so Django's admin and auth tooling keep
working unchanged.
"""

from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """
    A reporter and/or collector of recyclable items.

    Created on first login (or first report) from the identity
    provider's email claim.  Owns zero or more reports, exactly one
    lazily created reward aggregate, and zero or more ledger
    transactions.
    """

    email = models.EmailField(
        unique=True,
        verbose_name="Email Address",
    )
    display_name = models.CharField(
        max_length=150,
        blank=True,
        default="",
        verbose_name="Display Name",
    )

    # ── Profile (settings page) ──────────────────────────────────────
    phone_number = models.CharField(
        max_length=20,
        blank=True,
        default="",
        verbose_name="Phone Number",
    )
    address = models.CharField(
        max_length=255,
        blank=True,
        default="",
        verbose_name="Address",
    )

    REQUIRED_FIELDS = ["email"]

    class Meta:
        verbose_name = "User"
        verbose_name_plural = "Users"

    def __str__(self):
        return self.display_name or self.email

    @property
    def public_name(self) -> str:
        """Name shown on the leaderboard and to other users."""
        return self.display_name or self.get_full_name() or "Anonymous User"
