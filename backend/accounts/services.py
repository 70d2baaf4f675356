"""
Accounts Service Layer.

This module is the **single source of truth** for all business logic
within the ``accounts`` app.  Views must remain *thin*: they validate
input through serializers, call a service function / method, and
return the result wrapped in a DRF ``Response``.

Architecture
------------
- ``UserAccountService``     — look up / lazily create users by email.
- ``AuthenticationService``  — identity-token login + JWT issuance.
- ``CurrentUserService``     — "Me" endpoint helpers.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from rest_framework_simplejwt.tokens import RefreshToken

from core.domain.exceptions import PermissionDenied

if TYPE_CHECKING:
    from .identity import IdentityProvider

User = get_user_model()

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════
#  User Account Service
# ═══════════════════════════════════════════════════════════════════


class UserAccountService:
    """
    Users are never registered explicitly; they come into existence the
    first time an identity resolves to an unknown email.
    """

    @staticmethod
    def get_by_email(email: str) -> User | None:
        return User.objects.filter(email__iexact=email.strip()).first()

    @staticmethod
    def get_or_create_by_email(email: str, name: str = "") -> tuple[User, bool]:
        """
        Return ``(user, created)`` for ``email``.

        ``username`` mirrors the email.  New users without a name claim
        are shown as "Anonymous User".  A concurrent first login that
        loses the insert race falls back to the row the winner created.
        """
        email = email.strip().lower()
        user = UserAccountService.get_by_email(email)
        if user is not None:
            return user, False

        try:
            with transaction.atomic():
                user = User.objects.create_user(
                    username=email,
                    email=email,
                    display_name=name or "Anonymous User",
                )
        except IntegrityError:
            return User.objects.get(email__iexact=email), False

        logger.info("Created user #%d for %s", user.pk, email)
        return user, True


# ═══════════════════════════════════════════════════════════════════
#  Authentication Service
# ═══════════════════════════════════════════════════════════════════


class AuthenticationService:
    """
    Exchanges an external identity token for a JWT pair issued by this
    backend.
    """

    @staticmethod
    def login_with_identity(
        token: str,
        provider: IdentityProvider,
    ) -> tuple[User, dict[str, str], bool]:
        """
        Resolve ``token`` through ``provider`` and log the user in.

        Returns
        -------
        tuple
            ``(user, {"access": ..., "refresh": ...}, created)``.

        Raises
        ------
        core.domain.exceptions.PermissionDenied
            If the token is invalid or the account is deactivated.
        """
        identity = provider.resolve(token)
        user, created = UserAccountService.get_or_create_by_email(
            identity.email, identity.name,
        )
        if not user.is_active:
            raise PermissionDenied("This account has been deactivated.")

        logger.info("User #%d logged in (created=%s)", user.pk, created)
        return user, AuthenticationService.generate_tokens(user), created

    @staticmethod
    def generate_tokens(user: User) -> dict[str, str]:
        """Issue a JWT access/refresh token pair for the given user."""
        refresh = RefreshToken.for_user(user)
        return {
            "access": str(refresh.access_token),
            "refresh": str(refresh),
        }


# ═══════════════════════════════════════════════════════════════════
#  Current User Service
# ═══════════════════════════════════════════════════════════════════


class CurrentUserService:
    """Helpers for the ``/me/`` endpoint."""

    @staticmethod
    def update_profile(user: User, validated_data: dict[str, Any]) -> User:
        """Apply the whitelisted profile fields and save only those."""
        for field, value in validated_data.items():
            setattr(user, field, value)
        if validated_data:
            user.save(update_fields=list(validated_data))
        return user
