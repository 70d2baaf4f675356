"""
Accounts app serializers.

Serializers handle field definitions and field-level validation only.
**No business logic** lives here — that belongs in ``services.py``.
"""

from __future__ import annotations

import re

from django.contrib.auth import get_user_model
from rest_framework import serializers

User = get_user_model()


class LoginRequestSerializer(serializers.Serializer):
    """
    Body of ``POST /api/accounts/auth/login/``.

    ``id_token`` is the signed token issued by the external wallet-auth
    provider after the user logged in there.
    """

    id_token = serializers.CharField(
        help_text="Identity token issued by the external login provider.",
    )


class UserDetailSerializer(serializers.ModelSerializer):
    """Full user representation (login response and ``/me/``)."""

    class Meta:
        model = User
        fields = [
            "id",
            "email",
            "display_name",
            "phone_number",
            "address",
            "date_joined",
        ]
        read_only_fields = fields


class TokenResponseSerializer(serializers.Serializer):
    """Shape of a successful login response."""

    access = serializers.CharField()
    refresh = serializers.CharField()
    created = serializers.BooleanField(
        help_text="True when this login created the account.",
    )
    user = UserDetailSerializer()


class MeUpdateSerializer(serializers.ModelSerializer):
    """
    Allows the authenticated user to update limited profile fields.
    The email is the identity key and cannot be self-modified.
    """

    class Meta:
        model = User
        fields = [
            "display_name",
            "phone_number",
            "address",
        ]

    def validate_phone_number(self, value: str) -> str:
        """Allow blank, otherwise digits with optional ``+`` and separators."""
        if value and not re.match(r"^\+?[\d\s-]{7,20}$", value):
            raise serializers.ValidationError(
                "Phone number may only contain digits, spaces, dashes and a leading '+'."
            )
        return value
