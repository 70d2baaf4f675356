"""
Rewards app serializers.

Field definitions and input validation only; ledger rules live in
``services.py``.
"""

from __future__ import annotations

from rest_framework import serializers

from .models import Reward, Transaction


class TransactionSerializer(serializers.ModelSerializer):
    """Read-only ledger entry."""

    kind_display = serializers.CharField(source="get_kind_display", read_only=True)

    class Meta:
        model = Transaction
        fields = ["id", "kind", "kind_display", "amount", "description", "date"]
        read_only_fields = fields


class BalanceSerializer(serializers.Serializer):
    """``GET /api/rewards/balance/`` response."""

    balance = serializers.IntegerField(
        help_text="Balance derived from the transaction log, never negative.",
    )
    cached_points = serializers.IntegerField(
        help_text="Points held in the cached aggregate (leaderboard value).",
    )
    level = serializers.IntegerField()


class AvailableRewardSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    name = serializers.CharField()
    cost = serializers.IntegerField()
    description = serializers.CharField(allow_blank=True)
    collection_info = serializers.CharField(allow_blank=True)


class RedeemRequestSerializer(serializers.Serializer):
    """
    ``POST /api/rewards/redeem/`` body.

    ``reward_id`` 0 redeems every point; any other value is a prize id.
    """

    reward_id = serializers.IntegerField(
        min_value=0,
        help_text="0 to redeem all points, otherwise a prize id.",
    )


class RedeemResponseSerializer(serializers.Serializer):
    reward_id = serializers.IntegerField()
    name = serializers.CharField()
    redeemed = serializers.IntegerField()
    balance = serializers.IntegerField()
    cached_points = serializers.IntegerField()


class LeaderboardEntrySerializer(serializers.ModelSerializer):
    """One leaderboard row."""

    rank = serializers.SerializerMethodField()
    user_id = serializers.IntegerField(source="user.id", read_only=True)
    user_name = serializers.CharField(source="user.public_name", read_only=True)

    class Meta:
        model = Reward
        fields = ["rank", "user_id", "user_name", "points", "level"]
        read_only_fields = fields

    def get_rank(self, obj: Reward) -> int:
        return self.context["ranks"][obj.pk]
