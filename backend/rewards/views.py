"""
Rewards app views.

Architecture: Views are intentionally thin.  Every action parses input
with a serializer, delegates to ``LedgerService`` /
``RewardCatalogService`` and serializes the result.

ViewSets
--------
- ``RewardViewSet`` — balance, transaction history, redeemable rewards,
  redemption and the leaderboard, all scoped to ``request.user``.
"""

from __future__ import annotations

from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response

from drf_spectacular.utils import OpenApiResponse, extend_schema

from .serializers import (
    AvailableRewardSerializer,
    BalanceSerializer,
    LeaderboardEntrySerializer,
    RedeemRequestSerializer,
    RedeemResponseSerializer,
    TransactionSerializer,
)
from .services import LedgerService, RewardCatalogService


class RewardViewSet(viewsets.ViewSet):
    """
    /api/rewards/

    Endpoints
    ---------
    GET  /api/rewards/balance/       → derived balance + cached aggregate
    GET  /api/rewards/transactions/  → recent ledger entries
    GET  /api/rewards/available/     → redeemable rewards
    POST /api/rewards/redeem/        → redeem a prize or all points
    GET  /api/rewards/leaderboard/   → users ranked by points
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Point balance",
        responses={200: BalanceSerializer},
        tags=["Rewards"],
    )
    @action(detail=False, methods=["get"], url_path="balance")
    def balance(self, request: Request) -> Response:
        reward = LedgerService.get_or_create_reward(request.user)
        data = {
            "balance": LedgerService.compute_balance(request.user),
            "cached_points": reward.points,
            "level": reward.level,
        }
        return Response(BalanceSerializer(data).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Recent transactions",
        responses={200: TransactionSerializer(many=True)},
        tags=["Rewards"],
    )
    @action(detail=False, methods=["get"], url_path="transactions")
    def transactions(self, request: Request) -> Response:
        entries = LedgerService.list_transactions(request.user)
        return Response(TransactionSerializer(entries, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Redeemable rewards",
        responses={200: AvailableRewardSerializer(many=True)},
        tags=["Rewards"],
    )
    @action(detail=False, methods=["get"], url_path="available")
    def available(self, request: Request) -> Response:
        rewards = RewardCatalogService.available_rewards(request.user)
        return Response(AvailableRewardSerializer(rewards, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Redeem a reward",
        description="reward_id 0 redeems every point; any other id redeems that prize.",
        request=RedeemRequestSerializer,
        responses={
            200: OpenApiResponse(response=RedeemResponseSerializer, description="Redemption summary."),
            409: OpenApiResponse(description="Insufficient balance."),
        },
        tags=["Rewards"],
    )
    @action(detail=False, methods=["post"], url_path="redeem")
    def redeem(self, request: Request) -> Response:
        serializer = RedeemRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = RewardCatalogService.redeem(request.user, serializer.validated_data["reward_id"])
        return Response(RedeemResponseSerializer(result).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Leaderboard",
        responses={200: LeaderboardEntrySerializer(many=True)},
        tags=["Rewards"],
    )
    @action(detail=False, methods=["get"], url_path="leaderboard")
    def leaderboard(self, request: Request) -> Response:
        entries = list(RewardCatalogService.leaderboard())
        ranks = {entry.pk: position for position, entry in enumerate(entries, start=1)}
        serializer = LeaderboardEntrySerializer(entries, many=True, context={"ranks": ranks})
        return Response(serializer.data, status=status.HTTP_200_OK)
