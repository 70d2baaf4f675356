"""
Rewards app Service Layer — the points ledger.

This module is the **single source of truth** for every read and write
of a user's points.  Views must remain thin: validate input via
serializers, call a service method, and return the result wrapped in a
DRF ``Response``.

Architecture
------------
- ``LedgerService``       — earnings, redemptions, derived balance and
                            the cached ``Reward`` aggregate.
- ``RewardCatalogService`` — redeemable rewards and the leaderboard.

Ledger invariants
-----------------
* ``Transaction`` rows are append-only.
* The balance is derived from the log: ``earned_*`` kinds add,
  ``redeemed`` subtracts; the displayed balance is clamped at zero.
* ``Reward.points`` is a cache of the signed log total.  Every ledger
  write locks the user's ``Reward`` row, appends to the log and rewrites
  the cache inside one ``transaction.atomic()`` block, so the two can
  never drift apart.
"""

from __future__ import annotations

import logging
from typing import Any

from django.db import transaction
from django.db.models import Q, QuerySet, Sum

from core.constants import RECENT_TRANSACTIONS_LIMIT
from core.domain.exceptions import DomainError, InsufficientBalance, NotFound
from core.domain.notifications import NotificationService
from core.domain.transactions import lock_for_update

from .models import EARNED_PREFIX, Prize, Reward, Transaction, TransactionKind

logger = logging.getLogger(__name__)

#: Pseudo-reward id meaning "redeem every point I have".
REDEEM_ALL_REWARD_ID = 0


# ═══════════════════════════════════════════════════════════════════
#  Ledger Service
# ═══════════════════════════════════════════════════════════════════


class LedgerService:
    """
    Records point-earning and point-spending events and computes
    balances.
    """

    # ── Reads ───────────────────────────────────────────────────────

    @staticmethod
    def signed_total(user: Any) -> int:
        """
        Unclamped sum of the user's ledger: credits minus redemptions.
        """
        credit = Q(kind__startswith=EARNED_PREFIX)
        totals = Transaction.objects.filter(user=user).aggregate(
            earned=Sum("amount", filter=credit),
            redeemed=Sum("amount", filter=~credit),
        )
        return (totals["earned"] or 0) - (totals["redeemed"] or 0)

    @staticmethod
    def compute_balance(user: Any) -> int:
        """
        Authoritative display balance: ``max(0, Σ earned − Σ redeemed)``.

        Pure read; calling it repeatedly without intervening writes
        yields the same value.
        """
        return max(0, LedgerService.signed_total(user))

    @staticmethod
    def list_transactions(
        user: Any,
        limit: int | None = RECENT_TRANSACTIONS_LIMIT,
    ) -> QuerySet[Transaction]:
        """Most recent ledger entries first."""
        qs = Transaction.objects.filter(user=user).order_by("-date", "-id")
        if limit is not None:
            qs = qs[:limit]
        return qs

    @staticmethod
    def get_or_create_reward(user: Any) -> Reward:
        """
        Return the user's ``Reward`` aggregate, creating it on first use.

        A freshly created aggregate is seeded from the ledger so users
        whose history predates the cache start out consistent.
        """
        reward, created = Reward.objects.get_or_create(user=user)
        if created:
            total = LedgerService.signed_total(user)
            if total:
                reward.points = total
                reward.save(update_fields=["points", "updated_at"])
        return reward

    # ── Writes ──────────────────────────────────────────────────────

    @staticmethod
    def _lock_reward(user: Any) -> Reward:
        """Lock (creating if needed) the user's aggregate.  Call inside atomic()."""
        reward = LedgerService.get_or_create_reward(user)
        return lock_for_update(Reward, reward.pk)

    @staticmethod
    def rebuild_reward_cache(user: Any) -> Reward:
        """
        Recompute ``Reward.points`` from the transaction log.

        Returns the refreshed aggregate.
        """
        with transaction.atomic():
            reward = LedgerService._lock_reward(user)
            total = LedgerService.signed_total(user)
            if reward.points != total:
                logger.warning(
                    "Reward cache for user=%s drifted: cached=%d ledger=%d",
                    user, reward.points, total,
                )
                reward.points = total
                reward.save(update_fields=["points", "updated_at"])
        return reward

    @staticmethod
    def record_earning(
        user: Any,
        kind: str,
        amount: int,
        description: str,
    ) -> Transaction:
        """
        Append an ``earned_*`` transaction and refresh the cache.

        There is no upper bound on ``amount``.

        Raises
        ------
        DomainError
            If ``kind`` is not an earning kind or ``amount`` is negative.
        """
        if not TransactionKind.is_credit(kind) or kind not in TransactionKind.values:
            raise DomainError(f"'{kind}' is not an earning transaction kind.")
        if amount < 0:
            raise DomainError("Earned amount cannot be negative.")

        with transaction.atomic():
            reward = LedgerService._lock_reward(user)
            entry = Transaction.objects.create(
                user=user,
                kind=kind,
                amount=amount,
                description=description,
            )
            reward.points = LedgerService.signed_total(user)
            reward.save(update_fields=["points", "updated_at"])

        logger.info(
            "Ledger credit %s +%d for user=%s (cached total=%d)",
            kind, amount, user, reward.points,
        )
        return entry

    @staticmethod
    def redeem_specific(user: Any, cost: int, description: str) -> Reward:
        """
        Spend ``cost`` points.

        Succeeds iff ``cached points ≥ cost > 0``; the cache becomes
        ``points − cost`` and one ``redeemed`` transaction of ``cost``
        is appended.

        Raises
        ------
        DomainError
            If ``cost`` is not positive.
        InsufficientBalance
            If the user holds fewer than ``cost`` points.
        """
        if cost <= 0:
            raise DomainError("Reward cost must be a positive number of points.")

        with transaction.atomic():
            reward = LedgerService._lock_reward(user)
            available = reward.points
            if available < cost:
                raise InsufficientBalance(available=max(available, 0), requested=cost)

            Transaction.objects.create(
                user=user,
                kind=TransactionKind.REDEEMED,
                amount=cost,
                description=description,
            )
            reward.points = available - cost
            reward.save(update_fields=["points", "updated_at"])

            NotificationService.create(
                actor=user,
                recipients=user,
                event_type="points_redeemed",
                payload={"points": cost, "description": description},
            )

        logger.info("User=%s redeemed %d points (%s)", user, cost, description)
        return reward

    @staticmethod
    def redeem_all(user: Any) -> tuple[Reward, int]:
        """
        Spend every cached point.

        The ``redeemed`` transaction records the pre-redemption cached
        value and the cache is zeroed.

        Returns
        -------
        tuple
            ``(reward, redeemed_amount)``.

        Raises
        ------
        InsufficientBalance
            If there are no points to redeem.
        """
        with transaction.atomic():
            reward = LedgerService._lock_reward(user)
            amount = reward.points
            if amount <= 0:
                raise InsufficientBalance("No points available to redeem.", available=0, requested=0)

            Transaction.objects.create(
                user=user,
                kind=TransactionKind.REDEEMED,
                amount=amount,
                description="Redeemed all points",
            )
            reward.points = 0
            reward.save(update_fields=["points", "updated_at"])

            NotificationService.create(
                actor=user,
                recipients=user,
                event_type="points_redeemed",
                payload={"points": amount, "description": "all points"},
            )

        logger.info("User=%s redeemed all %d points", user, amount)
        return reward, amount


# ═══════════════════════════════════════════════════════════════════
#  Reward Catalog Service
# ═══════════════════════════════════════════════════════════════════


class RewardCatalogService:
    """Redeemable rewards, redemption by catalogue id, and the leaderboard."""

    @staticmethod
    def available_rewards(user: Any) -> list[dict[str, Any]]:
        """
        Everything the user could redeem.

        The first entry is the "redeem all" pseudo-reward (id 0) whose
        cost is the derived balance; it is followed by the available
        prizes.  Entries costing 0 points are left out.
        """
        balance = LedgerService.compute_balance(user)
        rewards: list[dict[str, Any]] = [
            {
                "id": REDEEM_ALL_REWARD_ID,
                "name": "Your Points",
                "cost": balance,
                "description": "Redeem your earned points",
                "collection_info": "Points earned from reporting and collecting items",
            },
        ]
        for prize in Prize.objects.filter(is_available=True):
            rewards.append({
                "id": prize.pk,
                "name": prize.name,
                "cost": prize.cost,
                "description": prize.description,
                "collection_info": prize.collection_info,
            })
        return [r for r in rewards if r["cost"] > 0]

    @staticmethod
    def redeem(user: Any, reward_id: int) -> dict[str, Any]:
        """
        Redeem by catalogue id; ``REDEEM_ALL_REWARD_ID`` redeems
        everything.

        Returns a summary dict with the redeemed amount and the
        remaining balance.
        """
        if reward_id == REDEEM_ALL_REWARD_ID:
            reward, amount = LedgerService.redeem_all(user)
            name = "All points"
        else:
            try:
                prize = Prize.objects.get(pk=reward_id)
            except Prize.DoesNotExist:
                raise NotFound(f"Reward with id {reward_id} not found.")
            if not prize.is_available:
                raise DomainError(f"'{prize.name}' is no longer available.")
            reward = LedgerService.redeem_specific(user, prize.cost, f"Redeemed: {prize.name}")
            amount = prize.cost
            name = prize.name

        return {
            "reward_id": reward_id,
            "name": name,
            "redeemed": amount,
            "balance": LedgerService.compute_balance(user),
            "cached_points": reward.points,
        }

    @staticmethod
    def leaderboard(limit: int | None = None) -> QuerySet[Reward]:
        """Users holding points, highest first."""
        qs = (
            Reward.objects
            .filter(points__gt=0)
            .select_related("user")
            .order_by("-points", "created_at")
        )
        if limit is not None:
            qs = qs[:limit]
        return qs
