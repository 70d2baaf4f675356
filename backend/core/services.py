"""
Core app services — **Service Layer**.

Contains the points policy shared by the ``reports`` and ``rewards``
apps and the notification inbox queries.  Views delegate all business
logic to the service classes defined here, keeping views thin and
ensuring testability.

Models from other apps are never imported at module level here; import
them lazily inside the method that needs them.
"""

from __future__ import annotations

import math
import random
import re
from typing import TYPE_CHECKING, Any

from django.db.models import QuerySet

from core.constants import (
    COLLECT_REWARD_MAX,
    COLLECT_REWARD_MIN,
    ESTIMATED_VALUE_POINTS_RATE,
    VERIFICATION_CONFIDENCE_THRESHOLD,
)
from core.domain.exceptions import NotFound

if TYPE_CHECKING:
    from core.models import Notification


# ════════════════════════════════════════════════════════════════════
#  Reward Calculator Service
# ════════════════════════════════════════════════════════════════════

class RewardCalculatorService:
    """
    **Single Source of Truth** for every points formula.

    Formulas
    --------
    **Estimated-value points** (shown to the reporter, never credited):

    .. math::

        \\text{points} = \\lfloor \\operatorname{round}(\\tfrac{min + max}{2}) \\times 0.1 \\rfloor

    where ``min`` and ``max`` are the first ``<int>-<int>`` pair found in
    the classifier's estimated-value string.  No pair → 0 points.
    Rounding is half-up.

    **Collection reward**: uniform random integer in
    ``[COLLECT_REWARD_MIN, COLLECT_REWARD_MAX]``.

    **Verification acceptance**: type match AND quantity match AND
    ``confidence > VERIFICATION_CONFIDENCE_THRESHOLD``.
    """

    _RANGE_PATTERN = re.compile(r"(\d+)-(\d+)")

    @staticmethod
    def _round_half_up(value: float) -> int:
        return math.floor(value + 0.5)

    @classmethod
    def compute_points_from_range(cls, minimum: int, maximum: int) -> int:
        """
        Points for an explicit ``minimum``–``maximum`` value range.

        Reversed or negative ranges are not validated; the arithmetic
        result is returned as-is.
        """
        average = cls._round_half_up((minimum + maximum) / 2)
        return math.floor(average * ESTIMATED_VALUE_POINTS_RATE)

    @classmethod
    def compute_points_from_estimated_value(cls, estimated_value: str | None) -> int:
        """
        Parse an estimated-value string such as
        ``"Approximately 1000-2000 KSH"`` and return its point value.

        Missing or malformed strings yield 0, never an error.

        >>> RewardCalculatorService.compute_points_from_estimated_value("Approximately 1000-2000 KSH")
        150
        """
        if not estimated_value:
            return 0
        match = cls._RANGE_PATTERN.search(str(estimated_value))
        if match is None:
            return 0
        return cls.compute_points_from_range(int(match.group(1)), int(match.group(2)))

    @staticmethod
    def roll_collection_reward(rng: random.Random | None = None) -> int:
        """Draw the reward for one verified collection."""
        rng = rng or random
        return rng.randint(COLLECT_REWARD_MIN, COLLECT_REWARD_MAX)

    @staticmethod
    def is_verification_accepted(
        *,
        type_match: bool,
        quantity_match: bool,
        confidence: float,
    ) -> bool:
        """All three conditions must hold; confidence is compared strictly."""
        return (
            type_match is True
            and quantity_match is True
            and confidence > VERIFICATION_CONFIDENCE_THRESHOLD
        )


# ════════════════════════════════════════════════════════════════════
#  Notification Inbox Service
# ════════════════════════════════════════════════════════════════════

class NotificationInboxService:
    """
    Handles listing and marking notifications as read for a given user.
    """

    def __init__(self, user: Any) -> None:
        self.user = user

    def list_notifications(self, *, include_read: bool = False) -> QuerySet[Notification]:
        """
        Return the user's notifications, most recent first.

        By default only unread ones (the active set) are returned.
        """
        from core.models import Notification

        qs = Notification.objects.filter(recipient=self.user)
        if not include_read:
            qs = qs.filter(is_read=False)
        return qs.select_related("content_type").order_by("-created_at")

    def mark_as_read(self, notification_id: int) -> Notification:
        """Mark a single notification as read."""
        from core.models import Notification

        try:
            notification = Notification.objects.get(
                pk=notification_id,
                recipient=self.user,
            )
        except Notification.DoesNotExist:
            raise NotFound(f"Notification with id {notification_id} not found.")

        if not notification.is_read:
            notification.is_read = True
            notification.save(update_fields=["is_read", "updated_at"])
        return notification
