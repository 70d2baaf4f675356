"""
core.domain.notifications — Synchronous notification creation helper.

Centralises notification creation so every app uses one consistent
entry-point rather than directly constructing ``Notification`` objects.

Design decisions
----------------
* **Synchronous** — all DB writes happen in the calling thread, inside
  the caller's transaction when there is one.
* **Supports multiple recipients** — pass a single ``User`` or an
  iterable of ``User`` instances.
* **Generic relation** — ``related_object`` is optional; if provided
  its ``ContentType`` and PK are stored via the ``Notification`` model's
  ``GenericForeignKey``.
* **Payload interpolation** — message templates are formatted with the
  ``payload`` dict; a template key missing from the payload raises
  ``KeyError``.

Usage::

    from core.domain.notifications import NotificationService

    NotificationService.create(
        actor=request.user,
        recipients=request.user,
        event_type="report_reward",
        payload={"points": 100},
        related_object=report,
    )
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Iterable

from django.contrib.contenttypes.models import ContentType
from django.db import models

if TYPE_CHECKING:
    from accounts.models import User
    from core.models import Notification

logger = logging.getLogger(__name__)

# ── Event-type → (title, message template, notification type) ────────
_EVENT_TEMPLATES: dict[str, tuple[str, str, str]] = {
    "report_reward":     ("Report Submitted",     "You've earned {points} points for recycling {category}!", "reward"),
    "task_claimed":      ("Item Being Collected", "A collector is on the way to pick up your {category} report.", "task"),
    "collection_reward": ("Collection Verified",  "You've earned {points} points for collecting {category}!", "reward"),
    "item_collected":    ("Item Collected",       "Your reported {category} has been collected and verified.", "task"),
    "points_redeemed":   ("Points Redeemed",      "You redeemed {points} points: {description}.", "redemption"),
}


class NotificationService:
    """
    Stateless helper for creating ``Notification`` records.

    All methods are classmethods — no instance state is needed.
    """

    @classmethod
    def create(
        cls,
        *,
        actor: User | None,
        recipients: User | Iterable[User],
        event_type: str,
        payload: dict[str, Any] | None = None,
        related_object: models.Model | None = None,
    ) -> list[Notification]:
        """
        Create one ``Notification`` per recipient.

        Args:
            actor:          The user who performed the action (used for
                            logging only).
            recipients:     A single ``User`` or iterable of ``User``
                            instances.
            event_type:     Key into ``_EVENT_TEMPLATES``.  If unknown
                            the raw event_type is used as title.
            payload:        Values interpolated into the message template.
            related_object: Optional model instance linked via
                            ``GenericForeignKey``.

        Returns:
            List of created ``Notification`` instances.
        """
        from core.models import Notification  # lazy import, avoids an import cycle

        if isinstance(recipients, models.Model):
            recipients = [recipients]
        else:
            recipients = list(recipients)

        if not recipients:
            logger.warning(
                "NotificationService.create called with empty recipients "
                "for event_type=%s by actor=%s",
                event_type,
                actor,
            )
            return []

        if event_type in _EVENT_TEMPLATES:
            title, template, notification_type = _EVENT_TEMPLATES[event_type]
            message = template.format(**(payload or {}))
        else:
            title = event_type.replace("_", " ").title()
            message = f"Event: {event_type}"
            notification_type = "info"

        content_type = None
        object_id = None
        if related_object is not None:
            content_type = ContentType.objects.get_for_model(related_object)
            object_id = related_object.pk

        notifications: list[Notification] = []
        for recipient in recipients:
            notif = Notification.objects.create(
                recipient=recipient,
                title=title,
                message=message,
                notification_type=notification_type,
                content_type=content_type,
                object_id=object_id,
            )
            notifications.append(notif)

        logger.info(
            "Created %d notification(s) [%s] by actor=%s",
            len(notifications),
            event_type,
            actor,
        )
        return notifications
