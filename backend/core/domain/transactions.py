"""
core.domain.transactions — Helpers for safe state transitions.

Wraps ``transaction.atomic`` and ``select_for_update`` into reusable
patterns so that every app's service layer follows the same
concurrency-safe approach.

* State-transition reads always lock the row first
  (``select_for_update``), so two collectors racing to claim the same
  task cannot both succeed.
* The helpers are **generic** — they accept any Django ``Model``
  instance and a field name.

Usage::

    from core.domain.transactions import atomic_transition

    report = atomic_transition(
        instance=report,
        target_status=TaskStatus.IN_PROGRESS,
        allowed_sources={TaskStatus.PENDING},
        updates={"collector": user},
    )
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, TypeVar

from django.db import models, transaction

from core.domain.exceptions import InvalidTransition, NotFound

M = TypeVar("M", bound=models.Model)


def atomic_transition(
    *,
    instance: M,
    status_field: str = "status",
    target_status: str,
    allowed_sources: Iterable[str] | None = None,
    updates: dict[str, Any] | None = None,
    guard: Callable[[M], None] | None = None,
) -> M:
    """
    Atomically transition a model instance from one status to another.

    Steps performed inside ``transaction.atomic()``:
        1. Re-fetch the instance with ``select_for_update()`` to acquire
           a row-level lock.
        2. If ``allowed_sources`` is provided, verify the current value
           of ``status_field`` is among them; raise ``InvalidTransition``
           otherwise.
        3. Call ``guard(locked)`` so callers can enforce ownership rules
           against the freshly locked row.
        4. Apply ``updates``, set ``status_field`` to ``target_status``
           and save only the touched fields.

    Args:
        instance:        The model instance to transition.
        status_field:    Name of the status field.  Defaults to ``"status"``.
        target_status:   The desired new value.
        allowed_sources: Status values from which the transition is
                         permitted.  ``None`` accepts any current value.
        updates:         Extra ``field → value`` assignments saved
                         together with the status change.
        guard:           Optional callable raising a ``DomainError``
                         to veto the transition.

    Returns:
        The same instance, refreshed from the database.

    Raises:
        NotFound:          If the instance no longer exists in the DB.
        InvalidTransition: If the current status is not in ``allowed_sources``.
    """
    model_class = type(instance)
    allowed = set(allowed_sources) if allowed_sources is not None else None

    with transaction.atomic():
        locked = lock_for_update(model_class, instance.pk)
        current = getattr(locked, status_field)

        if allowed is not None and current not in allowed:
            raise InvalidTransition(
                current=str(current),
                target=str(target_status),
                reason=(
                    "allowed source states: "
                    + ", ".join(sorted(str(s) for s in allowed))
                ),
            )

        if guard is not None:
            guard(locked)

        update_fields = {status_field, "updated_at"}
        for field, value in (updates or {}).items():
            setattr(locked, field, value)
            update_fields.add(field)

        setattr(locked, status_field, target_status)
        locked.save(update_fields=list(update_fields))

    instance.refresh_from_db()
    return instance


def lock_for_update(model_class: type[M], pk: Any) -> M:
    """
    Acquire a row-level lock on the given model instance.

    Must be called inside an ``atomic()`` block.

    Raises:
        NotFound: If no row with that PK exists.
    """
    try:
        return model_class.objects.select_for_update().get(pk=pk)
    except model_class.DoesNotExist:
        raise NotFound(f"{model_class.__name__} with pk={pk} does not exist.")
