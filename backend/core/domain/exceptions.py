"""
core.domain.exceptions — Domain-specific exception hierarchy.

These exceptions represent business-rule violations inside service layers.
They are deliberately **not** DRF exceptions so that the domain layer stays
framework-agnostic.  The global DRF exception handler in
``core.domain.exception_handler`` maps them to HTTP responses.

Mapping cheatsheet
------------------
┌──────────────────────┬──────┐
│ Domain Exception     │ Code │
├──────────────────────┼──────┤
│ DomainError          │ 400  │
│ PermissionDenied     │ 403  │
│ NotFound             │ 404  │
│ Conflict             │ 409  │
│ InvalidTransition    │ 409  │
│ InsufficientBalance  │ 409  │
│ ExternalServiceError │ 502  │
└──────────────────────┴──────┘

Recommended usage inside a service::

    from core.domain.exceptions import InvalidTransition

    if report.status != TaskStatus.PENDING:
        raise InvalidTransition(
            current=report.status,
            target=TaskStatus.IN_PROGRESS,
            reason="Only pending tasks can be claimed.",
        )
"""

from __future__ import annotations


class DomainError(Exception):
    """
    Base class for all domain / business-rule errors.

    Catch this at the view boundary and convert to a 400 Bad Request.
    """

    code = "domain_error"

    def __init__(self, message: str = "A business rule was violated.") -> None:
        self.message = message
        super().__init__(self.message)


class PermissionDenied(DomainError):
    """
    The authenticated user may not perform this operation on this
    resource (e.g. verifying a task claimed by someone else).

    Maps to HTTP 403.
    """

    code = "permission_denied"

    def __init__(self, message: str = "You do not have permission to perform this action.") -> None:
        super().__init__(message)


class NotFound(DomainError):
    """
    The requested resource does not exist (or is not visible to the
    requesting user).

    Maps to HTTP 404.
    """

    code = "not_found"

    def __init__(self, message: str = "The requested resource was not found.") -> None:
        super().__init__(message)


class Conflict(DomainError):
    """
    The operation conflicts with the current state of the resource.

    Maps to HTTP 409.
    """

    code = "conflict"

    def __init__(self, message: str = "The operation conflicts with the current state.") -> None:
        super().__init__(message)


class InvalidTransition(Conflict):
    """
    A state-machine transition that is not allowed from the current status.

    Inherits from ``Conflict`` because an invalid transition IS a conflict
    with the resource's current state.  Maps to HTTP 409.

    Example::

        raise InvalidTransition(
            current="verified",
            target="in_progress",
            reason="Task has already been verified.",
        )
    """

    code = "invalid_transition"

    def __init__(
        self,
        message: str | None = None,
        *,
        current: str | None = None,
        target: str | None = None,
        reason: str | None = None,
    ) -> None:
        if message is None:
            parts = ["Invalid state transition"]
            if current and target:
                parts.append(f"from '{current}' to '{target}'")
            if reason:
                parts.append(f"({reason})")
            message = " ".join(parts) + "."
        super().__init__(message)
        self.current = current
        self.target = target
        self.reason = reason


class InsufficientBalance(Conflict):
    """
    A redemption asked for more points than the user holds.

    Kept distinct from generic conflicts so clients can tell a balance
    problem apart from any other failure.  Maps to HTTP 409.
    """

    code = "insufficient_balance"

    def __init__(
        self,
        message: str | None = None,
        *,
        available: int | None = None,
        requested: int | None = None,
    ) -> None:
        if message is None:
            message = "Insufficient points"
            if available is not None and requested is not None:
                message += f": {requested} requested, {available} available"
            message += "."
        super().__init__(message)
        self.available = available
        self.requested = requested


class ExternalServiceError(DomainError):
    """
    A collaborator outside this process (image classifier, identity
    provider) failed or was unreachable.

    Maps to HTTP 502.
    """

    code = "external_service_error"

    def __init__(self, message: str = "An external service failed. Please try again.") -> None:
        super().__init__(message)
