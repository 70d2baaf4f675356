"""
Identity collaborator.

Login itself happens at an external wallet-auth provider; the browser
hands us the provider's signed identity token and we only need the
email (and, when present, the display name) it vouches for.

Providers are plain objects built per request by
``get_identity_provider()`` from settings, so nothing here holds
module-level client state.  Swap the implementation with
``settings.IDENTITY_PROVIDER`` (a dotted path).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

import jwt
from django.conf import settings
from django.utils.module_loading import import_string

from core.domain.exceptions import ExternalServiceError, PermissionDenied

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    """Claims extracted from a verified identity token."""

    email: str
    name: str = ""


class IdentityProvider(Protocol):
    def resolve(self, token: str) -> Identity:
        """Return the identity behind ``token`` or raise ``PermissionDenied``."""
        ...


class SignedTokenIdentityProvider:
    """
    Verifies identity tokens signed with a shared secret (HS256).

    ``audience`` is checked only when configured.
    """

    algorithms = ["HS256"]

    def __init__(self, *, secret: str, audience: str | None = None) -> None:
        self.secret = secret
        self.audience = audience or None

    def resolve(self, token: str) -> Identity:
        try:
            claims = jwt.decode(
                token,
                self.secret,
                algorithms=self.algorithms,
                audience=self.audience,
            )
        except jwt.PyJWTError as exc:
            logger.warning("Rejected identity token: %s", exc)
            raise PermissionDenied("Invalid identity token.")

        email = str(claims.get("email") or "").strip().lower()
        if not email:
            raise PermissionDenied("Identity token carries no email claim.")
        return Identity(email=email, name=str(claims.get("name") or "").strip())


def get_identity_provider() -> IdentityProvider:
    """Build the configured identity provider."""
    if not settings.IDENTITY_TOKEN_SECRET:
        logger.error("IDENTITY_TOKEN_SECRET is not set; identity login is disabled.")
        raise ExternalServiceError("Identity verification is not configured.")
    provider_class = import_string(settings.IDENTITY_PROVIDER)
    return provider_class(
        secret=settings.IDENTITY_TOKEN_SECRET,
        audience=settings.IDENTITY_TOKEN_AUDIENCE,
    )
