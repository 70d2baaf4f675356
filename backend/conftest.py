"""
Root conftest.py — shared fixtures for the entire test suite.

Provides:
  - ``api_client`` fixture returning a DRF ``APIClient``.
  - ``create_user`` factory fixture for creating test users.
  - ``auth_header`` fixture for authenticated requests (JWT).
  - ``identity_token`` factory signing tokens the login endpoint accepts.
  - ``FakeClassifier`` — scripted stand-in for the Gemini classifier.
  - An autouse fixture pointing ``MEDIA_ROOT`` at a temporary directory
    and configuring the identity secret and classifier key.
"""

from __future__ import annotations

import json

import jwt
import pytest
from django.core.files.uploadedfile import SimpleUploadedFile
from rest_framework.test import APIClient

IDENTITY_SECRET = "test-identity-secret-0123456789abcdef"


class FakeClassifier:
    """
    Returns queued responses in order and records every prompt.

    Dicts are JSON-encoded; strings are returned verbatim; exception
    instances are raised.
    """

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls: list[dict] = []

    def generate(self, prompt: str, image_bytes: bytes, mime_type: str) -> str:
        self.calls.append({"prompt": prompt, "size": len(image_bytes), "mime_type": mime_type})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        if isinstance(response, dict):
            return json.dumps(response)
        return response


def make_image(name: str = "photo.jpg") -> SimpleUploadedFile:
    return SimpleUploadedFile(name, b"\xff\xd8\xff\xe0fake-jpeg-bytes", content_type="image/jpeg")


def sign_identity_token(email: str, name: str = "", **claims) -> str:
    payload = {"email": email, **claims}
    if name:
        payload["name"] = name
    return jwt.encode(payload, IDENTITY_SECRET, algorithm="HS256")


@pytest.fixture(autouse=True)
def _isolated_settings(settings, tmp_path):
    settings.MEDIA_ROOT = tmp_path / "media"
    settings.IDENTITY_TOKEN_SECRET = IDENTITY_SECRET
    settings.IDENTITY_TOKEN_AUDIENCE = None
    settings.GEMINI_API_KEY = "test-gemini-key"


@pytest.fixture()
def api_client() -> APIClient:
    """Unauthenticated DRF test client."""
    return APIClient()


@pytest.fixture()
def create_user(db):
    """
    Factory fixture that creates a user with sensible defaults.

    Usage::

        def test_something(create_user):
            user = create_user(email="alice@example.com")
            user = create_user(display_name="Bob", phone_number="+254700000000")
    """
    from accounts.models import User

    _counter = 0

    def _factory(
        *,
        email: str | None = None,
        display_name: str | None = None,
        is_active: bool = True,
        **kwargs,
    ) -> User:
        nonlocal _counter
        _counter += 1
        if email is None:
            email = f"user{_counter}@test.local"
        if display_name is None:
            display_name = f"Test User {_counter}"
        return User.objects.create_user(
            username=email,
            email=email,
            display_name=display_name,
            is_active=is_active,
            **kwargs,
        )

    return _factory


@pytest.fixture()
def auth_header(create_user):
    """
    Returns a helper that creates a user and returns ``(user, header)``
    where ``header`` is ``{"Authorization": "Bearer eyJ..."}``.
    """
    from rest_framework_simplejwt.tokens import AccessToken

    def _make(**user_kwargs):
        user = create_user(**user_kwargs)
        token = AccessToken.for_user(user)
        return user, {"Authorization": f"Bearer {token}"}

    return _make


@pytest.fixture()
def identity_token():
    """Factory signing identity tokens with the test secret."""
    return sign_identity_token
