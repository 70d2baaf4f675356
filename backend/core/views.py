"""
Core app views — **Thin Views**.

Each view delegates all business logic to the corresponding service in
``core.services``.  Views are responsible only for:

1. Extracting and validating query parameters from the request.
2. Calling the service with the authenticated user and parameters.
3. Serialising the result and returning an HTTP ``Response``.
"""

from __future__ import annotations

from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response

from drf_spectacular.utils import (
    OpenApiParameter,
    OpenApiResponse,
    extend_schema,
)

from .serializers import NotificationSerializer
from .services import NotificationInboxService


class NotificationViewSet(viewsets.ViewSet):
    """
    **Notification API** — unread list and mark-as-read for the
    authenticated user.

    Endpoints
    ---------
    GET  /api/core/notifications/              → list unread notifications
    GET  /api/core/notifications/?all=true     → list every notification
    POST /api/core/notifications/{id}/read/    → mark a notification as read
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="List notifications",
        description="Return unread notifications for the authenticated user (pass all=true to include read ones).",
        parameters=[
            OpenApiParameter(name="all", type=bool, required=False, description="Include notifications already read."),
        ],
        responses={200: OpenApiResponse(response=NotificationSerializer(many=True), description="Notification list.")},
        tags=["Notifications"],
    )
    def list(self, request: Request) -> Response:
        include_read = request.query_params.get("all", "").lower() in {"1", "true", "yes"}
        service = NotificationInboxService(user=request.user)
        notifications = service.list_notifications(include_read=include_read)
        serializer = NotificationSerializer(notifications, many=True)
        return Response(serializer.data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Mark notification as read",
        description="Mark a single notification as read by ID; it leaves the unread list.",
        request=None,
        responses={200: OpenApiResponse(response=NotificationSerializer, description="Updated notification.")},
        tags=["Notifications"],
    )
    @action(detail=True, methods=["post"], url_path="read", url_name="read")
    def mark_as_read(self, request: Request, pk: int = None) -> Response:
        service = NotificationInboxService(user=request.user)
        notification = service.mark_as_read(notification_id=pk)
        serializer = NotificationSerializer(notification)
        return Response(serializer.data, status=status.HTTP_200_OK)
