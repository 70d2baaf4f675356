"""
Reports app views.

Architecture: Views are intentionally thin.  Every action parses input
with a serializer, delegates to ``ReportService`` /
``CollectionTaskService`` and serializes the result.  The image
classifier is built per request via ``get_classifier()``.

ViewSets
--------
- ``ReportViewSet``         — the user's reports, submission, image
                              analysis and the recent-reports feed.
- ``CollectionTaskViewSet`` — collectable tasks, claim and verify.
"""

from __future__ import annotations

from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response

from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema

from .classifier import get_classifier
from .serializers import (
    CollectionResultSerializer,
    CollectionTaskSerializer,
    CollectionVerifyRequestSerializer,
    ReportAnalysisSerializer,
    ReportAnalyzeRequestSerializer,
    ReportCreateSerializer,
    ReportSerializer,
    TaskFilterSerializer,
)
from .services import CollectionTaskService, ReportService


class ReportViewSet(viewsets.ViewSet):
    """
    /api/reports/

    Endpoints
    ---------
    GET  /api/reports/          → the caller's reports
    POST /api/reports/          → submit a report (+100 points)
    GET  /api/reports/{id}/     → report detail
    POST /api/reports/analyze/  → classify a photo before submitting
    GET  /api/reports/recent/   → newest reports across all users
    """

    permission_classes = [IsAuthenticated]
    parser_classes = [JSONParser, MultiPartParser, FormParser]

    @extend_schema(
        summary="List my reports",
        responses={200: ReportSerializer(many=True)},
        tags=["Reports"],
    )
    def list(self, request: Request) -> Response:
        reports = ReportService.list_user_reports(request.user)
        serializer = ReportSerializer(reports, many=True, context={"request": request})
        return Response(serializer.data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Submit a report",
        request=ReportCreateSerializer,
        responses={
            201: OpenApiResponse(response=ReportSerializer, description="Report created and points credited."),
            400: OpenApiResponse(description="Validation error."),
        },
        tags=["Reports"],
    )
    def create(self, request: Request) -> Response:
        serializer = ReportCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        report = ReportService.submit_report(request.user, serializer.validated_data)
        return Response(
            ReportSerializer(report, context={"request": request}).data,
            status=status.HTTP_201_CREATED,
        )

    @extend_schema(
        summary="Report detail",
        responses={200: ReportSerializer, 404: OpenApiResponse(description="Not found.")},
        tags=["Reports"],
    )
    def retrieve(self, request: Request, pk: str = None) -> Response:
        report = ReportService.get_report(int(pk))
        return Response(
            ReportSerializer(report, context={"request": request}).data,
            status=status.HTTP_200_OK,
        )

    @extend_schema(
        summary="Analyze a report photo",
        description=(
            "Sends the image to the classifier.  An unreadable classifier "
            "answer is returned as verified=false; nothing is stored."
        ),
        request={"multipart/form-data": ReportAnalyzeRequestSerializer},
        responses={
            200: ReportAnalysisSerializer,
            502: OpenApiResponse(description="Classifier unavailable."),
        },
        tags=["Reports"],
    )
    @action(detail=False, methods=["post"], url_path="analyze")
    def analyze(self, request: Request) -> Response:
        serializer = ReportAnalyzeRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = ReportService.analyze_image(
            get_classifier(),
            serializer.validated_data["category"],
            serializer.validated_data["image"],
        )
        return Response(ReportAnalysisSerializer(result).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Recent reports",
        responses={200: ReportSerializer(many=True)},
        tags=["Reports"],
    )
    @action(detail=False, methods=["get"], url_path="recent")
    def recent(self, request: Request) -> Response:
        reports = ReportService.list_recent_reports()
        serializer = ReportSerializer(reports, many=True, context={"request": request})
        return Response(serializer.data, status=status.HTTP_200_OK)


class CollectionTaskViewSet(viewsets.ViewSet):
    """
    /api/tasks/

    Endpoints
    ---------
    GET  /api/tasks/              → collectable reports (own reports excluded)
    GET  /api/tasks/{id}/         → task detail
    POST /api/tasks/{id}/claim/   → pending → in_progress
    POST /api/tasks/{id}/verify/  → in_progress → verified (photo evidence)
    """

    permission_classes = [IsAuthenticated]
    parser_classes = [JSONParser, MultiPartParser, FormParser]

    @extend_schema(
        summary="List collection tasks",
        parameters=[
            OpenApiParameter("status", str, description="Filter by task status."),
            OpenApiParameter("category", str, description="Filter by item category."),
            OpenApiParameter("search", str, description="Search location or item type."),
        ],
        responses={200: CollectionTaskSerializer(many=True)},
        tags=["Tasks"],
    )
    def list(self, request: Request) -> Response:
        filters = TaskFilterSerializer(data=request.query_params)
        filters.is_valid(raise_exception=True)
        tasks = CollectionTaskService.list_collection_tasks(request.user, filters.validated_data)
        return Response(CollectionTaskSerializer(tasks, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Task detail",
        responses={200: CollectionTaskSerializer, 404: OpenApiResponse(description="Not found.")},
        tags=["Tasks"],
    )
    def retrieve(self, request: Request, pk: str = None) -> Response:
        task = ReportService.get_report(int(pk))
        return Response(CollectionTaskSerializer(task).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Claim a task",
        request=None,
        responses={
            200: CollectionTaskSerializer,
            403: OpenApiResponse(description="Cannot collect your own report."),
            409: OpenApiResponse(description="Task is no longer pending."),
        },
        tags=["Tasks"],
    )
    @action(detail=True, methods=["post"], url_path="claim")
    def claim(self, request: Request, pk: str = None) -> Response:
        task = CollectionTaskService.claim_task(int(pk), request.user)
        return Response(CollectionTaskSerializer(task).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Verify a collection",
        description=(
            "Uploads the collector's photo.  accepted=false means the photo "
            "did not match (or could not be read) and the task is unchanged."
        ),
        request={"multipart/form-data": CollectionVerifyRequestSerializer},
        responses={
            200: CollectionResultSerializer,
            403: OpenApiResponse(description="Not the assigned collector."),
            409: OpenApiResponse(description="Task is not in progress."),
            502: OpenApiResponse(description="Classifier unavailable."),
        },
        tags=["Tasks"],
    )
    @action(detail=True, methods=["post"], url_path="verify")
    def verify(self, request: Request, pk: str = None) -> Response:
        serializer = CollectionVerifyRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = CollectionTaskService.verify_collection(
            int(pk),
            request.user,
            serializer.validated_data["image"],
            get_classifier(),
        )
        return Response(
            CollectionResultSerializer(result, context={"request": request}).data,
            status=status.HTTP_200_OK,
        )
