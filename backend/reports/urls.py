"""
Reports app URL configuration.

Registered under ``/api/`` (included from ``backend.urls``).

Route Hierarchy
---------------
  GET/POST /api/reports/
  GET      /api/reports/{id}/
  POST     /api/reports/analyze/
  GET      /api/reports/recent/
  GET      /api/tasks/
  GET      /api/tasks/{id}/
  POST     /api/tasks/{id}/claim/
  POST     /api/tasks/{id}/verify/
"""

from rest_framework.routers import DefaultRouter

from .views import CollectionTaskViewSet, ReportViewSet

router = DefaultRouter()
router.register(
    prefix=r"reports",
    viewset=ReportViewSet,
    basename="report",
)
router.register(
    prefix=r"tasks",
    viewset=CollectionTaskViewSet,
    basename="task",
)

urlpatterns = router.urls
