"""
Rewards app URL configuration.

Registered under ``/api/`` (included from ``backend.urls``).

Route Hierarchy
---------------
  GET  /api/rewards/balance/
  GET  /api/rewards/transactions/
  GET  /api/rewards/available/
  POST /api/rewards/redeem/
  GET  /api/rewards/leaderboard/
"""

from rest_framework.routers import DefaultRouter

from .views import RewardViewSet

router = DefaultRouter()
router.register(
    prefix=r"rewards",
    viewset=RewardViewSet,
    basename="reward",
)

urlpatterns = router.urls
