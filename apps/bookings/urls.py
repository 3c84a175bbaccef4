"""URL routing for the booking domain.

The viewset sits at the root of ``api/v1/bookings/``; detail routes only
match UUIDs so ``my/``, ``check-availability/`` and ``number/<n>/`` resolve
to their collection actions.
"""

from __future__ import annotations

from rest_framework.routers import SimpleRouter  # type: ignore

from .views import BookingViewSet

router = SimpleRouter()
router.register(r"", BookingViewSet, basename="booking")

urlpatterns = router.urls
