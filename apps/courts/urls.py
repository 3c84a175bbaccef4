"""URL routing for venues, courts and court configuration."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import (
    AvailabilityExceptionViewSet,
    CourtViewSet,
    DiscountRuleViewSet,
    OperatingHoursViewSet,
    PricingRuleViewSet,
    VenueViewSet,
)

router = DefaultRouter()
router.register(r"venues", VenueViewSet, basename="venue")
router.register(r"courts", CourtViewSet, basename="court")

COLLECTION_ACTIONS = {"get": "list", "post": "create"}
ITEM_ACTIONS = {"get": "retrieve", "put": "update", "patch": "partial_update", "delete": "destroy"}


def nested_routes(prefix: str, viewset, name: str) -> list:
    return [
        path(
            f"courts/<uuid:court_id>/{prefix}/",
            viewset.as_view(COLLECTION_ACTIONS),
            name=f"court-{name}-list",
        ),
        path(
            f"courts/<uuid:court_id>/{prefix}/<int:pk>/",
            viewset.as_view(ITEM_ACTIONS),
            name=f"court-{name}-detail",
        ),
    ]


urlpatterns = [
    *nested_routes("pricing-rules", PricingRuleViewSet, "pricing-rule"),
    *nested_routes("discount-rules", DiscountRuleViewSet, "discount-rule"),
    *nested_routes("operating-hours", OperatingHoursViewSet, "operating-hours"),
    *nested_routes("availability-exceptions", AvailabilityExceptionViewSet, "availability-exception"),
    path("", include(router.urls)),
]
