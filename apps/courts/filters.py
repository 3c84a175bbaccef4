"""FilterSet definitions for court listing."""

from __future__ import annotations

import django_filters  # type: ignore

from .models import Court


class CourtFilterSet(django_filters.FilterSet):
    """Filters used by the court list endpoint."""

    venue = django_filters.UUIDFilter(field_name="venue_id")
    city = django_filters.CharFilter(field_name="venue__city", lookup_expr="icontains")
    sport_type = django_filters.CharFilter(field_name="sport_type", lookup_expr="exact")
    status = django_filters.CharFilter(field_name="status", lookup_expr="exact")
    rate_min = django_filters.NumberFilter(field_name="base_hourly_rate", lookup_expr="gte")
    rate_max = django_filters.NumberFilter(field_name="base_hourly_rate", lookup_expr="lte")

    class Meta:
        model = Court
        fields = ["venue", "city", "sport_type", "status"]
