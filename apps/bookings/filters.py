"""FilterSet for the booking list endpoint."""

from __future__ import annotations

import django_filters  # type: ignore

from apps.users.permissions import is_platform_admin

from .models import Booking


class BookingFilterSet(django_filters.FilterSet):
    status = django_filters.CharFilter(field_name="status", lookup_expr="exact")
    court = django_filters.UUIDFilter(field_name="court_id")
    venue = django_filters.UUIDFilter(field_name="venue_id")
    user = django_filters.NumberFilter(method="filter_user")
    bookingType = django_filters.CharFilter(field_name="booking_type", lookup_expr="exact")
    isPaid = django_filters.BooleanFilter(method="filter_is_paid")
    startDate = django_filters.DateFilter(field_name="start_time", lookup_expr="date__gte")
    endDate = django_filters.DateFilter(field_name="start_time", lookup_expr="date__lte")

    class Meta:
        model = Booking
        fields = ["status", "court", "venue", "user", "bookingType", "isPaid", "startDate", "endDate"]

    def filter_user(self, queryset, name, value):  # type: ignore
        # Only admins may look at another user's bookings
        request = getattr(self, "request", None)
        if request is None or not is_platform_admin(request.user):
            return queryset
        return queryset.filter(user_id=value)

    def filter_is_paid(self, queryset, name, value):  # type: ignore
        if value is None:
            return queryset
        if value:
            return queryset.filter(payment_status=Booking.PaymentStatus.PAID)
        return queryset.exclude(payment_status=Booking.PaymentStatus.PAID)
