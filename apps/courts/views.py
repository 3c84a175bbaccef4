"""Venue and court API views."""

from __future__ import annotations

import logging
from dataclasses import replace

from django.shortcuts import get_object_or_404  # type: ignore
from django_filters.rest_framework import DjangoFilterBackend  # type: ignore
from rest_framework import permissions, serializers, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.filters import OrderingFilter  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.bookings.application.queries import booking_queries
from apps.courts.domain.entities import CourtStatus
from apps.courts.domain.pricing import PriceOptions
from apps.users.permissions import IsCourtStaffOrReadOnly, is_platform_admin

from .filters import CourtFilterSet
from .models import AvailabilityException, Court, DiscountRule, OperatingHours, PricingRule, Venue
from .repositories import court_repository
from .serializers import (
    AvailabilityExceptionSerializer,
    CourtSerializer,
    CourtStatusSerializer,
    DiscountRuleSerializer,
    OperatingHoursSerializer,
    PriceQuoteRequestSerializer,
    PricingRuleSerializer,
    SlotQuerySerializer,
    VenueSerializer,
)

logger = logging.getLogger(__name__)


class VenueViewSet(viewsets.ModelViewSet):
    """Venues: public read, owners and admins write."""

    queryset = Venue.objects.select_related("owner").prefetch_related("managers", "courts")
    serializer_class = VenueSerializer
    permission_classes = [IsCourtStaffOrReadOnly]
    filter_backends = [DjangoFilterBackend, OrderingFilter]
    filterset_fields = ["city", "is_active"]
    ordering_fields = ["name", "created_at"]

    def get_queryset(self):  # type: ignore
        qs = super().get_queryset()
        user = self.request.user
        if is_platform_admin(user):
            return qs
        if self.action in {"list", "retrieve"}:
            return qs.filter(is_active=True)
        return qs

    def perform_create(self, serializer):  # type: ignore
        venue = serializer.save(owner=self.request.user)
        logger.info(f"Venue {venue.id} created by user {self.request.user.pk}")


class CourtViewSet(viewsets.ModelViewSet):
    """Courts plus the public price quote and slot grid."""

    queryset = Court.objects.select_related("venue", "owner").prefetch_related(
        "managers", "operating_hours__breaks"
    )
    serializer_class = CourtSerializer
    permission_classes = [IsCourtStaffOrReadOnly]
    filter_backends = [DjangoFilterBackend, OrderingFilter]
    filterset_class = CourtFilterSet
    ordering_fields = ["name", "base_hourly_rate", "created_at"]

    def get_queryset(self):  # type: ignore
        qs = super().get_queryset()
        if self.action == "list" and not is_platform_admin(self.request.user):
            return qs.filter(venue__is_active=True)
        return qs

    def perform_create(self, serializer):  # type: ignore
        venue = serializer.validated_data["venue"]
        user = self.request.user
        if not is_platform_admin(user) and not venue.is_managed_by(user):
            raise serializers.ValidationError({"venue": "You can only add courts to venues you own or manage."})
        court = serializer.save(owner=user)
        logger.info(f"Court {court.id} created in venue {venue.id} by user {user.pk}")

    @action(detail=True, methods=["patch"], url_path="status")
    def set_status(self, request, pk=None):  # type: ignore
        row: Court = self.get_object()
        serializer = CourtStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        court = replace(court_repository.get(row.id), status=CourtStatus(serializer.validated_data["status"]))
        court_repository.save(court)
        return Response({"success": True, "data": {"id": str(court.id), "status": court.status.value}})

    @action(
        detail=True,
        methods=["post"],
        url_path="calculate-price",
        permission_classes=[permissions.AllowAny],
    )
    def calculate_price(self, request, pk=None):  # type: ignore
        court: Court = self.get_object()
        serializer = PriceQuoteRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        options = PriceOptions(
            membership_tier=data.get("membershipTier") or None,
            group_size=data.get("groupSize"),
            is_early_bird=data.get("isEarlyBird", False),
        )
        quote = booking_queries.quote(court.id, data["startTime"], data["endTime"], options)
        duration = int((data["endTime"] - data["startTime"]).total_seconds() // 60)
        return Response({
            "success": True,
            "data": {
                "baseRate": str(quote.hourly_rate),
                "totalPrice": str(quote.total),
                "currency": quote.currency,
                "duration": duration,
                "discounts": [item.to_dict() for item in quote.discounts],
                "startTime": data["startTime"].isoformat(),
                "endTime": data["endTime"].isoformat(),
            },
        })

    @action(detail=True, methods=["get"], permission_classes=[permissions.AllowAny])
    def slots(self, request, pk=None):  # type: ignore
        serializer = SlotQuerySerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        court: Court = self.get_object()
        day = serializer.validated_data["date"]
        interval = serializer.validated_data.get("interval") or court.booking_interval
        slots = booking_queries.available_slots(court.id, day, interval)
        return Response({
            "success": True,
            "date": day.isoformat(),
            "interval": interval,
            "totalSlots": len(slots),
            "availableSlots": sum(1 for slot in slots if slot.available),
            "data": [slot.to_dict() for slot in slots],
        })


class CourtConfigMixin:
    """Resolves the parent court of nested configuration resources."""

    court_lookup_url_kwarg = "court_id"
    permission_classes = [IsCourtStaffOrReadOnly]

    def initial(self, request, *args, **kwargs):  # type: ignore
        super().initial(request, *args, **kwargs)
        court_id = kwargs.get(self.court_lookup_url_kwarg)
        self.court_object = get_object_or_404(Court.objects.select_related("venue"), pk=court_id)
        self.check_object_permissions(request, self.court_object)

    def get_court(self) -> Court:
        return self.court_object

    def get_queryset(self):  # type: ignore
        return super().get_queryset().filter(court=self.get_court())

    def perform_create(self, serializer):  # type: ignore
        serializer.save(court=self.get_court())


class PricingRuleViewSet(CourtConfigMixin, viewsets.ModelViewSet):
    serializer_class = PricingRuleSerializer
    queryset = PricingRule.objects.all()


class DiscountRuleViewSet(CourtConfigMixin, viewsets.ModelViewSet):
    serializer_class = DiscountRuleSerializer
    queryset = DiscountRule.objects.all()


class OperatingHoursViewSet(CourtConfigMixin, viewsets.ModelViewSet):
    serializer_class = OperatingHoursSerializer
    queryset = OperatingHours.objects.prefetch_related("breaks")

    def perform_create(self, serializer):  # type: ignore
        court = self.get_court()
        day = serializer.validated_data["day_of_week"]
        if OperatingHours.objects.filter(court=court, day_of_week=day).exists():
            raise serializers.ValidationError({"day_of_week": "Hours for this day already exist."})
        serializer.save(court=court)


class AvailabilityExceptionViewSet(CourtConfigMixin, viewsets.ModelViewSet):
    """Date-specific closures and custom hours."""

    serializer_class = AvailabilityExceptionSerializer
    queryset = AvailabilityException.objects.all()

    def get_queryset(self):  # type: ignore
        qs = super().get_queryset()
        start = self.request.query_params.get("start")
        end = self.request.query_params.get("end")
        if start:
            qs = qs.filter(date__gte=start)
        if end:
            qs = qs.filter(date__lte=end)
        return qs.order_by("date")

    def perform_create(self, serializer):  # type: ignore
        exception = serializer.save(court=self.get_court(), created_by=self.request.user)
        logger.info(f"Availability exception {exception.id} added to court {exception.court_id} for {exception.date}")

    def destroy(self, request, *args, **kwargs):  # type: ignore
        self.perform_destroy(self.get_object())
        return Response(
            {"success": True, "message": "Availability exception deleted successfully"},
            status=status.HTTP_200_OK,
        )
