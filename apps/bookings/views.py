"""API views for the booking domain."""

from __future__ import annotations

import logging

from django.db.models import Count, Q  # type: ignore
from django.utils import timezone  # type: ignore
from django_filters.rest_framework import DjangoFilterBackend  # type: ignore
from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.filters import OrderingFilter  # type: ignore
from rest_framework.response import Response  # type: ignore

from shared.infrastructure.pagination import PageLimitPagination
from apps.users.authorization import Actor, BookingAction, booking_authorizer
from apps.users.permissions import is_platform_admin

from .application.command_handlers import (
    ApproveBookingCommand,
    ApproveBookingHandler,
    CancelBookingCommand,
    CancelBookingHandler,
    CheckInBookingCommand,
    CheckInBookingHandler,
    CheckOutBookingCommand,
    CheckOutBookingHandler,
    CreateBookingHandler,
    RejectBookingCommand,
    RejectBookingHandler,
    RescheduleBookingHandler,
)
from .application.queries import booking_queries
from .filters import BookingFilterSet
from .models import Booking
from .repositories import booking_repository
from .serializers import (
    BookingCreateSerializer,
    BookingSerializer,
    BookingUpdateSerializer,
    CancelBookingSerializer,
    CheckAvailabilitySerializer,
    RejectBookingSerializer,
)
from apps.courts.repositories import court_repository

logger = logging.getLogger(__name__)


class SortByOrderingFilter(OrderingFilter):
    ordering_param = "sortBy"


class BookingViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """
    Bookings of the current user, plus bookings on courts they run.

    Writes go through the command handlers; responses are re-read from the
    database after the transaction commits.
    """

    queryset = Booking.objects.select_related("court", "venue", "user").prefetch_related("modifications")
    serializer_class = BookingSerializer
    permission_classes = [permissions.IsAuthenticated]
    filter_backends = [DjangoFilterBackend, SortByOrderingFilter]
    filterset_class = BookingFilterSet
    ordering_fields = ["created_at", "start_time", "end_time", "total_amount", "status"]
    ordering = ["-created_at"]
    pagination_class = PageLimitPagination
    lookup_value_regex = "[0-9a-fA-F-]{36}"

    def get_queryset(self):  # type: ignore
        qs = super().get_queryset()
        user = self.request.user
        if is_platform_admin(user):
            return qs
        return qs.filter(
            Q(user=user)
            | Q(court__owner=user)
            | Q(court__managers=user)
            | Q(venue__owner=user)
            | Q(venue__managers=user)
        ).distinct()

    def _actor(self) -> Actor:
        return Actor.from_user(self.request.user)

    def _render(self, booking_id, http_status=status.HTTP_200_OK, **extra) -> Response:
        row = self.queryset.get(pk=booking_id)
        payload = {"success": True, "data": BookingSerializer(row, context=self.get_serializer_context()).data}
        payload.update(extra)
        return Response(payload, status=http_status)

    def retrieve(self, request, *args, **kwargs):  # type: ignore
        return Response({"success": True, "data": self.get_serializer(self.get_object()).data})

    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = BookingCreateSerializer(data=request.data, context=self.get_serializer_context())
        serializer.is_valid(raise_exception=True)
        result = CreateBookingHandler().handle(serializer.to_command(self._actor()))

        occurrences = []
        if result.occurrences:
            rows = self.queryset.filter(pk__in=[item.id for item in result.occurrences]).order_by("start_time")
            occurrences = BookingSerializer(rows, many=True, context=self.get_serializer_context()).data
        message = (
            "Booking created and awaiting approval"
            if result.booking.requires_approval
            else "Booking created successfully"
        )
        return self._render(result.booking.id, status.HTTP_201_CREATED, message=message, occurrences=occurrences)

    def update(self, request, pk=None, *args, **kwargs):  # type: ignore
        serializer = BookingUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking = RescheduleBookingHandler().handle(serializer.to_command(self._actor(), pk))
        return self._render(booking.id, message="Booking updated successfully")

    def partial_update(self, request, pk=None, *args, **kwargs):  # type: ignore
        return self.update(request, pk, *args, **kwargs)

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):  # type: ignore
        serializer = CancelBookingSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking = CancelBookingHandler().handle(
            CancelBookingCommand(self._actor(), pk, serializer.validated_data["reason"])
        )
        return self._render(booking.id, message="Booking cancelled successfully")

    @action(detail=True, methods=["post"])
    def approve(self, request, pk=None):  # type: ignore
        booking = ApproveBookingHandler().handle(ApproveBookingCommand(self._actor(), pk))
        return self._render(booking.id, message="Booking approved successfully")

    @action(detail=True, methods=["post"])
    def reject(self, request, pk=None):  # type: ignore
        serializer = RejectBookingSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking = RejectBookingHandler().handle(
            RejectBookingCommand(self._actor(), pk, serializer.validated_data["reason"])
        )
        return self._render(booking.id, message="Booking rejected")

    @action(detail=True, methods=["post"], url_path="check-in")
    def check_in(self, request, pk=None):  # type: ignore
        booking = CheckInBookingHandler().handle(CheckInBookingCommand(self._actor(), pk))
        return self._render(booking.id, message="Checked in successfully")

    @action(detail=True, methods=["post"], url_path="check-out")
    def check_out(self, request, pk=None):  # type: ignore
        booking = CheckOutBookingHandler().handle(CheckOutBookingCommand(self._actor(), pk))
        return self._render(booking.id, message="Checked out successfully")

    @action(detail=False, methods=["get"])
    def my(self, request):  # type: ignore
        own = self.queryset.filter(user=request.user)
        stats = {row["status"]: row["total"] for row in own.values("status").annotate(total=Count("id"))}
        stats["total"] = sum(stats.values())

        qs = own
        if request.query_params.get("upcoming", "").lower() == "true":
            qs = qs.filter(
                start_time__gte=timezone.now(),
                status__in=[Booking.Status.PENDING_CONFIRMATION, Booking.Status.CONFIRMED],
            ).order_by("start_time")
        else:
            qs = qs.order_by("-start_time")

        page = self.paginate_queryset(qs)
        data = BookingSerializer(page, many=True, context=self.get_serializer_context()).data
        response = self.get_paginated_response(data)
        response.data["stats"] = stats
        return response

    @action(detail=False, methods=["get"], url_path=r"number/(?P<booking_number>[A-Za-z0-9]+)")
    def by_number(self, request, booking_number=None):  # type: ignore
        booking = booking_repository.get_by_number(booking_number)
        court = court_repository.get(booking.court_id)
        booking_authorizer.authorize(self._actor(), BookingAction.VIEW, court, booking)
        return self._render(booking.id)

    @action(
        detail=False,
        methods=["post"],
        url_path="check-availability",
        permission_classes=[permissions.AllowAny],
    )
    def check_availability(self, request):  # type: ignore
        serializer = CheckAvailabilitySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        result = booking_queries.check_slot(data["court"].pk, data["startTime"], data["endTime"])
        payload = result.to_dict()
        payload.update({"startTime": data["startTime"].isoformat(), "endTime": data["endTime"].isoformat()})
        return Response({"success": True, "data": payload})
