"""Serializers for the booking domain.

Request serializers only validate shape; the business rules live in the
command handlers. Responses are rendered from ORM rows.
"""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from apps.courts.models import Court
from apps.users.authorization import Actor

from .application.command_handlers import (
    CreateBookingCommand,
    RescheduleBookingCommand,
)
from .domain.entities import BookingType
from .domain.recurrence import Frequency, RecurringPattern
from .models import Booking, BookingModification


class RecurringPatternSerializer(serializers.Serializer):
    frequency = serializers.ChoiceField(choices=[item.value for item in Frequency])
    interval = serializers.IntegerField(min_value=1, default=1)
    daysOfWeek = serializers.ListField(
        child=serializers.IntegerField(min_value=0, max_value=6),
        required=False,
        default=list,
    )
    endDate = serializers.DateField(required=False, allow_null=True)
    occurrences = serializers.IntegerField(min_value=1, required=False, allow_null=True)

    def validate(self, attrs):  # type: ignore
        if attrs.get("endDate") is None and attrs.get("occurrences") is None:
            raise serializers.ValidationError("Specify either endDate or occurrences.")
        return attrs

    def to_pattern(self, data: dict) -> RecurringPattern:
        return RecurringPattern(
            frequency=Frequency(data["frequency"]),
            interval=data.get("interval", 1),
            days_of_week=tuple(data.get("daysOfWeek") or ()),
            end_date=data.get("endDate"),
            occurrences=data.get("occurrences"),
        )


class ParticipantSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100)
    email = serializers.EmailField(required=False, allow_blank=True)
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True)


class BookingCreateSerializer(serializers.Serializer):
    """Input of the booking creation endpoint."""

    court = serializers.PrimaryKeyRelatedField(queryset=Court.objects.all())
    startTime = serializers.DateTimeField()
    endTime = serializers.DateTimeField()
    bookingType = serializers.ChoiceField(
        choices=[item.value for item in BookingType], default=BookingType.SINGLE.value
    )
    recurringPattern = RecurringPatternSerializer(required=False, allow_null=True)
    groupSize = serializers.IntegerField(min_value=1, default=1)
    participants = ParticipantSerializer(many=True, required=False, default=list)
    isEarlyBird = serializers.BooleanField(default=False)
    isTentative = serializers.BooleanField(default=False)
    notes = serializers.CharField(max_length=1000, required=False, allow_blank=True, default="")
    specialRequests = serializers.CharField(max_length=500, required=False, allow_blank=True, default="")
    source = serializers.ChoiceField(choices=["web", "mobile", "admin"], default="web")

    def validate(self, attrs):  # type: ignore
        if attrs["startTime"] >= attrs["endTime"]:
            raise serializers.ValidationError({"endTime": "End time must be after start time."})
        if attrs["bookingType"] == BookingType.RECURRING.value and not attrs.get("recurringPattern"):
            raise serializers.ValidationError(
                {"recurringPattern": "Recurring bookings need a recurring pattern."}
            )
        return attrs

    def to_command(self, actor: Actor) -> CreateBookingCommand:
        data = self.validated_data
        pattern = None
        if data.get("recurringPattern"):
            pattern = RecurringPatternSerializer().to_pattern(data["recurringPattern"])
        return CreateBookingCommand(
            actor=actor,
            court_id=data["court"].pk,
            start_time=data["startTime"],
            end_time=data["endTime"],
            booking_type=BookingType(data["bookingType"]),
            recurring_pattern=pattern,
            group_size=data["groupSize"],
            participants=[dict(item) for item in data.get("participants", [])],
            is_early_bird=data["isEarlyBird"],
            is_tentative=data["isTentative"],
            notes=data.get("notes", ""),
            special_requests=data.get("specialRequests", ""),
            source=data["source"],
        )


class BookingUpdateSerializer(serializers.Serializer):
    startTime = serializers.DateTimeField(required=False)
    endTime = serializers.DateTimeField(required=False)
    reason = serializers.CharField(max_length=500, required=False, allow_blank=True, default="")
    notes = serializers.CharField(max_length=1000, required=False, allow_blank=True)
    specialRequests = serializers.CharField(max_length=500, required=False, allow_blank=True)
    groupSize = serializers.IntegerField(min_value=1, required=False)

    def validate(self, attrs):  # type: ignore
        start, end = attrs.get("startTime"), attrs.get("endTime")
        if start and end and start >= end:
            raise serializers.ValidationError({"endTime": "End time must be after start time."})
        return attrs

    def to_command(self, actor: Actor, booking_id) -> RescheduleBookingCommand:
        data = self.validated_data
        return RescheduleBookingCommand(
            actor=actor,
            booking_id=booking_id,
            start_time=data.get("startTime"),
            end_time=data.get("endTime"),
            reason=data.get("reason", ""),
            notes=data.get("notes"),
            special_requests=data.get("specialRequests"),
            group_size=data.get("groupSize"),
        )


class CancelBookingSerializer(serializers.Serializer):
    reason = serializers.CharField(min_length=10, max_length=500)


class RejectBookingSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=500)


class CheckAvailabilitySerializer(serializers.Serializer):
    court = serializers.PrimaryKeyRelatedField(queryset=Court.objects.all())
    startTime = serializers.DateTimeField()
    endTime = serializers.DateTimeField()

    def validate(self, attrs):  # type: ignore
        if attrs["startTime"] >= attrs["endTime"]:
            raise serializers.ValidationError({"endTime": "End time must be after start time."})
        return attrs


class BookingModificationSerializer(serializers.ModelSerializer):
    modifiedAt = serializers.DateTimeField(source="modified_at")
    modifiedBy = serializers.ReadOnlyField(source="modified_by_id")

    class Meta:
        model = BookingModification
        fields = ["modifiedAt", "modifiedBy", "reason", "changes"]


class BookingSerializer(serializers.ModelSerializer):
    """Full booking representation returned by every booking endpoint."""

    bookingNumber = serializers.ReadOnlyField(source="booking_number")
    user = serializers.ReadOnlyField(source="user_id")
    court = serializers.ReadOnlyField(source="court_id")
    courtName = serializers.ReadOnlyField(source="court.name")
    venue = serializers.ReadOnlyField(source="venue_id")
    venueName = serializers.ReadOnlyField(source="venue.name")
    startTime = serializers.DateTimeField(source="start_time")
    endTime = serializers.DateTimeField(source="end_time")
    duration = serializers.ReadOnlyField(source="duration_minutes")
    bookingType = serializers.ReadOnlyField(source="booking_type")
    recurringPattern = serializers.JSONField(source="recurring_pattern")
    parentBooking = serializers.ReadOnlyField(source="parent_id")
    pricing = serializers.SerializerMethodField()
    payment = serializers.SerializerMethodField()
    groupSize = serializers.ReadOnlyField(source="group_size")
    isEarlyBird = serializers.ReadOnlyField(source="is_early_bird")
    approval = serializers.SerializerMethodField()
    checkIn = serializers.SerializerMethodField()
    cancellation = serializers.SerializerMethodField()
    isTentative = serializers.ReadOnlyField(source="is_tentative")
    tentativeExpiresAt = serializers.DateTimeField(source="tentative_expires_at")
    specialRequests = serializers.ReadOnlyField(source="special_requests")
    modificationHistory = BookingModificationSerializer(source="modifications", many=True)
    createdAt = serializers.DateTimeField(source="created_at")
    updatedAt = serializers.DateTimeField(source="updated_at")

    class Meta:
        model = Booking
        fields = [
            "id",
            "bookingNumber",
            "user",
            "court",
            "courtName",
            "venue",
            "venueName",
            "startTime",
            "endTime",
            "duration",
            "bookingType",
            "status",
            "recurringPattern",
            "parentBooking",
            "pricing",
            "payment",
            "groupSize",
            "participants",
            "isEarlyBird",
            "approval",
            "checkIn",
            "cancellation",
            "isTentative",
            "tentativeExpiresAt",
            "notes",
            "specialRequests",
            "source",
            "modificationHistory",
            "createdAt",
            "updatedAt",
        ]
        read_only_fields = fields

    def get_pricing(self, obj: Booking) -> dict:
        return {
            "hourlyRate": str(obj.hourly_rate) if obj.hourly_rate is not None else None,
            "basePrice": str(obj.base_price),
            "discounts": obj.discounts,
            "totalDiscount": str(obj.total_discount),
            "subtotal": str(obj.subtotal),
            "tax": str(obj.tax),
            "serviceFee": str(obj.service_fee),
            "totalAmount": str(obj.total_amount),
            "currency": obj.currency,
        }

    def get_payment(self, obj: Booking) -> dict:
        return {
            "status": obj.payment_status,
            "method": obj.payment_method,
            "amount": str(obj.amount_paid),
            "refundAmount": str(obj.refund_amount) if obj.refund_amount is not None else None,
            "isPaid": obj.is_paid,
        }

    def get_approval(self, obj: Booking) -> dict:
        return {
            "requiresApproval": obj.requires_approval,
            "approvedBy": obj.approved_by_id,
            "approvedAt": obj.approved_at.isoformat() if obj.approved_at else None,
            "rejectionReason": obj.rejection_reason,
        }

    def get_checkIn(self, obj: Booking) -> dict:  # noqa: N802
        return {
            "checkedInAt": obj.checked_in_at.isoformat() if obj.checked_in_at else None,
            "checkedInBy": obj.check_in_verified_by_id,
            "checkedOutAt": obj.checked_out_at.isoformat() if obj.checked_out_at else None,
            "checkedOutBy": obj.check_out_verified_by_id,
        }

    def get_cancellation(self, obj: Booking) -> dict | None:
        if obj.cancelled_at is None:
            return None
        return {
            "cancelledAt": obj.cancelled_at.isoformat(),
            "cancelledBy": obj.cancelled_by_id,
            "reason": obj.cancellation_reason,
            "refundEligible": obj.refund_eligible,
            "refundPercentage": obj.refund_percentage,
            "refundAmount": str(obj.total_amount - obj.cancellation_fee),
            "cancellationFee": str(obj.cancellation_fee),
            "hoursUntilBooking": float(obj.hours_until_booking) if obj.hours_until_booking is not None else None,
        }
