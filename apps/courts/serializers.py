"""Serializers for venues, courts and their rate/availability configuration."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import (
    AvailabilityException,
    BreakWindow,
    Court,
    DiscountRule,
    OperatingHours,
    PricingRule,
    Venue,
)


class VenueSerializer(serializers.ModelSerializer):
    owner_id = serializers.ReadOnlyField(source="owner.id")
    courts_count = serializers.SerializerMethodField()

    class Meta:
        model = Venue
        fields = [
            "id",
            "name",
            "description",
            "address",
            "city",
            "owner_id",
            "managers",
            "requires_approval",
            "is_active",
            "courts_count",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "owner_id", "courts_count", "created_at", "updated_at"]
        extra_kwargs = {"managers": {"required": False}}

    def get_courts_count(self, obj: Venue) -> int:
        return obj.courts.count()


class BreakWindowSerializer(serializers.ModelSerializer):
    class Meta:
        model = BreakWindow
        fields = ["id", "start_time", "end_time", "reason"]

    def validate(self, attrs):  # type: ignore
        if attrs["start_time"] >= attrs["end_time"]:
            raise serializers.ValidationError("Break must end after it starts.")
        return attrs


class OperatingHoursSerializer(serializers.ModelSerializer):
    breaks = BreakWindowSerializer(many=True, required=False)

    class Meta:
        model = OperatingHours
        fields = ["id", "day_of_week", "open_time", "close_time", "is_closed", "breaks"]

    def validate(self, attrs):  # type: ignore
        is_closed = attrs.get("is_closed", getattr(self.instance, "is_closed", False))
        open_time = attrs.get("open_time", getattr(self.instance, "open_time", None))
        close_time = attrs.get("close_time", getattr(self.instance, "close_time", None))
        if not is_closed and (open_time is None or close_time is None):
            raise serializers.ValidationError("Open and close times are required unless the day is closed.")
        return attrs

    def create(self, validated_data):  # type: ignore
        breaks = validated_data.pop("breaks", [])
        hours = OperatingHours.objects.create(**validated_data)
        for item in breaks:
            BreakWindow.objects.create(operating_hours=hours, **item)
        return hours

    def update(self, instance, validated_data):  # type: ignore
        breaks = validated_data.pop("breaks", None)
        instance = super().update(instance, validated_data)
        if breaks is not None:
            instance.breaks.all().delete()
            for item in breaks:
                BreakWindow.objects.create(operating_hours=instance, **item)
        return instance


class PricingRuleSerializer(serializers.ModelSerializer):
    class Meta:
        model = PricingRule
        fields = [
            "id",
            "name",
            "category",
            "rate",
            "start_date",
            "end_date",
            "days_of_week",
            "start_time",
            "end_time",
            "priority",
            "is_active",
            "position",
            "created_at",
        ]
        read_only_fields = ["id", "created_at"]

    def validate_days_of_week(self, value):  # type: ignore
        if not isinstance(value, list) or any(not isinstance(day, int) or not 0 <= day <= 6 for day in value):
            raise serializers.ValidationError("Days of week must be a list of integers 0 (Sunday) to 6.")
        return sorted(set(value))

    def validate(self, attrs):  # type: ignore
        start_date, end_date = attrs.get("start_date"), attrs.get("end_date")
        if start_date and end_date and start_date > end_date:
            raise serializers.ValidationError("Start date must not be after end date.")
        return attrs


class DiscountRuleSerializer(serializers.ModelSerializer):
    class Meta:
        model = DiscountRule
        fields = [
            "id",
            "name",
            "category",
            "kind",
            "value",
            "membership_tier",
            "min_group_size",
            "is_active",
            "position",
        ]
        read_only_fields = ["id"]

    def validate(self, attrs):  # type: ignore
        kind = attrs.get("kind", getattr(self.instance, "kind", DiscountRule.Kind.PERCENTAGE))
        value = attrs.get("value", getattr(self.instance, "value", None))
        if kind == DiscountRule.Kind.PERCENTAGE and value is not None and value > 100:
            raise serializers.ValidationError({"value": "Percentage discounts cannot exceed 100."})
        return attrs


class AvailabilityExceptionSerializer(serializers.ModelSerializer):
    class Meta:
        model = AvailabilityException
        fields = [
            "id",
            "date",
            "category",
            "is_available",
            "custom_open_time",
            "custom_close_time",
            "reason",
            "created_at",
        ]
        read_only_fields = ["id", "created_at"]


class CourtSerializer(serializers.ModelSerializer):
    venue_name = serializers.ReadOnlyField(source="venue.name")
    owner_id = serializers.ReadOnlyField(source="owner.id")
    operating_hours = OperatingHoursSerializer(many=True, read_only=True)

    class Meta:
        model = Court
        fields = [
            "id",
            "venue",
            "venue_name",
            "name",
            "court_number",
            "sport_type",
            "description",
            "owner_id",
            "managers",
            "base_hourly_rate",
            "currency",
            "timezone",
            "status",
            "min_booking_duration",
            "max_booking_duration",
            "booking_interval",
            "advance_booking_days",
            "same_day_cutoff",
            "buffer_time",
            "max_concurrent_bookings_per_user",
            "allow_recurring_bookings",
            "requires_approval",
            "operating_hours",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "venue_name", "owner_id", "operating_hours", "created_at", "updated_at"]
        extra_kwargs = {"managers": {"required": False}}

    def validate(self, attrs):  # type: ignore
        minimum = attrs.get("min_booking_duration", getattr(self.instance, "min_booking_duration", 60))
        maximum = attrs.get("max_booking_duration", getattr(self.instance, "max_booking_duration", 180))
        if maximum < minimum:
            raise serializers.ValidationError(
                {"max_booking_duration": "Maximum duration must not be below the minimum."}
            )
        return attrs


class CourtStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Court.Status.choices)


class PriceQuoteRequestSerializer(serializers.Serializer):
    startTime = serializers.DateTimeField()
    endTime = serializers.DateTimeField()
    membershipTier = serializers.CharField(required=False, allow_blank=True)
    groupSize = serializers.IntegerField(required=False, min_value=1)
    isEarlyBird = serializers.BooleanField(required=False, default=False)

    def validate(self, attrs):  # type: ignore
        if attrs["startTime"] >= attrs["endTime"]:
            raise serializers.ValidationError({"endTime": "End time must be after start time."})
        return attrs


class SlotQuerySerializer(serializers.Serializer):
    date = serializers.DateField()
    interval = serializers.IntegerField(required=False)
