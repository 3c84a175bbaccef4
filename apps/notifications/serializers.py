"""Serializers for notifications."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    """Inbox entry; the booking is referenced by id and number."""

    booking_number = serializers.ReadOnlyField(source='booking.booking_number', default=None)

    class Meta:
        model = Notification
        fields = [
            'id',
            'category',
            'title',
            'message',
            'booking',
            'booking_number',
            'is_read',
            'read_at',
            'created_at',
        ]
        read_only_fields = fields
