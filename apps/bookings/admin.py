"""Admin registration for bookings."""

from __future__ import annotations

from django.contrib import admin

from .models import Booking, BookingModification


class BookingModificationInline(admin.TabularInline):
    model = BookingModification
    extra = 0
    can_delete = False
    readonly_fields = ("modified_at", "modified_by", "reason", "changes")


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = (
        "booking_number",
        "court",
        "user",
        "status",
        "payment_status",
        "start_time",
        "end_time",
        "total_amount",
        "created_at",
    )
    list_filter = ("status", "payment_status", "booking_type", "source", "is_tentative")
    search_fields = ("booking_number", "court__name", "venue__name", "user__email")
    date_hierarchy = "start_time"
    readonly_fields = (
        "booking_number",
        "duration_minutes",
        "base_price",
        "total_discount",
        "subtotal",
        "tax",
        "service_fee",
        "total_amount",
        "created_at",
        "updated_at",
    )
    inlines = [BookingModificationInline]
