"""Admin registrations for venues and courts."""

from __future__ import annotations

from django.contrib import admin

from .models import (
    AvailabilityException,
    BreakWindow,
    Court,
    DiscountRule,
    OperatingHours,
    PricingRule,
    Venue,
)


class CourtInline(admin.TabularInline):
    model = Court
    extra = 0
    fields = ("name", "court_number", "sport_type", "base_hourly_rate", "status")
    show_change_link = True


@admin.register(Venue)
class VenueAdmin(admin.ModelAdmin):
    list_display = ("name", "city", "owner", "requires_approval", "is_active", "created_at")
    list_filter = ("is_active", "requires_approval", "city")
    search_fields = ("name", "city", "owner__email")
    filter_horizontal = ("managers",)
    inlines = [CourtInline]


class PricingRuleInline(admin.TabularInline):
    model = PricingRule
    extra = 0


class DiscountRuleInline(admin.TabularInline):
    model = DiscountRule
    extra = 0


class OperatingHoursInline(admin.TabularInline):
    model = OperatingHours
    extra = 0
    show_change_link = True


class AvailabilityExceptionInline(admin.TabularInline):
    model = AvailabilityException
    extra = 0
    exclude = ("created_by",)


@admin.register(Court)
class CourtAdmin(admin.ModelAdmin):
    list_display = ("name", "venue", "sport_type", "base_hourly_rate", "currency", "status", "requires_approval")
    list_filter = ("status", "sport_type", "requires_approval")
    search_fields = ("name", "court_number", "venue__name")
    filter_horizontal = ("managers",)
    inlines = [OperatingHoursInline, PricingRuleInline, DiscountRuleInline, AvailabilityExceptionInline]


class BreakWindowInline(admin.TabularInline):
    model = BreakWindow
    extra = 0


@admin.register(OperatingHours)
class OperatingHoursAdmin(admin.ModelAdmin):
    list_display = ("court", "day_of_week", "open_time", "close_time", "is_closed")
    list_filter = ("day_of_week", "is_closed")
    inlines = [BreakWindowInline]
