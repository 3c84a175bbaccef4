"""Integration tests for venue and court endpoints."""

from __future__ import annotations

from datetime import datetime, time, timedelta
from decimal import Decimal
from zoneinfo import ZoneInfo

from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.courts.models import Court, OperatingHours, PricingRule, Venue
from apps.users.models import User

PKT = ZoneInfo("Asia/Karachi")


class CourtAPITests(APITestCase):
    def setUp(self) -> None:
        self.owner = User.objects.create_user(
            email="owner@example.com",
            password="OwnerPass123",
            role=User.RoleChoices.OWNER,
        )
        self.player = User.objects.create_user(email="player@example.com", password="PlayerPass123")
        self.venue = Venue.objects.create(name="Model Town Sports Complex", city="Lahore", owner=self.owner)
        self.court = Court.objects.create(
            venue=self.venue,
            name="Futsal A",
            sport_type=Court.SportType.FUTSAL,
            owner=self.owner,
            base_hourly_rate=Decimal("1000.00"),
            currency="PKR",
            timezone="Asia/Karachi",
        )
        OperatingHours.objects.bulk_create([
            OperatingHours(court=self.court, day_of_week=day, open_time=time(8), close_time=time(20))
            for day in range(7)
        ])
        self.tomorrow = timezone.localdate() + timedelta(days=1)

    def _at(self, hour: int) -> datetime:
        return datetime.combine(self.tomorrow, time(hour), tzinfo=PKT)

    def test_owner_creates_venue_and_court(self) -> None:
        self.client.force_authenticate(self.owner)

        venue = self.client.post(
            reverse("venue-list"), {"name": "DHA Arena", "city": "Karachi"}, format="json"
        )
        self.assertEqual(venue.status_code, status.HTTP_201_CREATED, venue.data)
        self.assertEqual(venue.data["owner_id"], self.owner.pk)

        court = self.client.post(
            reverse("court-list"),
            {
                "venue": venue.data["id"],
                "name": "Padel 1",
                "sport_type": Court.SportType.PADEL,
                "base_hourly_rate": "2500.00",
            },
            format="json",
        )
        self.assertEqual(court.status_code, status.HTTP_201_CREATED, court.data)
        self.assertEqual(Court.objects.get(pk=court.data["id"]).owner, self.owner)

    def test_player_cannot_create_venue(self) -> None:
        self.client.force_authenticate(self.player)

        response = self.client.post(reverse("venue-list"), {"name": "Backyard"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_owner_cannot_add_court_to_foreign_venue(self) -> None:
        rival = User.objects.create_user(
            email="rival@example.com", password="RivalPass123", role=User.RoleChoices.OWNER
        )
        self.client.force_authenticate(rival)

        response = self.client.post(
            reverse("court-list"),
            {"venue": str(self.venue.id), "name": "Sneaky Court", "base_hourly_rate": "500.00"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, response.data)

    def test_court_list_is_public(self) -> None:
        response = self.client.get(reverse("court-list"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["count"], 1)

    def test_set_status(self) -> None:
        self.client.force_authenticate(self.owner)

        response = self.client.patch(
            reverse("court-set-status", args=[self.court.id]), {"status": "maintenance"}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.court.refresh_from_db()
        self.assertEqual(self.court.status, Court.Status.MAINTENANCE)

    def test_slots(self) -> None:
        response = self.client.get(
            reverse("court-slots", args=[self.court.id]), {"date": self.tomorrow.isoformat(), "interval": 60}
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["totalSlots"], 12)
        self.assertEqual(response.data["availableSlots"], 12)
        self.assertEqual(response.data["data"][0]["startTime"], self._at(8).isoformat())

    def test_slots_reject_bad_interval(self) -> None:
        response = self.client.get(
            reverse("court-slots", args=[self.court.id]), {"date": self.tomorrow.isoformat(), "interval": 5}
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, response.data)
        self.assertEqual(response.data["code"], "validation_error")

    def test_calculate_price_applies_peak_rule(self) -> None:
        PricingRule.objects.create(
            court=self.court,
            name="Evening peak",
            category=PricingRule.Category.PEAK,
            rate=Decimal("1500.00"),
            start_time=time(18),
            end_time=time(20),
            priority=10,
        )

        response = self.client.post(
            reverse("court-calculate-price", args=[self.court.id]),
            {"startTime": self._at(18).isoformat(), "endTime": self._at(20).isoformat()},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["data"]["baseRate"], "1500.00")
        self.assertEqual(response.data["data"]["totalPrice"], "3000.00")
        self.assertEqual(response.data["data"]["duration"], 120)

    def test_calculate_price_rejects_inverted_interval(self) -> None:
        response = self.client.post(
            reverse("court-calculate-price", args=[self.court.id]),
            {"startTime": self._at(12).isoformat(), "endTime": self._at(11).isoformat()},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_owner_adds_pricing_rule(self) -> None:
        self.client.force_authenticate(self.owner)
        url = reverse("court-pricing-rule-list", kwargs={"court_id": self.court.id})

        response = self.client.post(
            url,
            {
                "name": "Weekend",
                "category": "weekend",
                "rate": "1200.00",
                "days_of_week": [6, 0, 6],
            },
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["days_of_week"], [0, 6])
        self.assertEqual(self.court.pricing_rules.count(), 1)

    def test_player_cannot_add_pricing_rule(self) -> None:
        self.client.force_authenticate(self.player)
        url = reverse("court-pricing-rule-list", kwargs={"court_id": self.court.id})

        response = self.client.post(url, {"name": "Cheap", "category": "promotional", "rate": "1.00"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_blocked_day_closes_every_slot(self) -> None:
        self.client.force_authenticate(self.owner)
        created = self.client.post(
            reverse("court-availability-exception-list", kwargs={"court_id": self.court.id}),
            {"date": self.tomorrow.isoformat(), "category": "maintenance", "is_available": False},
            format="json",
        )
        self.assertEqual(created.status_code, status.HTTP_201_CREATED, created.data)

        response = self.client.get(
            reverse("court-slots", args=[self.court.id]), {"date": self.tomorrow.isoformat(), "interval": 60}
        )

        self.assertEqual(response.data["availableSlots"], 0)
