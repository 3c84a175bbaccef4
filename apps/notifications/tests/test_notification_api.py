"""Notification inbox endpoint tests."""

from __future__ import annotations

from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.notifications.models import Notification
from apps.users.models import User


class NotificationAPITests(APITestCase):
    def setUp(self) -> None:
        self.user = User.objects.create_user(email="player@example.com", password="PlayerPass123")
        self.other = User.objects.create_user(email="second@example.com", password="PlayerPass123")
        self.first = Notification.objects.create(
            user=self.user,
            category=Notification.Category.BOOKING_CREATED,
            title="Booking confirmed",
            message="Futsal A, 02 Mar 2026, 18:00-19:00",
        )
        Notification.objects.create(
            user=self.user,
            category=Notification.Category.BOOKING_CANCELLED,
            title="Booking cancelled",
            message="Refund: 100%",
        )
        Notification.objects.create(
            user=self.other,
            category=Notification.Category.BOOKING_CREATED,
            title="Booking confirmed",
            message="Someone else's booking",
        )
        self.client.force_authenticate(self.user)

    def test_lists_only_own_notifications(self) -> None:
        response = self.client.get(reverse("notification-list"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["count"], 2)

    def test_mark_read(self) -> None:
        response = self.client.post(reverse("notification-mark-read", args=[self.first.pk]))

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertTrue(response.data["data"]["is_read"])
        self.first.refresh_from_db()
        self.assertIsNotNone(self.first.read_at)

        unread = self.client.get(reverse("notification-list"), {"unread": "true"})
        self.assertEqual(unread.data["count"], 1)

    def test_mark_all_read_and_count(self) -> None:
        before = self.client.get(reverse("notification-unread-count"))
        response = self.client.post(reverse("notification-mark-all-read"))
        after = self.client.get(reverse("notification-unread-count"))

        self.assertEqual(before.data["unread"], 2)
        self.assertEqual(response.data["updated"], 2)
        self.assertEqual(after.data["unread"], 0)
        self.assertEqual(Notification.objects.filter(user=self.other, is_read=False).count(), 1)

    def test_cannot_read_foreign_notification(self) -> None:
        foreign = Notification.objects.get(user=self.other)

        response = self.client.post(reverse("notification-mark-read", args=[foreign.pk]))

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
