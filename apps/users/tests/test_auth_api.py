"""API tests for authentication endpoints."""

from __future__ import annotations

from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.users.models import User


class AuthAPITests(APITestCase):
    def test_register_returns_tokens(self) -> None:
        payload = {
            "email": "player@example.com",
            "phone": "+923001234567",
            "first_name": "Ali",
            "last_name": "Khan",
            "password": "StrongPass123",
            "password_confirm": "StrongPass123",
        }

        response = self.client.post(reverse("auth:register"), payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertIn("tokens", response.data)
        self.assertEqual(response.data["user"]["email"], payload["email"])
        self.assertEqual(response.data["user"]["role"], User.RoleChoices.USER)
        self.assertTrue(User.objects.filter(email=payload["email"]).exists())

    def test_register_rejects_admin_role(self) -> None:
        payload = {
            "email": "sneaky@example.com",
            "password": "StrongPass123",
            "password_confirm": "StrongPass123",
            "role": "admin",
        }
        response = self.client.post(reverse("auth:register"), payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(User.objects.filter(email=payload["email"]).exists())

    def test_login_by_phone_and_me(self) -> None:
        User.objects.create_user(
            email="login@example.com",
            phone="+92 300-7654321",
            password="CorrectPassword1",
        )

        response = self.client.post(
            reverse("auth:login"),
            {"login": "+923007654321", "password": "CorrectPassword1"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)

        access = response.data["tokens"]["access"]
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {access}")
        me = self.client.get(reverse("auth:me"))
        self.assertEqual(me.status_code, status.HTTP_200_OK)
        self.assertEqual(me.data["email"], "login@example.com")

    def test_login_wrong_password(self) -> None:
        User.objects.create_user(email="wrong@example.com", password="CorrectPassword1")
        response = self.client.post(
            reverse("auth:login"),
            {"login": "wrong@example.com", "password": "nope"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
