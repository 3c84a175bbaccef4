"""Serializers for user-related API endpoints."""

from __future__ import annotations

from django.contrib.auth import get_user_model  # type: ignore
from rest_framework import serializers  # type: ignore

from .models import PHONE_VALIDATOR

User = get_user_model()


class UserSerializer(serializers.ModelSerializer):
    phone = serializers.CharField(
        required=False,
        allow_null=True,
        allow_blank=True,
        validators=[PHONE_VALIDATOR],
    )

    class Meta:
        model = User
        fields = [
            "id",
            "email",
            "username",
            "first_name",
            "last_name",
            "phone",
            "role",
            "membership_tier",
            "created_at",
        ]
        read_only_fields = ["id", "email", "role", "membership_tier", "created_at"]

    def validate_phone(self, value: str | None) -> str | None:
        if not value:
            return None
        value = User.objects.normalize_phone(value)
        qs = User.objects.filter(phone=value)
        if self.instance is not None:
            qs = qs.exclude(pk=self.instance.pk)
        if qs.exists():
            raise serializers.ValidationError("A user with this phone already exists.")
        return value
