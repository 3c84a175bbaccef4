"""DRF permission classes shared by the court and booking APIs."""

from __future__ import annotations

from rest_framework import permissions  # type: ignore


def is_platform_admin(user) -> bool:
    if not user or not user.is_authenticated:
        return False
    if getattr(user, "is_staff", False) or getattr(user, "is_superuser", False):
        return True
    return hasattr(user, "is_platform_admin") and user.is_platform_admin()


class IsCourtStaffOrReadOnly(permissions.BasePermission):
    """
    Anyone may read; owners, managers and admins may write.

    Object-level: the user must own or manage the venue/court being changed.
    """

    def has_permission(self, request, view) -> bool:  # type: ignore
        if request.method in permissions.SAFE_METHODS:
            return True
        user = request.user
        if not user.is_authenticated:
            return False
        if is_platform_admin(user):
            return True
        return user.is_owner() or user.is_manager()

    def has_object_permission(self, request, view, obj) -> bool:  # type: ignore
        if request.method in permissions.SAFE_METHODS:
            return True
        user = request.user
        if is_platform_admin(user):
            return True
        return obj.is_managed_by(user)
