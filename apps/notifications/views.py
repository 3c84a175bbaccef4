"""API views for the notification inbox."""

from __future__ import annotations

import logging

from django.utils import timezone  # type: ignore
from rest_framework import mixins, permissions, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from shared.infrastructure.pagination import PageLimitPagination

from .models import Notification
from .serializers import NotificationSerializer

logger = logging.getLogger(__name__)


class NotificationViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """Notifications of the authenticated user.

    ``?unread=true`` limits the list to unread entries and ``?booking=<id>``
    to the messages about one booking.
    """

    serializer_class = NotificationSerializer
    permission_classes = [permissions.IsAuthenticated]
    pagination_class = PageLimitPagination

    def get_queryset(self):  # type: ignore
        qs = Notification.objects.filter(user=self.request.user).select_related('booking')
        if self.request.query_params.get('unread', '').lower() == 'true':
            qs = qs.filter(is_read=False)
        booking_id = self.request.query_params.get('booking')
        if booking_id:
            qs = qs.filter(booking_id=booking_id)
        return qs

    @action(detail=True, methods=['post'], url_path='read')
    def mark_read(self, request, pk=None):  # type: ignore
        notification = self.get_object()
        notification.mark_read(timezone.now())
        return Response({'success': True, 'data': self.get_serializer(notification).data})

    @action(detail=False, methods=['post'], url_path='read-all')
    def mark_all_read(self, request):  # type: ignore
        updated = self.get_queryset().filter(is_read=False).update(is_read=True, read_at=timezone.now())
        logger.info(f"Marked {updated} notifications read for user {request.user.pk}")
        return Response({'success': True, 'updated': updated})

    @action(detail=False, methods=['get'], url_path='unread-count')
    def unread_count(self, request):  # type: ignore
        count = Notification.objects.filter(user=request.user, is_read=False).count()
        return Response({'success': True, 'unread': count})
