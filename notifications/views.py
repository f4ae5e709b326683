import logging

from rest_framework import mixins, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from .models import Notification
from .serializers import NotificationSerializer

logger = logging.getLogger(__name__)


class NotificationViewSet(mixins.ListModelMixin, viewsets.GenericViewSet):
    """
    Response notifications addressed to the current user.
    Other users' notifications are reported as not found.
    """
    serializer_class = NotificationSerializer

    def get_queryset(self):
        return (
            Notification.objects
            .filter(requester=self.request.user)
            .select_related('responder', 'blood_request')
        )

    def _flag(self, field, message):
        notification = self.get_object()
        setattr(notification, field, True)
        notification.save(update_fields=[field])
        return Response({
            'success': True,
            'message': message,
            'data': self.get_serializer(notification).data,
        })

    @action(detail=True, methods=['patch'])
    def complete(self, request, pk=None):
        return self._flag('is_completed', 'Notification marked as completed')

    @action(detail=True, methods=['patch'])
    def read(self, request, pk=None):
        return self._flag('is_read', 'Notification marked as read')

    @action(detail=False, methods=['post'], url_path='mark-all-read')
    def mark_all_read(self, request):
        updated = self.get_queryset().filter(is_read=False).update(is_read=True)
        logger.debug("User %s marked %s notification(s) read", request.user.pk, updated)
        return Response({
            'success': True,
            'message': 'All notifications marked as read',
            'updated': updated,
        })
