from django.conf import settings
from django.db import models


class Notification(models.Model):
    """
    Durable record of a donor responding to a blood request.
    Written once per response; only the two flags change afterwards.
    """
    requester = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='notifications'
    )
    responder = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='sent_notifications'
    )
    blood_request = models.ForeignKey(
        'blood_requests.BloodRequest',
        on_delete=models.CASCADE,
        related_name='notifications'
    )

    is_read = models.BooleanField(default=False)
    is_completed = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['requester', 'is_read'], name='notification_unread_idx'),
        ]

    def __str__(self):
        return f"{self.responder} responded to request #{self.blood_request_id}"
