from rest_framework import serializers

from accounts.serializers import UserSummarySerializer
from blood_requests.serializers import BloodRequestSummarySerializer
from .models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    responder = UserSummarySerializer(read_only=True)
    bloodRequest = BloodRequestSummarySerializer(source='blood_request', read_only=True)
    isRead = serializers.BooleanField(source='is_read', read_only=True)
    isCompleted = serializers.BooleanField(source='is_completed', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = Notification
        fields = ['id', 'requester', 'responder', 'bloodRequest', 'isRead', 'isCompleted', 'createdAt']
        read_only_fields = fields
