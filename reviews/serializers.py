from django.contrib.auth import get_user_model
from rest_framework import serializers

from blood_requests.models import BloodRequest
from .models import Review

User = get_user_model()


class ReviewAuthorSerializer(serializers.ModelSerializer):
    name = serializers.CharField(source='display_name', read_only=True)
    bloodGroup = serializers.CharField(source='blood_group', read_only=True)

    class Meta:
        model = User
        fields = ['id', 'name', 'bloodGroup']
        read_only_fields = fields


class ReviewSerializer(serializers.ModelSerializer):
    user = ReviewAuthorSerializer(read_only=True)
    request = serializers.PrimaryKeyRelatedField(
        source='blood_request',
        queryset=BloodRequest.objects.all(),
        required=False,
        allow_null=True
    )
    responder = serializers.PrimaryKeyRelatedField(
        queryset=User.objects.all(),
        required=False,
        allow_null=True
    )
    rating = serializers.IntegerField(min_value=1, max_value=5)
    comment = serializers.CharField(max_length=500, trim_whitespace=True)
    isApproved = serializers.BooleanField(source='is_approved', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = Review
        fields = ['id', 'user', 'request', 'responder', 'rating', 'comment', 'isApproved', 'createdAt']
        read_only_fields = ['id', 'user', 'isApproved', 'createdAt']
