# accounts/serializers.py
from django.contrib.auth import get_user_model
from rest_framework import serializers
from rest_framework_simplejwt.tokens import RefreshToken

from api.serializers import LocationSerializer, location_representation
from .models import BloodGroup

User = get_user_model()


def get_tokens_for_user(user):
    """
    Generate JWT tokens and embed role in payload
    """
    refresh = RefreshToken.for_user(user)
    refresh['role'] = user.role
    return {
        'refresh': str(refresh),
        'access': str(refresh.access_token),
    }


class UserSerializer(serializers.ModelSerializer):
    """
    Full profile of a user, as returned to the user themselves
    """
    name = serializers.CharField(source='display_name', read_only=True)
    bloodGroup = serializers.CharField(source='blood_group', read_only=True)
    location = serializers.SerializerMethodField()
    isDonor = serializers.BooleanField(source='is_donor', read_only=True)
    isAvailable = serializers.BooleanField(source='is_available', read_only=True)
    donationCount = serializers.IntegerField(source='donation_count', read_only=True)
    lastDonation = serializers.DateTimeField(source='last_donation', read_only=True)
    canDonate = serializers.BooleanField(source='can_donate', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = User
        fields = [
            'id',
            'username',
            'name',
            'email',
            'phone',
            'role',
            'bloodGroup',
            'age',
            'location',
            'isDonor',
            'isAvailable',
            'donationCount',
            'badges',
            'lastDonation',
            'canDonate',
            'createdAt',
        ]
        read_only_fields = fields

    def get_location(self, obj):
        return location_representation(obj)


class UserSummarySerializer(serializers.ModelSerializer):
    """
    Compact user reference embedded in requests, responses and notifications
    """
    name = serializers.CharField(source='display_name', read_only=True)
    bloodGroup = serializers.CharField(source='blood_group', read_only=True)

    class Meta:
        model = User
        fields = ['id', 'name', 'phone', 'bloodGroup', 'age']
        read_only_fields = fields


class RegisterSerializer(serializers.Serializer):
    username = serializers.CharField(max_length=150, required=False, allow_blank=True)
    name = serializers.CharField(max_length=150)
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, min_length=6)
    phone = serializers.CharField(max_length=20)
    bloodGroup = serializers.ChoiceField(choices=BloodGroup.choices)
    age = serializers.IntegerField(min_value=18, max_value=65, required=False)
    location = LocationSerializer(required=False)
    isDonor = serializers.BooleanField(required=False, default=True)
    role = serializers.ChoiceField(choices=['donor', 'receiver'], required=False, default='donor')

    def validate_email(self, value):
        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError('User with this email already exists')
        return value.lower()

    def validate(self, attrs):
        username = attrs.get('username') or attrs['email']
        if User.objects.filter(username=username).exists():
            raise serializers.ValidationError({'username': 'Username already exists'})
        attrs['username'] = username
        return attrs

    def create(self, validated_data):
        location = validated_data.get('location') or {}
        coordinates = location.get('coordinates') or [None, None]

        return User.objects.create_user(
            username=validated_data['username'],
            email=validated_data['email'],
            password=validated_data['password'],
            name=validated_data['name'],
            phone=validated_data['phone'],
            blood_group=validated_data['bloodGroup'],
            age=validated_data.get('age'),
            longitude=coordinates[0],
            latitude=coordinates[1],
            address=location.get('address', ''),
            is_donor=validated_data['isDonor'],
            role=validated_data['role'],
        )


class LoginSerializer(serializers.Serializer):
    # email or username
    email = serializers.CharField()
    password = serializers.CharField(write_only=True)


class ProfileUpdateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=150, required=False)
    phone = serializers.CharField(max_length=20, required=False)
    location = LocationSerializer(required=False)
    isAvailable = serializers.BooleanField(required=False)

    def validate_location(self, value):
        # Partial updates skip nested required checks
        if not value.get('coordinates'):
            raise serializers.ValidationError({'coordinates': ['This field is required.']})
        return value

    def update(self, instance, validated_data):
        update_fields = ['updated_at']

        if 'name' in validated_data:
            instance.name = validated_data['name']
            update_fields.append('name')
        if 'phone' in validated_data:
            instance.phone = validated_data['phone']
            update_fields.append('phone')
        if 'isAvailable' in validated_data:
            instance.is_available = validated_data['isAvailable']
            update_fields.append('is_available')
        if 'location' in validated_data:
            location = validated_data['location']
            instance.longitude, instance.latitude = location['coordinates']
            instance.address = location.get('address', '')
            update_fields += ['latitude', 'longitude', 'address']

        instance.save(update_fields=update_fields)
        return instance


class PasswordChangeSerializer(serializers.Serializer):
    currentPassword = serializers.CharField(write_only=True)
    newPassword = serializers.CharField(write_only=True, min_length=6)


class DonorDirectorySerializer(serializers.ModelSerializer):
    """
    Public donor card for the directory. No e-mail, no account flags.
    """
    name = serializers.CharField(source='display_name', read_only=True)
    bloodGroup = serializers.CharField(source='blood_group', read_only=True)
    address = serializers.CharField(read_only=True)
    isAvailable = serializers.BooleanField(source='is_available', read_only=True)
    donationCount = serializers.IntegerField(source='donation_count', read_only=True)
    lastDonation = serializers.DateTimeField(source='last_donation', read_only=True)
    canDonate = serializers.BooleanField(source='can_donate', read_only=True)

    class Meta:
        model = User
        fields = [
            'id',
            'name',
            'phone',
            'bloodGroup',
            'age',
            'address',
            'isAvailable',
            'donationCount',
            'badges',
            'lastDonation',
            'canDonate',
        ]
        read_only_fields = fields
