import logging

from django.conf import settings
from django.contrib.auth import authenticate, get_user_model
from django.db.models import F, Q
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import AuthenticationFailed, NotFound, ValidationError
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from api.pagination import EnvelopePagination
from api.serializers import NearbyQuerySerializer
from blood_requests.matching import nearby_donors as find_nearby_donors
from blood_requests.models import Fulfillment
from blood_requests.serializers import DonationSerializer
from .models import BloodGroup
from .serializers import (
    DonorDirectorySerializer,
    LoginSerializer,
    PasswordChangeSerializer,
    ProfileUpdateSerializer,
    RegisterSerializer,
    UserSerializer,
    UserSummarySerializer,
    get_tokens_for_user,
)

User = get_user_model()
logger = logging.getLogger(__name__)


# -----------------------------
# REGISTER API
# -----------------------------
@api_view(['POST'])
@permission_classes([AllowAny])
def register(request):
    """
    Registers a donor or receiver and returns JWT tokens
    """
    serializer = RegisterSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    user = serializer.save()

    logger.info("Registered user %s (%s)", user.pk, user.role)

    return Response(
        {
            "success": True,
            "message": "User registered successfully",
            "tokens": get_tokens_for_user(user),
            "user": UserSerializer(user).data,
        },
        status=status.HTTP_201_CREATED
    )


# -----------------------------
# LOGIN API
# -----------------------------
@api_view(['POST'])
@permission_classes([AllowAny])
def login(request):
    """
    JWT login with account lock after repeated failed attempts
    """
    serializer = LoginSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    identifier = serializer.validated_data['email']
    password = serializer.validated_data['password']

    user = User.objects.filter(Q(email__iexact=identifier) | Q(username=identifier)).first()

    if not user:
        raise AuthenticationFailed("Invalid credentials")

    if user.is_locked:
        raise AuthenticationFailed("Account locked due to multiple failed attempts")

    user_auth = authenticate(request, username=identifier, password=password)
    if user_auth is None:
        user.failed_attempts += 1
        if user.failed_attempts >= settings.MAX_FAILED_LOGINS:
            user.is_locked = True
            logger.warning("Locked account %s after %s failed logins", user.pk, user.failed_attempts)
        user.save(update_fields=['failed_attempts', 'is_locked'])
        raise AuthenticationFailed("Invalid credentials")

    if user_auth.failed_attempts:
        user_auth.failed_attempts = 0
        user_auth.save(update_fields=['failed_attempts'])

    return Response({
        "success": True,
        "message": "Login successful",
        "tokens": get_tokens_for_user(user_auth),
        "user": UserSerializer(user_auth).data,
    })


# -----------------------------
# PROFILE
# -----------------------------
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def me(request):
    return Response({"success": True, "user": UserSerializer(request.user).data})


@api_view(['PATCH'])
@permission_classes([IsAuthenticated])
def update_profile(request):
    """Update name, phone, location and availability"""
    serializer = ProfileUpdateSerializer(request.user, data=request.data, partial=True)
    serializer.is_valid(raise_exception=True)
    user = serializer.save()

    return Response({
        "success": True,
        "message": "Profile updated successfully",
        "user": UserSerializer(user).data,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def donations(request):
    """Fulfillments credited to the current user, newest first"""
    fulfillments = (
        Fulfillment.objects
        .filter(donor=request.user)
        .select_related('blood_request', 'blood_request__requester')
        .order_by('-created_at')
    )
    return Response({
        "success": True,
        "donations": DonationSerializer(fulfillments, many=True).data,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def nearby_donors(request):
    """
    Available donors around a point.
    Query: latitude, longitude, radius (km), optional bloodGroup
    """
    query = NearbyQuerySerializer(data=request.query_params)
    query.is_valid(raise_exception=True)
    params = query.validated_data

    matches = find_nearby_donors(
        params['latitude'],
        params['longitude'],
        blood_group=request.query_params.get('bloodGroup') or None,
        radius_km=params.get('radius', settings.NEARBY_DONOR_RADIUS_KM),
        exclude=request.user.pk,
    )

    data = []
    for donor, distance in matches:
        entry = UserSummarySerializer(donor).data
        entry['distance'] = round(distance, 2)
        data.append(entry)

    return Response({"success": True, "count": len(data), "data": data})


# -----------------------------
# PASSWORD
# -----------------------------
@api_view(['PUT'])
@permission_classes([IsAuthenticated])
def change_password(request):
    """Change the password after confirming the current one"""
    serializer = PasswordChangeSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    user = request.user
    if not user.check_password(serializer.validated_data['currentPassword']):
        raise ValidationError({'currentPassword': ['Current password is incorrect']})

    user.set_password(serializer.validated_data['newPassword'])
    user.save(update_fields=['password'])
    logger.info("User %s changed their password", user.pk)

    return Response({"success": True, "message": "Password updated successfully"})


# -----------------------------
# DONOR DIRECTORY
# -----------------------------
def _directory_queryset():
    return User.objects.filter(is_donor=True, is_active=True)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def donor_list(request):
    """
    Paginated donor directory.
    Query: bloodGroup, availability (available | not_available), search
    """
    donors = _directory_queryset().order_by('-date_joined')
    params = request.query_params

    blood_group = params.get('bloodGroup')
    if blood_group and blood_group != 'all':
        donors = donors.filter(blood_group=blood_group)

    availability = params.get('availability')
    if availability == 'available':
        donors = donors.filter(is_available=True)
    elif availability == 'not_available':
        donors = donors.filter(is_available=False)

    search = params.get('search')
    if search:
        donors = donors.filter(Q(name__icontains=search) | Q(address__icontains=search))

    paginator = EnvelopePagination()
    page = paginator.paginate_queryset(donors, request)
    return paginator.get_paginated_response(DonorDirectorySerializer(page, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def donor_search(request):
    """
    Available donors of one blood group, those who have waited longest
    since their last donation first
    """
    blood_group = request.query_params.get('bloodGroup')
    if not blood_group:
        raise ValidationError({'bloodGroup': ['Blood group is required']})
    if blood_group not in BloodGroup.values:
        raise ValidationError({'bloodGroup': [f'"{blood_group}" is not a valid blood group.']})

    donors = (
        _directory_queryset()
        .filter(blood_group=blood_group, is_available=True)
        .exclude(pk=request.user.pk)
        .order_by(F('last_donation').asc(nulls_first=True), 'id')
    )
    data = DonorDirectorySerializer(donors, many=True).data
    return Response({"success": True, "count": len(data), "data": data})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def donor_detail(request, pk):
    try:
        donor = _directory_queryset().get(pk=pk)
    except User.DoesNotExist:
        raise NotFound('Donor not found')
    return Response({"success": True, "data": DonorDirectorySerializer(donor).data})
