# api/views.py - platform statistics
from django.contrib.auth import get_user_model
from django.db.models import Count, Sum
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from accounts.permissions import IsAdminRole
from blood_requests.models import BloodRequest, DonorResponse, Fulfillment
from reviews.models import Review

User = get_user_model()


@api_view(['GET'])
@permission_classes([AllowAny])
def platform_stats(request):
    """Get platform-wide statistics for the landing page"""
    total_requests = BloodRequest.objects.count()
    fulfilled_requests = BloodRequest.objects.filter(status=BloodRequest.Status.FULFILLED).count()
    success_rate = round(fulfilled_requests / total_requests * 100) if total_requests else 0

    return Response({
        'success': True,
        'data': {
            'totalUsers': User.objects.count(),
            'totalDonors': User.objects.filter(is_donor=True).count(),
            'availableDonors': User.objects.filter(is_donor=True, is_available=True).count(),
            'totalRequests': total_requests,
            'openRequests': BloodRequest.objects.filter(status=BloodRequest.Status.OPEN).count(),
            'fulfilledRequests': fulfilled_requests,
            'emergencyRequests': BloodRequest.objects.filter(is_emergency=True).count(),
            'unitsDonated': Fulfillment.objects.aggregate(total=Sum('units_provided'))['total'] or 0,
            'successRate': success_rate,
        },
    })


@api_view(['GET'])
@permission_classes([IsAdminRole])
def admin_stats(request):
    """Dashboard numbers for admins, including per blood group demand"""
    by_group = (
        BloodRequest.objects
        .filter(status=BloodRequest.Status.OPEN)
        .values('blood_group')
        .annotate(total=Count('id'))
        .order_by('blood_group')
    )

    return Response({
        'success': True,
        'data': {
            'totalUsers': User.objects.count(),
            'totalDonors': User.objects.filter(role='donor').count(),
            'totalReceivers': User.objects.filter(role='receiver').count(),
            'lockedAccounts': User.objects.filter(is_locked=True).count(),
            'totalRequests': BloodRequest.objects.count(),
            'openRequests': BloodRequest.objects.filter(status=BloodRequest.Status.OPEN).count(),
            'fulfilledRequests': BloodRequest.objects.filter(status=BloodRequest.Status.FULFILLED).count(),
            'cancelledRequests': BloodRequest.objects.filter(status=BloodRequest.Status.CANCELLED).count(),
            'totalResponses': DonorResponse.objects.count(),
            'pendingReviews': Review.objects.filter(is_approved=False).count(),
            'openRequestsByBloodGroup': {row['blood_group']: row['total'] for row in by_group},
        },
    })
