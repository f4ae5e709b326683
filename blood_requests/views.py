import logging

from django.conf import settings
from django.db.models import Q
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from api.serializers import NearbyQuerySerializer
from . import services
from .matching import donors_for_request, requests_within
from .models import BloodRequest, normalize_status
from .serializers import (
    BloodRequestCreateSerializer,
    BloodRequestSerializer,
    BloodRequestUpdateSerializer,
    FulfillSerializer,
    RespondSerializer,
    StatusSerializer,
)

logger = logging.getLogger(__name__)


class BloodRequestViewSet(mixins.CreateModelMixin,
                          mixins.ListModelMixin,
                          mixins.RetrieveModelMixin,
                          viewsets.GenericViewSet):
    """
    Blood requests: create, browse, edit, respond, fulfill and close
    """
    serializer_class = BloodRequestSerializer

    def get_queryset(self):
        return (
            BloodRequest.objects
            .select_related('requester')
            .prefetch_related('responses__donor', 'fulfillments__donor')
        )

    def filter_queryset(self, queryset):
        if self.action != 'list':
            return queryset

        params = self.request.query_params

        status_filter = params.get('status')
        if status_filter and status_filter != 'all':
            canonical = normalize_status(status_filter)
            # Unknown status matches nothing rather than everything
            queryset = queryset.filter(status=canonical) if canonical else queryset.none()

        blood_group = params.get('bloodGroup')
        if blood_group and blood_group != 'all':
            queryset = queryset.filter(blood_group=blood_group)

        urgency = params.get('urgency')
        if urgency and urgency != 'all':
            queryset = queryset.filter(urgency=urgency)

        user_id = params.get('userId')
        if user_id:
            queryset = queryset.filter(requester_id=user_id)

        search = params.get('search')
        if search:
            queryset = queryset.filter(
                Q(patient_name__icontains=search)
                | Q(address__icontains=search)
                | Q(contact__icontains=search)
                | Q(notes__icontains=search)
            )

        if 'latitude' in params and 'longitude' in params:
            query = NearbyQuerySerializer(data=params)
            query.is_valid(raise_exception=True)
            point = query.validated_data
            queryset = requests_within(
                queryset,
                point['latitude'],
                point['longitude'],
                point.get('radius', settings.NEARBY_DONOR_RADIUS_KM),
            )

        return queryset

    def create(self, request, *args, **kwargs):
        serializer = BloodRequestCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        blood_request = services.create_blood_request(request.user, serializer.to_model_data())
        nearby_count = len(donors_for_request(blood_request))

        return Response(
            {
                'success': True,
                'message': 'Blood request created successfully',
                'data': BloodRequestSerializer(blood_request).data,
                'nearbyDonorsCount': nearby_count,
            },
            status=status.HTTP_201_CREATED
        )

    def retrieve(self, request, *args, **kwargs):
        return Response({'success': True, 'data': self.get_serializer(self.get_object()).data})

    def partial_update(self, request, pk=None):
        serializer = BloodRequestUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        blood_request = services.edit_blood_request(pk, request.user, serializer.to_model_data())
        return Response({
            'success': True,
            'message': 'Blood request updated successfully',
            'data': self._fresh(blood_request),
        })

    def update(self, request, pk=None):
        # PUT behaves like PATCH: only the fields sent are changed
        return self.partial_update(request, pk=pk)

    def destroy(self, request, pk=None):
        services.delete_blood_request(pk, request.user)
        return Response({'success': True, 'message': 'Blood request deleted successfully'})

    @action(detail=False, methods=['get'])
    def mine(self, request):
        """Requests posted by the current user"""
        queryset = self.get_queryset().filter(requester=request.user)
        page = self.paginate_queryset(queryset)
        serializer = self.get_serializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    @action(detail=True, methods=['post'])
    def respond(self, request, pk=None):
        serializer = RespondSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        blood_request, _ = services.respond_to_request(
            pk,
            request.user,
            message=serializer.validated_data['message'],
            can_donate=serializer.validated_data['canDonate'],
        )
        return Response({
            'success': True,
            'message': 'Response submitted successfully',
            'data': self._fresh(blood_request),
        })

    @action(detail=True, methods=['post'])
    def fulfill(self, request, pk=None):
        serializer = FulfillSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        blood_request, donor = services.fulfill_request(
            pk,
            request.user,
            serializer.validated_data['donorId'],
            serializer.validated_data['unitsProvided'],
        )
        return Response({
            'success': True,
            'message': 'Donation recorded successfully',
            'data': self._fresh(blood_request),
        })

    @action(detail=True, methods=['put'], url_path='status')
    def update_status(self, request, pk=None):
        serializer = StatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        blood_request = services.update_status(pk, request.user, serializer.validated_data['status'])
        return Response({
            'success': True,
            'message': 'Status updated successfully',
            'data': self._fresh(blood_request),
        })

    @action(detail=True, methods=['post'])
    def complete(self, request, pk=None):
        blood_request = services.mark_completed(pk, request.user)
        return Response({
            'success': True,
            'message': 'Blood request marked as completed',
            'data': self._fresh(blood_request),
        })

    def _fresh(self, blood_request):
        # Re-read with relations so responses and fulfillments are current
        return BloodRequestSerializer(self.get_queryset().get(pk=blood_request.pk)).data
