import logging

from rest_framework import mixins, status, viewsets
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from .models import Review
from .serializers import ReviewSerializer

logger = logging.getLogger(__name__)


class ReviewViewSet(mixins.CreateModelMixin, mixins.ListModelMixin, viewsets.GenericViewSet):
    """
    GET is public and only shows approved reviews.
    POST stores a review pending approval by an admin.
    """
    serializer_class = ReviewSerializer

    def get_permissions(self):
        if self.action == 'list':
            return [AllowAny()]
        return [IsAuthenticated()]

    def get_queryset(self):
        return Review.objects.filter(is_approved=True).select_related('user')

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        review = serializer.save(user=request.user)

        logger.info("Review #%s submitted by user %s (rating %s)", review.pk, request.user.pk, review.rating)
        return Response(
            {
                'success': True,
                'message': 'Review submitted successfully',
                'data': self.get_serializer(review).data,
            },
            status=status.HTTP_201_CREATED
        )
