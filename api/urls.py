# api/urls.py - resource routes under /api/

from django.urls import path, include
from rest_framework.routers import DefaultRouter

from blood_requests.views import BloodRequestViewSet
from notifications.views import NotificationViewSet
from reviews.views import ReviewViewSet
from . import views

router = DefaultRouter()
router.register(r'blood-requests', BloodRequestViewSet, basename='blood-request')
router.register(r'notifications', NotificationViewSet, basename='notification')
router.register(r'reviews', ReviewViewSet, basename='review')

app_name = 'api'

urlpatterns = [
    path('', include(router.urls)),
    path('stats/', views.platform_stats, name='platform-stats'),
    path('admin/stats/', views.admin_stats, name='admin-stats'),
]

# GET    /api/blood-requests/                      - List requests (filters, paginated)
# POST   /api/blood-requests/                      - Create request
# GET    /api/blood-requests/mine/                 - Current user's requests
# GET    /api/blood-requests/{id}/                 - Request detail
# PATCH  /api/blood-requests/{id}/                 - Edit open request (owner)
# PUT    /api/blood-requests/{id}/                 - Same as PATCH
# DELETE /api/blood-requests/{id}/                 - Delete request without donations (owner)
# POST   /api/blood-requests/{id}/respond/         - Donor response
# POST   /api/blood-requests/{id}/fulfill/         - Record donated units
# PUT    /api/blood-requests/{id}/status/          - Set status
# POST   /api/blood-requests/{id}/complete/        - Close as fulfilled
#
# GET    /api/notifications/                       - Own response notifications
# PATCH  /api/notifications/{id}/read/             - Mark read
# PATCH  /api/notifications/{id}/complete/         - Mark completed
# POST   /api/notifications/mark-all-read/         - Mark all read
#
# GET    /api/reviews/                             - Approved reviews (public)
# POST   /api/reviews/                             - Submit review
#
# GET    /api/stats/                               - Platform statistics (public)
# GET    /api/admin/stats/                         - Admin dashboard statistics
