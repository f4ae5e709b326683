from django.contrib import admin
from django.http import JsonResponse
from django.urls import path, include


def index(request):
    return JsonResponse({'message': 'BloodConnect API'})


urlpatterns = [
    path('', index, name='index'),
    path('admin/', admin.site.urls),

    # Apps
    path('api/auth/', include('accounts.urls')),
    path('api/users/', include('accounts.user_urls')),
    path('api/', include('api.urls')),
]
