from django.urls import path

from . import views

app_name = 'users'

urlpatterns = [
    path('me/', views.me, name='me'),
    path('profile/', views.update_profile, name='update_profile'),
    path('donations/', views.donations, name='donations'),
    path('nearby-donors/', views.nearby_donors, name='nearby_donors'),

    # Donor directory
    path('donors/', views.donor_list, name='donor_list'),
    path('donors/search/', views.donor_search, name='donor_search'),
    path('donors/<int:pk>/', views.donor_detail, name='donor_detail'),
]
