"""Shared builders for tests that need users and blood requests"""
from itertools import count

from django.contrib.auth import get_user_model

from blood_requests.models import BloodRequest

User = get_user_model()

# Kathmandu
KTM_LAT, KTM_LON = 27.7172, 85.3240

_sequence = count(1)


def make_user(blood_group='O-', latitude=KTM_LAT, longitude=KTM_LON, **extra):
    n = next(_sequence)
    fields = {
        'username': f'user{n}@example.com',
        'email': f'user{n}@example.com',
        'password': 'secret123',
        'name': f'User {n}',
        'phone': f'98000000{n:02d}',
        'blood_group': blood_group,
        'latitude': latitude,
        'longitude': longitude,
        'is_donor': True,
        'is_available': True,
    }
    fields.update(extra)
    return User.objects.create_user(**fields)


def make_request(requester, blood_group='O-', units_needed=2, latitude=KTM_LAT, longitude=KTM_LON, **extra):
    fields = {
        'patient_name': 'Test Patient',
        'blood_group': blood_group,
        'urgency': BloodRequest.Urgency.URGENT,
        'contact': '9800000000',
        'units_needed': units_needed,
        'latitude': latitude,
        'longitude': longitude,
        'address': 'Bir Hospital, Kathmandu',
    }
    fields.update(extra)
    return BloodRequest.objects.create(requester=requester, **fields)
