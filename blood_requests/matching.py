"""
Proximity queries for donors and blood requests.

Coordinates are stored as plain latitude/longitude columns with a composite
index. A bounding box narrows the candidates in the database, then the exact
haversine distance decides. All radii are in kilometers.
"""
import logging

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db.models import Q

from algorithms.haversine import bounding_box, find_nearby, haversine_distance, longitude_ranges

logger = logging.getLogger(__name__)


def _within_box(queryset, latitude, longitude, radius_km):
    min_lat, max_lat, min_lon, max_lon = bounding_box(latitude, longitude, radius_km)

    # Two ranges when the circle crosses the antimeridian
    longitude_filter = Q()
    for low, high in longitude_ranges(min_lon, max_lon):
        longitude_filter |= Q(longitude__gte=low, longitude__lte=high)

    return queryset.filter(
        longitude_filter,
        latitude__gte=min_lat,
        latitude__lte=max_lat,
    )


def nearby_donors(latitude, longitude, blood_group=None, radius_km=None, exclude=None):
    """
    Find available donors around a point

    Args:
        latitude, longitude: Center point
        blood_group: Exact blood group to match (None matches any)
        radius_km: Search radius, defaults to NEARBY_DONOR_RADIUS_KM
        exclude: User id that must never be returned (the requester)

    Returns:
        List of tuples: (donor, distance_km) sorted by distance
    """
    if radius_km is None:
        radius_km = settings.NEARBY_DONOR_RADIUS_KM

    User = get_user_model()
    candidates = User.objects.filter(
        is_donor=True,
        is_available=True,
        is_active=True,
        latitude__isnull=False,
        longitude__isnull=False,
    )
    if blood_group:
        candidates = candidates.filter(blood_group=blood_group)
    if exclude is not None:
        candidates = candidates.exclude(pk=exclude)

    candidates = _within_box(candidates, latitude, longitude, radius_km)
    matches = find_nearby(latitude, longitude, candidates, max_distance=radius_km)

    logger.debug(
        "%s donor(s) within %skm of (%s, %s) for blood group %s",
        len(matches), radius_km, latitude, longitude, blood_group or 'any'
    )
    return matches


def donors_for_request(blood_request, radius_km=None):
    """Available donors of the request's blood group near the request, never its requester"""
    return nearby_donors(
        blood_request.latitude,
        blood_request.longitude,
        blood_group=blood_request.blood_group,
        radius_km=radius_km,
        exclude=blood_request.requester_id,
    )


def requests_within(queryset, latitude, longitude, radius_km):
    """
    Restrict a BloodRequest queryset to requests within radius_km of a point.

    Returns a queryset so callers can keep ordering and paginating it.
    """
    boxed = _within_box(queryset, latitude, longitude, radius_km)
    ids = [
        pk for pk, lat, lon in boxed.values_list('id', 'latitude', 'longitude')
        if haversine_distance(latitude, longitude, lat, lon) <= radius_km
    ]
    return queryset.filter(pk__in=ids)
