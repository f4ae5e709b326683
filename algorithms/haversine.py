"""
Haversine Algorithm - Calculate distance between two geographical points
Used to find donors near a blood request and requests near a donor
"""

import math

# Radius of earth in kilometers
EARTH_RADIUS_KM = 6371

# Length of one degree of latitude in kilometers
KM_PER_DEGREE = 111.32


def haversine_distance(lat1, lon1, lat2, lon2):
    """
    Calculate straight-line distance between two points.
    Note: This is "as the crow flies" distance, not road distance.

    Args:
        lat1, lon1: Latitude and longitude of point 1
        lat2, lon2: Latitude and longitude of point 2

    Returns:
        Distance in kilometers
    """
    # Convert decimal degrees to radians
    lat1, lon1, lat2, lon2 = map(math.radians, [lat1, lon1, lat2, lon2])

    # Haversine formula
    dlat = lat2 - lat1
    dlon = lon2 - lon1

    a = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    c = 2 * math.asin(math.sqrt(min(1.0, a)))

    return c * EARTH_RADIUS_KM


def distance_between(point_a, point_b):
    """
    Distance in kilometers between two GeoJSON-ordered pairs.

    Args:
        point_a, point_b: (longitude, latitude) sequences

    Returns:
        Distance in kilometers
    """
    return haversine_distance(point_a[1], point_a[0], point_b[1], point_b[0])


def bounding_box(lat, lon, radius_km):
    """
    Latitude/longitude box that fully contains the circle of radius_km
    around (lat, lon). Used as a pre-filter on indexed columns before
    the exact haversine check.

    Longitudes are not wrapped: near the antimeridian min_lon may be below
    -180 or max_lon above 180. longitude_ranges() turns them into ranges
    a database can compare against.

    Returns:
        (min_lat, max_lat, min_lon, max_lon)
    """
    lat_delta = radius_km / KM_PER_DEGREE

    cos_lat = math.cos(math.radians(lat))
    if cos_lat < 1e-6:
        lon_delta = 180.0
    else:
        lon_delta = min(180.0, radius_km / (KM_PER_DEGREE * cos_lat))

    if lon_delta >= 180.0:
        min_lon, max_lon = -180.0, 180.0
    else:
        min_lon, max_lon = lon - lon_delta, lon + lon_delta

    return (
        max(-90.0, lat - lat_delta),
        min(90.0, lat + lat_delta),
        min_lon,
        max_lon,
    )


def longitude_ranges(min_lon, max_lon):
    """
    Split a longitude span into ranges inside [-180, 180].

    A span crossing the antimeridian such as (170, 190) becomes
    [(170, 180), (-180, -170)].
    """
    if max_lon - min_lon >= 360.0:
        return [(-180.0, 180.0)]
    if min_lon < -180.0:
        return [(min_lon + 360.0, 180.0), (-180.0, max_lon)]
    if max_lon > 180.0:
        return [(min_lon, 180.0), (-180.0, max_lon - 360.0)]
    return [(min_lon, max_lon)]


def find_nearby(lat, lon, items, max_distance=50):
    """
    Find all items within a specified distance from a point

    Args:
        lat, lon: Center point
        items: QuerySet or list of objects with latitude/longitude
        max_distance: Maximum distance in km (default 50km)

    Returns:
        List of tuples: (item, distance) sorted by distance
    """
    nearby = []

    for item in items:
        if item.latitude is None or item.longitude is None:
            continue

        distance = haversine_distance(lat, lon, item.latitude, item.longitude)
        if distance <= max_distance:
            nearby.append((item, distance))

    # Sort by distance (closest first)
    nearby.sort(key=lambda x: x[1])

    return nearby
