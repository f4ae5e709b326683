# api/serializers.py - shared pieces of the public JSON schema

from rest_framework import serializers


class LocationSerializer(serializers.Serializer):
    """
    GeoJSON-style point: {"type": "Point", "coordinates": [lon, lat], "address": "..."}
    """
    type = serializers.ChoiceField(choices=['Point'], required=False, default='Point')
    coordinates = serializers.ListField(
        child=serializers.FloatField(),
        min_length=2,
        max_length=2,
    )
    address = serializers.CharField(required=False, allow_blank=True, max_length=255, default='')

    def validate_coordinates(self, value):
        longitude, latitude = value
        if not -180 <= longitude <= 180 or not -90 <= latitude <= 90:
            raise serializers.ValidationError('Coordinates must be [longitude, latitude] in degrees.')
        return value


def location_representation(obj):
    """Serialize latitude/longitude/address columns back into the point shape"""
    if obj.latitude is None or obj.longitude is None:
        return None
    return {
        'type': 'Point',
        'coordinates': [obj.longitude, obj.latitude],
        'address': obj.address,
    }


class NearbyQuerySerializer(serializers.Serializer):
    """Query-string parameters for proximity searches (radius in km)"""
    latitude = serializers.FloatField(min_value=-90, max_value=90)
    longitude = serializers.FloatField(min_value=-180, max_value=180)
    radius = serializers.FloatField(min_value=0, required=False)
