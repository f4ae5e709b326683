# blood_requests/serializers.py
from rest_framework import serializers

from accounts.models import BloodGroup
from accounts.serializers import UserSummarySerializer
from api.serializers import LocationSerializer, location_representation
from .models import BloodRequest, DonorResponse, Fulfillment


class DonorResponseSerializer(serializers.ModelSerializer):
    donor = UserSummarySerializer(read_only=True)
    canDonate = serializers.BooleanField(source='can_donate', read_only=True)
    respondedAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = DonorResponse
        fields = ['id', 'donor', 'message', 'canDonate', 'respondedAt']
        read_only_fields = fields


class FulfillmentSerializer(serializers.ModelSerializer):
    donor = UserSummarySerializer(read_only=True)
    unitsProvided = serializers.IntegerField(source='units_provided', read_only=True)
    fulfilledAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = Fulfillment
        fields = ['id', 'donor', 'unitsProvided', 'fulfilledAt']
        read_only_fields = fields


class BloodRequestSerializer(serializers.ModelSerializer):
    """
    Full request document including responses and fulfillments
    """
    requester = UserSummarySerializer(read_only=True)
    patientName = serializers.CharField(source='patient_name', read_only=True)
    bloodGroup = serializers.CharField(source='blood_group', read_only=True)
    unitsNeeded = serializers.IntegerField(source='units_needed', read_only=True)
    unitsFulfilled = serializers.IntegerField(source='units_fulfilled', read_only=True)
    location = serializers.SerializerMethodField()
    isEmergency = serializers.BooleanField(source='is_emergency', read_only=True)
    responses = DonorResponseSerializer(many=True, read_only=True)
    fulfilledBy = FulfillmentSerializer(source='fulfillments', many=True, read_only=True)
    fulfilledAt = serializers.DateTimeField(source='fulfilled_at', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = BloodRequest
        fields = [
            'id',
            'requester',
            'patientName',
            'bloodGroup',
            'urgency',
            'contact',
            'unitsNeeded',
            'unitsFulfilled',
            'notes',
            'location',
            'status',
            'isEmergency',
            'responses',
            'fulfilledBy',
            'fulfilledAt',
            'createdAt',
            'updatedAt',
        ]
        read_only_fields = fields

    def get_location(self, obj):
        return location_representation(obj)


class BloodRequestSummarySerializer(serializers.ModelSerializer):
    """Request reference embedded in notifications and donation history"""
    patientName = serializers.CharField(source='patient_name', read_only=True)
    bloodGroup = serializers.CharField(source='blood_group', read_only=True)
    unitsNeeded = serializers.IntegerField(source='units_needed', read_only=True)
    location = serializers.SerializerMethodField()

    class Meta:
        model = BloodRequest
        fields = ['id', 'patientName', 'bloodGroup', 'urgency', 'unitsNeeded', 'location', 'status']
        read_only_fields = fields

    def get_location(self, obj):
        return location_representation(obj)


class BloodRequestCreateSerializer(serializers.Serializer):
    bloodGroup = serializers.ChoiceField(choices=BloodGroup.choices)
    urgency = serializers.ChoiceField(
        choices=BloodRequest.Urgency.choices,
        required=False,
        default=BloodRequest.Urgency.NORMAL
    )
    contact = serializers.CharField(max_length=100)
    location = LocationSerializer()
    units = serializers.IntegerField(min_value=1)
    patientName = serializers.CharField(max_length=100, required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True)

    def validate_location(self, value):
        if not (value.get('address') or '').strip():
            raise serializers.ValidationError('Address is required.')
        return value

    def to_model_data(self):
        """Translate the validated payload into BloodRequest field names"""
        data = self.validated_data
        longitude, latitude = data['location']['coordinates']
        return {
            'blood_group': data['bloodGroup'],
            'urgency': data['urgency'],
            'contact': data['contact'],
            'latitude': latitude,
            'longitude': longitude,
            'address': data['location']['address'].strip(),
            'units_needed': data['units'],
            'patient_name': data.get('patientName') or 'Anonymous',
            'notes': data.get('notes', ''),
        }


class BloodRequestUpdateSerializer(serializers.Serializer):
    """
    Owner edits of an open request. Every field is optional; status is
    changed through the status endpoint only.
    """
    bloodGroup = serializers.ChoiceField(choices=BloodGroup.choices, required=False)
    urgency = serializers.ChoiceField(choices=BloodRequest.Urgency.choices, required=False)
    contact = serializers.CharField(max_length=100, required=False)
    location = LocationSerializer(required=False)
    units = serializers.IntegerField(min_value=1, required=False)
    patientName = serializers.CharField(max_length=100, required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True)

    def validate_location(self, value):
        errors = {}
        if not value.get('coordinates'):
            errors['coordinates'] = ['This field is required.']
        if not (value.get('address') or '').strip():
            errors['address'] = ['Address is required.']
        if errors:
            raise serializers.ValidationError(errors)
        return value

    def validate(self, attrs):
        if 'status' in self.initial_data:
            raise serializers.ValidationError({'status': ['Use the status endpoint to change the status.']})
        if not attrs:
            raise serializers.ValidationError('Nothing to update.')
        return attrs

    def to_model_data(self):
        data = self.validated_data
        changes = {}

        simple_fields = {
            'bloodGroup': 'blood_group',
            'urgency': 'urgency',
            'contact': 'contact',
            'units': 'units_needed',
            'notes': 'notes',
        }
        for key, field in simple_fields.items():
            if key in data:
                changes[field] = data[key]

        if 'patientName' in data:
            changes['patient_name'] = data['patientName'] or 'Anonymous'
        if 'location' in data:
            changes['longitude'], changes['latitude'] = data['location']['coordinates']
            changes['address'] = data['location']['address'].strip()

        return changes


class RespondSerializer(serializers.Serializer):
    message = serializers.CharField(required=False, allow_blank=True, default='')
    canDonate = serializers.BooleanField(required=False, default=True)


class FulfillSerializer(serializers.Serializer):
    donorId = serializers.IntegerField()
    unitsProvided = serializers.IntegerField(min_value=1)


class StatusSerializer(serializers.Serializer):
    # Validated against the canonical enum (and legacy aliases) by the service
    status = serializers.CharField()


class DonationSerializer(serializers.ModelSerializer):
    """One entry of a donor's donation history"""
    bloodRequest = BloodRequestSummarySerializer(source='blood_request', read_only=True)
    requester = UserSummarySerializer(source='blood_request.requester', read_only=True)
    unitsProvided = serializers.IntegerField(source='units_provided', read_only=True)
    donatedAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = Fulfillment
        fields = ['id', 'bloodRequest', 'requester', 'unitsProvided', 'donatedAt']
        read_only_fields = fields
