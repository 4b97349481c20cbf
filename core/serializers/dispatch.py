from rest_framework import serializers

from core.models import Ambulance, County, DispatchLog, Emergency, EmergencyResponse, Hospital
from core.serializers.fields import CleanCharField, StatusSerializer, available_ambulance, text


class AmbulanceSerializer(serializers.Serializer):
    id = serializers.IntegerField(read_only=True)
    registrationNumber = CleanCharField(max_length=32, source='registration_number')
    type = serializers.ChoiceField(choices=Ambulance.TYPE_CHOICES, required=False)
    hospitalId = serializers.PrimaryKeyRelatedField(
        source='hospital', queryset=Hospital.objects.all(), required=False, allow_null=True
    )
    countyId = serializers.PrimaryKeyRelatedField(
        source='county', queryset=County.objects.all(), required=False, allow_null=True
    )
    status = serializers.ChoiceField(choices=Ambulance.STATUS_CHOICES, required=False)
    driverName = text(128, source='driver_name')
    driverPhone = text(32, source='driver_phone')
    equipmentLevel = serializers.ChoiceField(
        choices=Ambulance.EQUIPMENT_LEVEL_CHOICES, required=False, source='equipment_level'
    )
    isOperational = serializers.BooleanField(required=False, source='is_operational')
    fuelLevel = serializers.IntegerField(
        required=False, allow_null=True, min_value=0, max_value=100, source='fuel_level'
    )
    latitude = serializers.FloatField(read_only=True)
    longitude = serializers.FloatField(read_only=True)
    locationUpdatedAt = serializers.DateTimeField(read_only=True, source='location_updated_at')
    nextServiceDate = serializers.DateField(required=False, allow_null=True, source='next_service_date')
    updatedAt = serializers.DateTimeField(read_only=True, source='updated_at')

    def validate_registrationNumber(self, v):
        return v.strip().upper()


class AmbulanceLocationSerializer(serializers.Serializer):
    latitude = serializers.FloatField(min_value=-90, max_value=90)
    longitude = serializers.FloatField(min_value=-180, max_value=180)
    accuracy = serializers.FloatField(required=False, allow_null=True, min_value=0)
    timestamp = serializers.DateTimeField(required=False)


class AmbulanceMaintenanceSerializer(serializers.Serializer):
    id = serializers.IntegerField(read_only=True)
    ambulanceId = serializers.IntegerField(read_only=True, source='ambulance_id')
    type = CleanCharField(max_length=64)
    description = CleanCharField()
    cost = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    performedBy = CleanCharField(max_length=255, source='performed_by')
    performedAt = serializers.DateTimeField(required=False, source='performed_at')
    nextServiceDate = serializers.DateField(required=False, allow_null=True, source='next_service_date')
    recordedById = serializers.IntegerField(read_only=True, source='recorded_by_id')
    createdAt = serializers.DateTimeField(read_only=True, source='created_at')


class NearestAmbulanceSerializer(serializers.Serializer):
    """Where help is needed and what it must carry."""
    latitude = serializers.FloatField(min_value=-90, max_value=90)
    longitude = serializers.FloatField(min_value=-180, max_value=180)
    emergencyType = text(64, source='emergency_type')
    severity = serializers.ChoiceField(choices=DispatchLog.SEVERITY_CHOICES, required=False)
    requiredEquipment = serializers.BooleanField(required=False, default=False, source='required_equipment')
    limit = serializers.IntegerField(required=False, default=5, min_value=1, max_value=50)


class DispatchSerializer(serializers.Serializer):
    id = serializers.IntegerField(read_only=True)
    dispatchNumber = serializers.CharField(read_only=True, source='dispatch_number')
    callerPhone = CleanCharField(max_length=32, source='caller_phone')
    callerName = text(128, source='caller_name')
    callerLocation = CleanCharField(max_length=255, source='caller_location')
    emergencyType = CleanCharField(max_length=64, source='emergency_type')
    severity = serializers.ChoiceField(choices=DispatchLog.SEVERITY_CHOICES)
    description = CleanCharField()
    countyId = serializers.PrimaryKeyRelatedField(
        source='county', queryset=County.objects.all(), required=False, allow_null=True
    )
    destinationHospitalId = serializers.PrimaryKeyRelatedField(
        source='destination_hospital', queryset=Hospital.objects.all(), required=False, allow_null=True
    )
    ambulanceId = serializers.PrimaryKeyRelatedField(
        source='ambulance', queryset=Ambulance.objects.all(), required=False, allow_null=True
    )
    status = serializers.CharField(read_only=True)
    callReceived = serializers.DateTimeField(required=False, source='call_received')
    assessmentStarted = serializers.DateTimeField(read_only=True, source='assessment_started')
    dispatched = serializers.DateTimeField(read_only=True)
    enRoute = serializers.DateTimeField(read_only=True, source='en_route')
    arrivedOnScene = serializers.DateTimeField(read_only=True, source='arrived_on_scene')
    departedScene = serializers.DateTimeField(read_only=True, source='departed_scene')
    arrivedHospital = serializers.DateTimeField(read_only=True, source='arrived_hospital')
    handoverCompleted = serializers.DateTimeField(read_only=True, source='handover_completed')
    cleared = serializers.DateTimeField(read_only=True)
    cancelledAt = serializers.DateTimeField(read_only=True, source='cancelled_at')
    responseTime = serializers.IntegerField(read_only=True, source='response_time')
    transportTime = serializers.IntegerField(read_only=True, source='transport_time')
    notes = text()
    createdById = serializers.IntegerField(read_only=True, source='created_by_id')
    updatedAt = serializers.DateTimeField(read_only=True, source='updated_at')

    def validate_ambulanceId(self, v):
        return available_ambulance(self, v)


class DispatchStatusSerializer(StatusSerializer):
    notes = text()
    ambulanceId = serializers.PrimaryKeyRelatedField(
        source='ambulance', queryset=Ambulance.objects.all(), required=False, allow_null=True
    )
    destinationHospitalId = serializers.PrimaryKeyRelatedField(
        source='destination_hospital', queryset=Hospital.objects.all(), required=False, allow_null=True
    )
    dispatched = serializers.DateTimeField(required=False)
    enRoute = serializers.DateTimeField(required=False, source='en_route')
    arrivedOnScene = serializers.DateTimeField(required=False, source='arrived_on_scene')
    departedScene = serializers.DateTimeField(required=False, source='departed_scene')
    arrivedHospital = serializers.DateTimeField(required=False, source='arrived_hospital')
    handoverCompleted = serializers.DateTimeField(required=False, source='handover_completed')
    cleared = serializers.DateTimeField(required=False)


class EmergencySerializer(serializers.Serializer):
    id = serializers.IntegerField(read_only=True)
    emergencyNumber = serializers.CharField(read_only=True, source='emergency_number')
    type = CleanCharField(max_length=64)
    severity = serializers.ChoiceField(choices=DispatchLog.SEVERITY_CHOICES)
    countyId = serializers.PrimaryKeyRelatedField(source='county', queryset=County.objects.all())
    location = CleanCharField(max_length=255)
    description = CleanCharField()
    casualties = serializers.IntegerField(required=False, min_value=0)
    status = serializers.ChoiceField(choices=Emergency.STATUS_CHOICES, required=False)
    reportedAt = serializers.DateTimeField(required=False, source='reported_at')
    reportedById = serializers.IntegerField(read_only=True, source='reported_by_id')
    updatedAt = serializers.DateTimeField(read_only=True, source='updated_at')


class EmergencyResponseSerializer(serializers.Serializer):
    id = serializers.IntegerField(read_only=True)
    emergencyId = serializers.IntegerField(read_only=True, source='emergency_id')
    ambulanceId = serializers.PrimaryKeyRelatedField(
        source='ambulance', queryset=Ambulance.objects.all(), required=False, allow_null=True
    )
    hospitalId = serializers.PrimaryKeyRelatedField(
        source='hospital', queryset=Hospital.objects.all(), required=False, allow_null=True
    )
    status = serializers.CharField(read_only=True)
    notes = text()
    dispatchedAt = serializers.DateTimeField(read_only=True, source='dispatched_at')
    arrivedAt = serializers.DateTimeField(read_only=True, source='arrived_at')
    departedAt = serializers.DateTimeField(read_only=True, source='departed_at')
    completedAt = serializers.DateTimeField(read_only=True, source='completed_at')
    cancelledAt = serializers.DateTimeField(read_only=True, source='cancelled_at')

    def validate_ambulanceId(self, v):
        return available_ambulance(self, v)


class EmergencyResponseStatusSerializer(StatusSerializer):
    notes = text()
    arrivedAt = serializers.DateTimeField(required=False, source='arrived_at')
    departedAt = serializers.DateTimeField(required=False, source='departed_at')
    completedAt = serializers.DateTimeField(required=False, source='completed_at')
