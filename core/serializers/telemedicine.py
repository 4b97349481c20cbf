from rest_framework import serializers

from core.models import Hospital, Patient, Staff, TelemedicineSession
from core.serializers.fields import CleanCharField, StatusSerializer, text


class TelemedicineSessionSerializer(serializers.Serializer):
    id = serializers.IntegerField(read_only=True)
    sessionNumber = serializers.CharField(read_only=True, source='session_number')
    patientId = serializers.PrimaryKeyRelatedField(source='patient', queryset=Patient.objects.all())
    specialistId = serializers.PrimaryKeyRelatedField(source='specialist', queryset=Staff.objects.all())
    requestingHospitalId = serializers.PrimaryKeyRelatedField(
        source='requesting_hospital', queryset=Hospital.objects.all()
    )
    consultationType = serializers.ChoiceField(
        choices=TelemedicineSession.CONSULTATION_TYPE_CHOICES, source='consultation_type'
    )
    chiefComplaint = CleanCharField(source='chief_complaint')
    status = serializers.CharField(read_only=True)
    scheduledTime = serializers.DateTimeField(source='scheduled_time')
    startTime = serializers.DateTimeField(read_only=True, source='start_time')
    endTime = serializers.DateTimeField(read_only=True, source='end_time')
    cancelledAt = serializers.DateTimeField(read_only=True, source='cancelled_at')
    duration = serializers.IntegerField(read_only=True)
    diagnosis = text()
    recommendations = text()
    prescriptions = serializers.ListField(required=False)
    connectionQuality = serializers.ChoiceField(
        choices=TelemedicineSession.CONNECTION_QUALITY_CHOICES, required=False, allow_blank=True,
        source='connection_quality',
    )
    requiresInPersonVisit = serializers.BooleanField(required=False, source='requires_in_person_visit')
    requiresReferral = serializers.BooleanField(required=False, source='requires_referral')
    createdById = serializers.IntegerField(read_only=True, source='created_by_id')
    updatedAt = serializers.DateTimeField(read_only=True, source='updated_at')

    def validate_specialistId(self, v):
        if not v.is_active:
            raise serializers.ValidationError('Specialist is no longer active')
        if not v.telemedicine_enabled:
            raise serializers.ValidationError('Specialist is not enabled for telemedicine')
        return v


class TelemedicineStatusSerializer(StatusSerializer):
    diagnosis = text()
    recommendations = text()
    prescriptions = serializers.ListField(required=False)
    connectionQuality = serializers.ChoiceField(
        choices=TelemedicineSession.CONNECTION_QUALITY_CHOICES, required=False, allow_blank=True,
        source='connection_quality',
    )
    requiresInPersonVisit = serializers.BooleanField(required=False, source='requires_in_person_visit')
    requiresReferral = serializers.BooleanField(required=False, source='requires_referral')
    startTime = serializers.DateTimeField(required=False, source='start_time')
    endTime = serializers.DateTimeField(required=False, source='end_time')
