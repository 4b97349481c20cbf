import bleach
from django.utils import timezone
from rest_framework import serializers

from core.models import Hospital, Patient, TriageEntry
from core.serializers.fields import CleanCharField, text

BLOOD_TYPES = ['A+', 'A-', 'B+', 'B-', 'AB+', 'AB-', 'O+', 'O-']


class PatientSerializer(serializers.Serializer):
    id = serializers.IntegerField(read_only=True)
    patientNumber = serializers.CharField(read_only=True, source='patient_number')
    firstName = CleanCharField(max_length=128, source='first_name')
    lastName = CleanCharField(max_length=128, source='last_name')
    dateOfBirth = serializers.DateField(source='date_of_birth')
    gender = serializers.ChoiceField(choices=Patient.GENDER_CHOICES)
    phone = text(32)
    nationalId = CleanCharField(max_length=32, required=False, allow_null=True, allow_blank=True, source='national_id')
    bloodType = serializers.ChoiceField(choices=BLOOD_TYPES, required=False, allow_blank=True, source='blood_type')
    allergies = serializers.ListField(child=CleanCharField(max_length=128), required=False)
    chronicConditions = serializers.ListField(
        child=CleanCharField(max_length=128), required=False, source='chronic_conditions'
    )
    nextOfKinName = text(128, source='next_of_kin_name')
    nextOfKinPhone = text(32, source='next_of_kin_phone')
    currentHospitalId = serializers.PrimaryKeyRelatedField(
        source='current_hospital', queryset=Hospital.objects.all(), required=False, allow_null=True
    )
    currentStatus = serializers.ChoiceField(
        choices=Patient.STATUS_CHOICES, required=False, source='current_status'
    )
    createdAt = serializers.DateTimeField(read_only=True, source='created_at')
    updatedAt = serializers.DateTimeField(read_only=True, source='updated_at')

    def validate_dateOfBirth(self, v):
        if v > timezone.localdate():
            raise serializers.ValidationError('Date of birth cannot be in the future')
        return v

    def validate_nationalId(self, v):
        v = (v or '').strip()
        return v or None


class TriageSerializer(serializers.Serializer):
    id = serializers.IntegerField(read_only=True)
    triageNumber = serializers.CharField(read_only=True, source='triage_number')
    patientId = serializers.PrimaryKeyRelatedField(source='patient', queryset=Patient.objects.all())
    hospitalId = serializers.PrimaryKeyRelatedField(source='hospital', queryset=Hospital.objects.all())
    chiefComplaint = CleanCharField(source='chief_complaint')
    triageLevel = serializers.ChoiceField(choices=TriageEntry.LEVEL_CHOICES, source='triage_level')
    status = serializers.ChoiceField(choices=TriageEntry.STATUS_CHOICES, required=False)
    arrivalMode = serializers.ChoiceField(
        choices=TriageEntry.ARRIVAL_MODE_CHOICES, required=False, source='arrival_mode'
    )
    vitalSigns = serializers.DictField(required=False, source='vital_signs')
    notes = text()
    assessedById = serializers.IntegerField(read_only=True, source='assessed_by_id')
    arrivalTime = serializers.DateTimeField(required=False, source='arrival_time')
    createdAt = serializers.DateTimeField(read_only=True, source='created_at')

    def validate_vitalSigns(self, v):
        return {bleach.clean(str(k), tags=[], strip=True): val for k, val in v.items()}
