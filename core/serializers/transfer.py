from rest_framework import serializers

from core.models import Ambulance, Hospital, Patient, Transfer, TriageEntry
from core.serializers.fields import CleanCharField, StatusSerializer, available_ambulance, current, text


class TransferSerializer(serializers.Serializer):
    id = serializers.IntegerField(read_only=True)
    transferNumber = serializers.CharField(read_only=True, source='transfer_number')
    patientId = serializers.PrimaryKeyRelatedField(source='patient', queryset=Patient.objects.all())
    originHospitalId = serializers.PrimaryKeyRelatedField(
        source='origin_hospital', queryset=Hospital.objects.all()
    )
    destinationHospitalId = serializers.PrimaryKeyRelatedField(
        source='destination_hospital', queryset=Hospital.objects.all()
    )
    triageEntryId = serializers.PrimaryKeyRelatedField(
        source='triage_entry', queryset=TriageEntry.objects.all(), required=False, allow_null=True
    )
    ambulanceId = serializers.PrimaryKeyRelatedField(
        source='ambulance', queryset=Ambulance.objects.all(), required=False, allow_null=True
    )
    status = serializers.CharField(read_only=True)
    urgency = serializers.ChoiceField(choices=Transfer.URGENCY_CHOICES)
    transportMode = serializers.ChoiceField(choices=Transfer.TRANSPORT_MODE_CHOICES, source='transport_mode')
    reason = CleanCharField()
    diagnosis = CleanCharField()
    vitalSigns = serializers.DictField(required=False, source='vital_signs')
    notes = text()
    bedReserved = serializers.BooleanField(required=False, source='bed_reserved')
    bedNumber = text(32, source='bed_number')
    rejectionReason = serializers.CharField(read_only=True, source='rejection_reason')
    cancellationReason = serializers.CharField(read_only=True, source='cancellation_reason')
    initiatedById = serializers.IntegerField(read_only=True, source='initiated_by_id')
    approvedById = serializers.IntegerField(read_only=True, source='approved_by_id')
    requestedAt = serializers.DateTimeField(read_only=True, source='requested_at')
    approvedAt = serializers.DateTimeField(read_only=True, source='approved_at')
    rejectedAt = serializers.DateTimeField(read_only=True, source='rejected_at')
    departureTime = serializers.DateTimeField(read_only=True, source='departure_time')
    arrivalTime = serializers.DateTimeField(read_only=True, source='arrival_time')
    completedAt = serializers.DateTimeField(read_only=True, source='completed_at')
    cancelledAt = serializers.DateTimeField(read_only=True, source='cancelled_at')
    updatedAt = serializers.DateTimeField(read_only=True, source='updated_at')

    def validate_ambulanceId(self, v):
        return available_ambulance(self, v)

    def validate(self, attrs):
        origin = current(self, attrs, 'origin_hospital')
        destination = current(self, attrs, 'destination_hospital')
        if origin is not None and destination is not None and origin.pk == destination.pk:
            raise serializers.ValidationError(
                {'destinationHospitalId': ['Destination must differ from the origin hospital']}
            )
        patient = attrs.get('patient')
        if patient is not None and origin is not None and patient.current_hospital_id != origin.pk:
            raise serializers.ValidationError(
                {'patientId': ['Patient is not at the specified origin hospital']}
            )
        triage = attrs.get('triage_entry')
        if triage is not None and patient is not None and triage.patient_id != patient.pk:
            raise serializers.ValidationError({'triageEntryId': ['Triage entry belongs to another patient']})
        return attrs


class TransferStatusSerializer(StatusSerializer):
    notes = text()
    rejectionReason = text(source='rejection_reason')
    cancellationReason = text(source='cancellation_reason')
    bedNumber = text(32, source='bed_number')
    ambulanceId = serializers.PrimaryKeyRelatedField(
        source='ambulance', queryset=Ambulance.objects.all(), required=False, allow_null=True
    )
    departureTime = serializers.DateTimeField(required=False, source='departure_time')
    arrivalTime = serializers.DateTimeField(required=False, source='arrival_time')

    def validate(self, attrs):
        if attrs.get('status') == 'REJECTED' and not attrs.get('rejection_reason'):
            raise serializers.ValidationError({'rejectionReason': ['A reason is required to reject a transfer']})
        return attrs
