from rest_framework import serializers

from core import roles
from core.models import Hospital, Staff, StaffSchedule, User
from core.serializers.fields import CleanCharField, current, text


class StaffSerializer(serializers.Serializer):
    id = serializers.IntegerField(read_only=True)
    staffNumber = serializers.CharField(read_only=True, source='staff_number')
    userId = serializers.PrimaryKeyRelatedField(
        source='user', queryset=User.objects.all(), required=False, allow_null=True
    )
    firstName = CleanCharField(max_length=128, source='first_name')
    lastName = CleanCharField(max_length=128, source='last_name')
    email = serializers.EmailField()
    phone = CleanCharField(max_length=32)
    role = serializers.CharField(max_length=32)
    employmentType = serializers.ChoiceField(choices=Staff.EMPLOYMENT_TYPE_CHOICES, source='employment_type')
    hospitalId = serializers.PrimaryKeyRelatedField(source='hospital', queryset=Hospital.objects.all())
    specialization = text(128)
    licenseNumber = text(64, source='license_number')
    hireDate = serializers.DateField(source='hire_date')
    telemedicineEnabled = serializers.BooleanField(required=False, source='telemedicine_enabled')
    isActive = serializers.BooleanField(read_only=True, source='is_active')
    createdAt = serializers.DateTimeField(read_only=True, source='created_at')

    def validate_email(self, v):
        return v.strip().lower()

    def validate_role(self, v):
        # aliases such as "medical_officer" are stored under their canonical role
        role = roles.normalize_role(v)
        if role not in roles.ROLE_PERMISSIONS:
            raise serializers.ValidationError(f'Unknown role "{v}"')
        return role


class StaffScheduleSerializer(serializers.Serializer):
    id = serializers.IntegerField(read_only=True)
    staffId = serializers.IntegerField(read_only=True, source='staff_id')
    startTime = serializers.DateTimeField(source='start_time')
    endTime = serializers.DateTimeField(source='end_time')
    shiftType = serializers.ChoiceField(choices=StaffSchedule.SHIFT_CHOICES, source='shift_type')
    notes = text()
    isActive = serializers.BooleanField(read_only=True, source='is_active')
    createdById = serializers.IntegerField(read_only=True, source='created_by_id')

    def validate(self, attrs):
        start = current(self, attrs, 'start_time')
        end = current(self, attrs, 'end_time')
        if start and end and end <= start:
            raise serializers.ValidationError({'endTime': ['Must be after startTime']})
        return attrs
