from rest_framework import serializers

from core.models import County, Hospital
from core.serializers.fields import CleanCharField, current, text


class HospitalSerializer(serializers.Serializer):
    id = serializers.IntegerField(read_only=True)
    name = CleanCharField(max_length=255)
    code = CleanCharField(max_length=32)
    mflCode = text(32, source='mfl_code')
    type = serializers.ChoiceField(choices=Hospital.TYPE_CHOICES)
    level = serializers.ChoiceField(choices=Hospital.LEVEL_CHOICES)
    ownership = serializers.ChoiceField(choices=Hospital.OWNERSHIP_CHOICES)
    countyId = serializers.PrimaryKeyRelatedField(source='county', queryset=County.objects.all())
    subCounty = CleanCharField(max_length=128, source='sub_county')
    ward = CleanCharField(max_length=128)
    address = CleanCharField(max_length=255)
    latitude = serializers.FloatField(required=False, allow_null=True, min_value=-90, max_value=90)
    longitude = serializers.FloatField(required=False, allow_null=True, min_value=-180, max_value=180)
    phone = CleanCharField(max_length=32)
    emergencyPhone = text(32, source='emergency_phone')
    email = serializers.EmailField(required=False, allow_blank=True)
    totalBeds = serializers.IntegerField(required=False, min_value=0, source='total_beds')
    functionalBeds = serializers.IntegerField(required=False, min_value=0, source='functional_beds')
    icuBeds = serializers.IntegerField(required=False, min_value=0, source='icu_beds')
    hdUnitBeds = serializers.IntegerField(required=False, min_value=0, source='hd_unit_beds')
    maternityBeds = serializers.IntegerField(required=False, min_value=0, source='maternity_beds')
    pediatricBeds = serializers.IntegerField(required=False, min_value=0, source='pediatric_beds')
    emergencyBeds = serializers.IntegerField(required=False, min_value=0, source='emergency_beds')
    isolationBeds = serializers.IntegerField(required=False, min_value=0, source='isolation_beds')
    operationalStatus = serializers.ChoiceField(
        choices=Hospital.OPERATIONAL_STATUS_CHOICES, required=False, source='operational_status'
    )
    availableBeds = serializers.IntegerField(read_only=True, source='available_beds')
    availableIcuBeds = serializers.IntegerField(read_only=True, source='available_icu_beds')
    availableEmergencyBeds = serializers.IntegerField(read_only=True, source='available_emergency_beds')
    capacityUpdatedAt = serializers.DateTimeField(read_only=True, source='capacity_updated_at')
    acceptingPatients = serializers.BooleanField(required=False, source='accepting_patients')
    isActive = serializers.BooleanField(required=False, source='is_active')
    createdAt = serializers.DateTimeField(read_only=True, source='created_at')
    updatedAt = serializers.DateTimeField(read_only=True, source='updated_at')

    def validate_code(self, v):
        return v.strip().upper()

    def validate(self, attrs):
        total = current(self, attrs, 'total_beds', 0) or 0
        functional = current(self, attrs, 'functional_beds', 0) or 0
        if functional > total:
            raise serializers.ValidationError({'functionalBeds': ['Cannot exceed totalBeds']})
        return attrs


# available field -> (body name, the hospital field(s) bounding it)
BED_LIMITS = (
    ('available_beds', 'availableBeds', ('functional_beds', 'total_beds')),
    ('available_icu_beds', 'availableIcuBeds', ('icu_beds',)),
    ('available_emergency_beds', 'availableEmergencyBeds', ('emergency_beds',)),
)


def bed_total(hospital, fields) -> int:
    """First non-zero bed count among ``fields``."""
    for name in fields:
        value = getattr(hospital, name, 0) or 0
        if value:
            return value
    return 0


class HospitalCapacitySerializer(serializers.Serializer):
    """Free beds as reported by the facility; bounded by its bed counts."""
    availableBeds = serializers.IntegerField(min_value=0, source='available_beds')
    availableIcuBeds = serializers.IntegerField(min_value=0, source='available_icu_beds')
    availableEmergencyBeds = serializers.IntegerField(min_value=0, source='available_emergency_beds')
    notes = text(source='status_notes')
    capacityUpdatedAt = serializers.DateTimeField(read_only=True, source='capacity_updated_at')

    def validate(self, attrs):
        errors = {}
        for field, name, limits in BED_LIMITS:
            if field not in attrs:
                continue
            total = bed_total(self.instance, limits)
            if attrs[field] > total:
                errors[name] = [f'Cannot exceed the {total} beds on record']
        if errors:
            raise serializers.ValidationError(errors)
        return attrs


class HospitalStatusSerializer(HospitalCapacitySerializer):
    operationalStatus = serializers.ChoiceField(
        choices=Hospital.OPERATIONAL_STATUS_CHOICES, source='operational_status'
    )
    acceptingPatients = serializers.BooleanField(source='accepting_patients')
