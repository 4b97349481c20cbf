import logging

from django.conf import settings
from rest_framework import serializers

from core.models import Hospital, Resource
from core.serializers.fields import CleanCharField, current

logger = logging.getLogger(__name__)


def derive_status(available: int, critical_level: int, reorder_level: int) -> str:
    if available <= 0:
        return 'UNAVAILABLE'
    if available <= critical_level:
        return 'CRITICAL'
    if available <= reorder_level:
        return 'LIMITED'
    return 'AVAILABLE'


class ResourceSerializer(serializers.Serializer):
    id = serializers.IntegerField(read_only=True)
    hospitalId = serializers.PrimaryKeyRelatedField(source='hospital', queryset=Hospital.objects.all())
    name = CleanCharField(max_length=255)
    type = serializers.ChoiceField(choices=Resource.TYPE_CHOICES)
    category = CleanCharField(max_length=64)
    unit = CleanCharField(max_length=32)
    totalCapacity = serializers.IntegerField(min_value=0, source='total_capacity')
    availableCapacity = serializers.IntegerField(min_value=0, required=False, source='available_capacity')
    reservedCapacity = serializers.IntegerField(min_value=0, required=False, source='reserved_capacity')
    inUseCapacity = serializers.IntegerField(min_value=0, required=False, source='in_use_capacity')
    criticalLevel = serializers.IntegerField(min_value=0, required=False, source='critical_level')
    reorderLevel = serializers.IntegerField(min_value=0, required=False, source='reorder_level')
    status = serializers.ChoiceField(choices=Resource.STATUS_CHOICES, required=False)
    isOperational = serializers.BooleanField(required=False, source='is_operational')
    lastRestocked = serializers.DateTimeField(required=False, allow_null=True, source='last_restocked')
    createdAt = serializers.DateTimeField(read_only=True, source='created_at')
    updatedAt = serializers.DateTimeField(read_only=True, source='updated_at')

    def validate(self, attrs):
        if self.instance is None and 'available_capacity' not in attrs:
            attrs['available_capacity'] = attrs['total_capacity']
        total = current(self, attrs, 'total_capacity', 0) or 0
        allocated = sum(
            current(self, attrs, name, 0) or 0
            for name in ('available_capacity', 'reserved_capacity', 'in_use_capacity')
        )
        if allocated > total:
            message = (
                f'availableCapacity + reservedCapacity + inUseCapacity ({allocated}) '
                f'exceeds totalCapacity ({total})'
            )
            if settings.RESOURCE_ENFORCE_CAPACITY:
                raise serializers.ValidationError({'totalCapacity': [message]})
            logger.warning('resource capacity over-allocated: %s', message)
        if 'status' not in attrs and current(self, attrs, 'status') != 'MAINTENANCE':
            attrs['status'] = derive_status(
                current(self, attrs, 'available_capacity', 0) or 0,
                current(self, attrs, 'critical_level', 0) or 0,
                current(self, attrs, 'reorder_level', 0) or 0,
            )
        return attrs
