import bleach
from rest_framework import serializers


class CleanCharField(serializers.CharField):
    """CharField that strips markup from the submitted text."""

    def to_internal_value(self, data):
        value = super().to_internal_value(data)
        return bleach.clean(value, tags=[], strip=True)


def text(max_length=None, **kwargs):
    kwargs.setdefault('required', False)
    kwargs.setdefault('allow_blank', True)
    return CleanCharField(max_length=max_length, **kwargs)


def current(serializer, attrs, name, default=None):
    """Value of ``name`` after this write: submitted, else the instance's."""
    if name in attrs:
        return attrs[name]
    if serializer.instance is not None:
        return getattr(serializer.instance, name, default)
    return default


class StatusSerializer(serializers.Serializer):
    """Body of a status change; subclasses add the fields that may ride along."""
    status = serializers.CharField()

    def validate_status(self, v):
        return v.strip().upper()


def available_ambulance(serializer, ambulance):
    """Accept the instance's own ambulance, otherwise only one that is AVAILABLE."""
    if ambulance is None:
        return ambulance
    instance = serializer.instance
    if instance is not None and getattr(instance, 'ambulance_id', None) == ambulance.pk:
        return ambulance
    if ambulance.status != 'AVAILABLE' or not ambulance.is_operational:
        raise serializers.ValidationError(f'Ambulance {ambulance.registration_number} is {ambulance.status}')
    return ambulance
