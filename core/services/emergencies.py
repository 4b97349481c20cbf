"""Declared emergencies and the ambulance responses sent to them."""
from __future__ import annotations

from django.utils import timezone

from core.exceptions import Conflict, NotFound, ValidationError
from core.models import Emergency, EmergencyResponse
from core.serializers.dispatch import (
    EmergencyResponseSerializer,
    EmergencyResponseStatusSerializer,
    EmergencySerializer,
)
from core.services.base import EntityService, next_number, year_prefix
from core.services.workflow import RESPONSE, WorkflowService, claim_ambulance


class EmergencyService(EntityService):
    model = Emergency
    serializer_class = EmergencySerializer
    entity_type = 'EMERGENCY'
    module = 'emergencies'
    facility_fields = ('responses__hospital_id',)
    county_fields = ('county_id',)
    search_fields = ('emergency_number', 'type', 'location', 'description')
    filters = {
        'status': 'status',
        'severity': 'severity',
        'countyId': 'county_id',
        'type': 'type',
    }
    ordering = ('-reported_at', '-id')

    def owner_ids(self, obj):
        facilities = ()
        if obj.pk:
            facilities = tuple(obj.responses.exclude(hospital_id=None).values_list('hospital_id', flat=True))
        return facilities, (obj.county_id,)

    def describe(self, obj):
        return f'emergency {obj.emergency_number or "report"} ({obj.type})'

    def perform_create(self, data):
        data.setdefault('reported_at', timezone.now())
        return Emergency.objects.create(
            emergency_number=next_number(Emergency, 'emergency_number', year_prefix('EMG')),
            reported_by=self.user,
            **data,
        )

    def check_delete(self, obj):
        if obj.responses.exclude(status__in=RESPONSE.terminal).exists():
            raise Conflict('Emergency still has active responses')


class EmergencyResponseService(WorkflowService):
    """Responses of one emergency; every query is bound to ``emergency_id``."""
    model = EmergencyResponse
    serializer_class = EmergencyResponseSerializer
    status_serializer_class = EmergencyResponseStatusSerializer
    workflow = RESPONSE
    entity_type = 'EMERGENCY_RESPONSE'
    module = 'emergencies'
    facility_fields = ('hospital_id', 'ambulance__hospital_id')
    county_fields = ('emergency__county_id', 'hospital__county_id')
    filters = {'status': 'status', 'ambulanceId': 'ambulance_id', 'hospitalId': 'hospital_id'}
    ordering = ('-dispatched_at', '-id')

    def __init__(self, actor, emergency_id, **kwargs):
        super().__init__(actor, **kwargs)
        self.emergency_id = emergency_id

    def emergency(self) -> Emergency:
        emergency = Emergency.objects.filter(pk=self.emergency_id).first()
        if emergency is None:
            raise NotFound('Emergency not found')
        return emergency

    def base_queryset(self):
        return EmergencyResponse.objects.select_related('emergency', 'hospital', 'ambulance').filter(
            emergency_id=self.emergency_id
        )

    def owner_ids(self, obj):
        ambulance = obj.ambulance
        hospital = obj.hospital
        return (
            (obj.hospital_id, ambulance.hospital_id if ambulance else None),
            (obj.emergency.county_id, hospital.county_id if hospital else None),
        )

    def describe(self, obj):
        return f'response {obj.pk or "new"} to emergency {obj.emergency.emergency_number}'

    def list(self, params=None):
        self.emergency()
        return super().list(params)

    def check_scope(self, obj):
        # transitions lock by pk alone; a response outside the emergency in
        # the URL does not exist for this caller, whatever their scope
        if str(obj.emergency_id) != str(self.emergency_id):
            raise NotFound('Emergency response not found')
        super().check_scope(obj)

    def prepare_create(self, data):
        if data.get('ambulance') is None and data.get('hospital') is None:
            raise ValidationError({'ambulanceId': ['An ambulance or a hospital is required']})
        data['emergency'] = self.emergency()
        return data

    def perform_create(self, data):
        response = EmergencyResponse.objects.create(
            status='DISPATCHED',
            dispatched_at=timezone.now(),
            **data,
        )
        claim_ambulance(response.ambulance_id, 'DISPATCHED', holder=response)
        return response
