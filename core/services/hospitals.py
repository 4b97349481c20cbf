"""Hospital registry plus the live status and bed capacity each facility reports."""
from __future__ import annotations

from django.db import transaction
from django.utils import timezone

from core import permissions, roles
from core.exceptions import Conflict, Forbidden
from core.models import Hospital
from core.realtime.events import broadcast_update
from core.serializers.hospital import (
    BED_LIMITS,
    HospitalCapacitySerializer,
    HospitalSerializer,
    HospitalStatusSerializer,
    bed_total,
)
from core.services import audit
from core.services.base import EntityService
from core.services.resources import occupancy

# permissions that may report a facility's status and free beds
CAPACITY_WRITE_PERMISSIONS = ('hospitals.write', 'resources.write')


def bed_availability(hospital: Hospital) -> dict:
    """Free, total and occupancy per bed class as last reported by ``hospital``."""
    out = {}
    for (field, _, limits), label in zip(BED_LIMITS, ('general', 'icu', 'emergency')):
        total = bed_total(hospital, limits)
        available = getattr(hospital, field)
        out[label] = {'available': available, 'total': total, 'occupancy': occupancy(total, available)}
    return out


class HospitalService(EntityService):
    model = Hospital
    serializer_class = HospitalSerializer
    entity_type = 'HOSPITAL'
    module = 'hospitals'
    facility_fields = ('id',)
    county_fields = ('county_id',)
    search_fields = ('name', 'code', 'mfl_code', 'sub_county')
    filters = {
        'countyId': 'county_id',
        'type': 'type',
        'level': 'level',
        'operationalStatus': 'operational_status',
        'acceptingPatients': 'accepting_patients',
    }
    unique_fields = ('code',)
    ordering = ('name',)

    def owner_ids(self, obj):
        return (obj.pk,), (obj.county_id,)

    def base_queryset(self):
        return Hospital.objects.select_related('county')

    def describe(self, obj):
        return f'hospital {obj.name} ({obj.code})'

    def apply_filters(self, qs, params):
        params = dict(params.items())
        if 'acceptingPatients' in params:
            params['acceptingPatients'] = str(params['acceptingPatients']).lower() in {'1', 'true', 'yes'}
        return super().apply_filters(qs, params)

    def check_delete(self, obj):
        if self.actor.role != roles.SUPER_ADMIN:
            raise Forbidden('Forbidden - only a super administrator may delete hospitals')
        dependents = [
            label for label, qs in (
                ('patients', obj.patients),
                ('staff', obj.staff),
                ('resources', obj.resources),
            ) if qs.exists()
        ]
        if dependents:
            raise Conflict(f'Hospital still has {", ".join(dependents)}')

    # -- live status and capacity ------------------------------------------
    def status(self, pk) -> dict:
        permissions.require_permission(self.actor, self.read_permission)
        hospital = self.get_object(pk)
        return {
            'hospitalId': hospital.pk,
            'name': hospital.name,
            'operationalStatus': hospital.operational_status,
            'acceptingPatients': hospital.accepting_patients,
            'beds': bed_availability(hospital),
            'notes': hospital.status_notes,
            'capacityUpdatedAt': hospital.capacity_updated_at,
        }

    def capacity(self, pk) -> dict:
        permissions.require_permission(self.actor, self.read_permission)
        hospital = self.get_object(pk)
        return {
            'hospitalId': hospital.pk,
            'name': hospital.name,
            'totalBeds': hospital.total_beds,
            'functionalBeds': hospital.functional_beds,
            'icuBeds': hospital.icu_beds,
            'emergencyBeds': hospital.emergency_beds,
            'maternityBeds': hospital.maternity_beds,
            'pediatricBeds': hospital.pediatric_beds,
            'hdUnitBeds': hospital.hd_unit_beds,
            'isolationBeds': hospital.isolation_beds,
            'beds': bed_availability(hospital),
            'capacityUpdatedAt': hospital.capacity_updated_at,
        }

    def update_status(self, pk, payload) -> dict:
        self._report(pk, payload, HospitalStatusSerializer, 'status')
        return self.status(pk)

    def update_capacity(self, pk, payload) -> dict:
        self._report(pk, payload, HospitalCapacitySerializer, 'capacity')
        return self.capacity(pk)

    def _report(self, pk, payload, serializer_class, what: str) -> Hospital:
        def op():
            if not any(permissions.has_permission(self.actor, p) for p in CAPACITY_WRITE_PERMISSIONS):
                raise Forbidden(f'Forbidden - you may not update hospital {what}')
            with transaction.atomic():
                hospital = self.get_object(pk, for_update=True)
                self.check_write_scope(hospital)
                before = serializer_class(hospital).data
                ser = serializer_class(hospital, data=payload, partial=True, context=self.context)
                ser.is_valid(raise_exception=True)
                for key, value in ser.validated_data.items():
                    setattr(hospital, key, value)
                hospital.capacity_updated_at = timezone.now()
                hospital.save()
            after = serializer_class(hospital).data
            changed = {k: {'from': before.get(k), 'to': v} for k, v in after.items() if before.get(k) != v}
            return hospital, f'Updated {what} of {self.describe(hospital)}', changed

        hospital = self.audited(audit.UPDATE, pk, op)
        broadcast_update(self.entity_type, hospital.pk, hospital.operational_status, action=what)
        return hospital
