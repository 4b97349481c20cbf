"""Ambulance fleet and emergency call dispatch."""
from __future__ import annotations

import math
from datetime import timedelta

from django.db import transaction
from django.utils import timezone

from core import permissions
from core.exceptions import Conflict
from core.models import Ambulance, AmbulanceMaintenance, DispatchLog, Hospital
from core.realtime.events import broadcast_update
from core.serializers.dispatch import (
    AmbulanceLocationSerializer,
    AmbulanceMaintenanceSerializer,
    AmbulanceSerializer,
    DispatchSerializer,
    DispatchStatusSerializer,
    NearestAmbulanceSerializer,
)
from core.services import audit
from core.services.base import EntityService, next_number, paginate, year_prefix
from core.services.hospitals import bed_availability
from core.services.workflow import DISPATCH, WorkflowService

BUSY_STATUSES = ('DISPATCHED', 'EN_ROUTE', 'ON_SCENE', 'TRANSPORTING', 'AT_HOSPITAL')

EARTH_RADIUS_KM = 6371.0
# units under this fuel percentage are never recommended
MIN_FUEL_LEVEL = 20
ADVANCED_LEVELS = ('ADVANCED', 'CRITICAL_CARE')
# emergency types that need an advanced unit when equipment is required
EQUIPMENT_SENSITIVE_TYPES = ('CARDIAC', 'RESPIRATORY', 'TRAUMA')
NEAREST_HOSPITALS = 3
SERVICE_INTERVAL = timedelta(days=90)


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two points in kilometres."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def needs_advanced_unit(severity: str | None, emergency_type: str | None, required_equipment: bool) -> bool:
    if severity == 'CRITICAL':
        return True
    return bool(required_equipment) and (emergency_type or '').upper() in EQUIPMENT_SENSITIVE_TYPES


class AmbulanceService(EntityService):
    model = Ambulance
    serializer_class = AmbulanceSerializer
    entity_type = 'AMBULANCE'
    module = 'ambulances'
    facility_fields = ('hospital_id',)
    county_fields = ('county_id', 'hospital__county_id')
    search_fields = ('registration_number', 'driver_name')
    filters = {
        'status': 'status',
        'type': 'type',
        'equipmentLevel': 'equipment_level',
        'hospitalId': 'hospital_id',
        'countyId': 'county_id',
    }
    unique_fields = ('registration_number',)
    ordering = ('registration_number',)

    def base_queryset(self):
        return Ambulance.objects.select_related('hospital')

    def owner_ids(self, obj):
        hospital = obj.hospital
        return (obj.hospital_id,), (obj.county_id, hospital.county_id if hospital else None)

    def describe(self, obj):
        return f'ambulance {obj.registration_number}'

    def check_delete(self, obj):
        if obj.status in BUSY_STATUSES:
            raise Conflict(f'Ambulance {obj.registration_number} is {obj.status}')

    # -- nearest unit ------------------------------------------------------
    def nearest(self, params) -> dict:
        """Closest free units and receiving hospitals to a point.

        Candidates are AVAILABLE, operational, located and fuelled above
        :data:`MIN_FUEL_LEVEL`; critical calls and equipment-sensitive
        emergencies only get ADVANCED or CRITICAL_CARE units.
        """
        permissions.require_permission(self.actor, 'dispatch.read')
        body = dict(params.items())
        for short, name in (('lat', 'latitude'), ('lng', 'longitude')):
            if short in body and name not in body:
                body[name] = body.pop(short)
        ser = NearestAmbulanceSerializer(data=body)
        ser.is_valid(raise_exception=True)
        query = ser.validated_data
        lat, lng = query['latitude'], query['longitude']

        qs = self.scoped_queryset().filter(
            status='AVAILABLE',
            is_operational=True,
            latitude__isnull=False,
            longitude__isnull=False,
            fuel_level__gt=MIN_FUEL_LEVEL,
        )
        if needs_advanced_unit(query.get('severity'), query.get('emergency_type'), query['required_equipment']):
            qs = qs.filter(equipment_level__in=ADVANCED_LEVELS)
        units = []
        for ambulance in qs:
            row = self.serialize(ambulance)
            row['hospitalName'] = ambulance.hospital.name if ambulance.hospital else None
            row['distanceKm'] = round(haversine_km(lat, lng, ambulance.latitude, ambulance.longitude), 2)
            units.append(row)
        units.sort(key=lambda r: (r['distanceKm'], r['registrationNumber']))
        units = units[:query['limit']]

        hospitals = []
        receiving = Hospital.objects.filter(
            is_active=True, accepting_patients=True, latitude__isnull=False, longitude__isnull=False,
        ).exclude(operational_status='CLOSED')
        for hospital in receiving:
            hospitals.append({
                'id': hospital.pk,
                'name': hospital.name,
                'operationalStatus': hospital.operational_status,
                'beds': bed_availability(hospital),
                'distanceKm': round(haversine_km(lat, lng, hospital.latitude, hospital.longitude), 2),
            })
        hospitals.sort(key=lambda r: (r['distanceKm'], r['name']))
        hospitals = hospitals[:NEAREST_HOSPITALS]

        return {
            'nearestAmbulances': units,
            'nearestHospitals': hospitals,
            'recommendedAmbulance': units[0] if units else None,
            'recommendedHospital': hospitals[0] if hospitals else None,
            'coordinates': {'latitude': lat, 'longitude': lng},
        }

    # -- location ----------------------------------------------------------
    @staticmethod
    def serialize_location(obj) -> dict:
        return {
            'ambulanceId': obj.pk,
            'registrationNumber': obj.registration_number,
            'status': obj.status,
            'latitude': obj.latitude,
            'longitude': obj.longitude,
            'accuracy': obj.location_accuracy,
            'updatedAt': obj.location_updated_at,
        }

    def location(self, pk) -> dict:
        permissions.require_permission(self.actor, self.read_permission)
        return self.serialize_location(self.get_object(pk))

    def update_location(self, pk, payload) -> dict:
        def op():
            permissions.require_permission(self.actor, self.write_permission)
            ser = AmbulanceLocationSerializer(data=payload)
            ser.is_valid(raise_exception=True)
            data = ser.validated_data
            with transaction.atomic():
                ambulance = self.get_object(pk, for_update=True)
                self.check_write_scope(ambulance)
                ambulance.latitude = data['latitude']
                ambulance.longitude = data['longitude']
                ambulance.location_accuracy = data.get('accuracy')
                ambulance.location_updated_at = data.get('timestamp') or timezone.now()
                ambulance.save(update_fields=[
                    'latitude', 'longitude', 'location_accuracy', 'location_updated_at', 'updated_at',
                ])
            return ambulance, f'Updated location of {self.describe(ambulance)}', {
                'location': {'latitude': ambulance.latitude, 'longitude': ambulance.longitude},
            }

        ambulance = self.audited(audit.UPDATE, pk, op)
        broadcast_update(
            self.entity_type, ambulance.pk, ambulance.status,
            action='location', latitude=ambulance.latitude, longitude=ambulance.longitude,
        )
        return self.serialize_location(ambulance)

    # -- maintenance -------------------------------------------------------
    def serialize_maintenance(self, obj) -> dict:
        return AmbulanceMaintenanceSerializer(obj, context=self.context).data

    def maintenance(self, pk, params=None) -> dict:
        permissions.require_permission(self.actor, self.read_permission)
        ambulance = self.get_object(pk)
        return paginate(ambulance.maintenance_records.all(), params or {}, self.serialize_maintenance).as_dict()

    def add_maintenance(self, pk, payload) -> dict:
        """Record a service; a unit parked off duty for it goes back to AVAILABLE."""
        created = {}

        def op():
            permissions.require_permission(self.actor, self.write_permission)
            ser = AmbulanceMaintenanceSerializer(data=payload, context=self.context)
            ser.is_valid(raise_exception=True)
            data = dict(ser.validated_data)

            def save():
                ambulance = self.get_object(pk, for_update=True)
                self.check_write_scope(ambulance)
                if ambulance.status in BUSY_STATUSES:
                    raise Conflict(f'Ambulance {ambulance.registration_number} is {ambulance.status}')
                data.setdefault('performed_at', timezone.now())
                if data.get('next_service_date') is None:
                    data['next_service_date'] = (data['performed_at'] + SERVICE_INTERVAL).date()
                record = AmbulanceMaintenance.objects.create(ambulance=ambulance, recorded_by=self.user, **data)
                ambulance.next_service_date = record.next_service_date
                if ambulance.status in Ambulance.OFF_DUTY_STATUSES:
                    ambulance.status = 'AVAILABLE'
                ambulance.save()
                return record

            record = created['record'] = self._save(save)
            return (
                record.ambulance,
                f'Recorded {record.type} maintenance for {self.describe(record.ambulance)}',
                {'maintenance': self.serialize_maintenance(record)},
            )

        ambulance = self.audited(audit.UPDATE, pk, op)
        broadcast_update(self.entity_type, ambulance.pk, ambulance.status, action='maintenance')
        return self.serialize_maintenance(created['record'])


class DispatchService(WorkflowService):
    model = DispatchLog
    serializer_class = DispatchSerializer
    status_serializer_class = DispatchStatusSerializer
    workflow = DISPATCH
    entity_type = 'DISPATCH'
    module = 'dispatch'
    facility_fields = ('destination_hospital_id', 'ambulance__hospital_id')
    county_fields = ('county_id', 'destination_hospital__county_id')
    search_fields = ('dispatch_number', 'caller_name', 'caller_phone', 'caller_location', 'emergency_type')
    filters = {
        'status': 'status',
        'severity': 'severity',
        'countyId': 'county_id',
        'ambulanceId': 'ambulance_id',
        'destinationHospitalId': 'destination_hospital_id',
    }
    ordering = ('-call_received', '-id')

    def base_queryset(self):
        return DispatchLog.objects.select_related('destination_hospital', 'ambulance')

    def owner_ids(self, obj):
        hospital = obj.destination_hospital
        ambulance = obj.ambulance
        return (
            (obj.destination_hospital_id, ambulance.hospital_id if ambulance else None),
            (obj.county_id, hospital.county_id if hospital else None),
        )

    def describe(self, obj):
        return f'dispatch {obj.dispatch_number or "call"} ({obj.emergency_type})'

    def perform_create(self, data):
        data.setdefault('call_received', timezone.now())
        return DispatchLog.objects.create(
            dispatch_number=next_number(DispatchLog, 'dispatch_number', year_prefix('DISP')),
            status='RECEIVED',
            created_by=self.user,
            **data,
        )
