"""Patient registration and triage."""
from __future__ import annotations

import datetime

from django.db.models import Case, Count, IntegerField, Q, Value, When
from django.db.models.functions import ExtractHour
from django.utils import timezone
from django.utils.dateparse import parse_date

from core import permissions
from core.exceptions import Conflict, ValidationError
from core.models import Patient, Transfer, TriageEntry
from core.serializers.patient import PatientSerializer, TriageSerializer
from core.services.base import EntityService, _int_param, next_number, year_prefix

TRIAGE_PRIORITY = ('IMMEDIATE', 'URGENT', 'LESS_URGENT', 'NON_URGENT')
OPEN_TRANSFER_STATUSES = ('REQUESTED', 'APPROVED', 'IN_TRANSIT')
STATS_PERIODS = ('today', 'week', 'month', 'custom')
SEARCH_MIN_LENGTH = 2
SEARCH_MAX_RESULTS = 50


class PatientService(EntityService):
    model = Patient
    serializer_class = PatientSerializer
    entity_type = 'PATIENT'
    module = 'patients'
    facility_fields = ('current_hospital_id',)
    county_fields = ('current_hospital__county_id',)
    search_fields = ('patient_number', 'first_name', 'last_name', 'national_id', 'phone')
    filters = {
        'status': 'current_status',
        'hospitalId': 'current_hospital_id',
        'gender': 'gender',
    }
    unique_fields = ('national_id',)

    def owner_ids(self, obj):
        hospital = obj.current_hospital
        return (obj.current_hospital_id,), ((hospital.county_id,) if hospital else ())

    def base_queryset(self):
        return Patient.objects.select_related('current_hospital')

    def describe(self, obj):
        return f'patient {obj.first_name} {obj.last_name} ({obj.patient_number or "new"})'

    def prepare_create(self, data):
        # facility staff register patients into their own facility
        if data.get('current_hospital') is None and self.actor.facility_id:
            data.pop('current_hospital', None)
            data['current_hospital_id'] = int(self.actor.facility_id)
        return data

    def perform_create(self, data):
        data['patient_number'] = next_number(Patient, 'patient_number', 'PAT-')
        return Patient.objects.create(**data)

    def search(self, params=None) -> dict:
        """Quick lookup by name, number, national id or phone for pickers."""
        permissions.require_permission(self.actor, self.read_permission)
        params = params or {}
        term = str(params.get('q') or '').strip()
        if len(term) < SEARCH_MIN_LENGTH:
            return {'patients': [], 'count': 0}
        limit = min(max(1, _int_param(params.get('limit'), 10)), SEARCH_MAX_RESULTS)
        qs = self.apply_filters(self.scoped_queryset(), {**dict(params.items()), 'q': term})
        patients = []
        for patient in qs.order_by('-created_at', '-id')[:limit]:
            row = self.serialize(patient)
            latest = patient.triage_entries.order_by('-arrival_time').first()
            row['latestTriage'] = latest and {
                'triageLevel': latest.triage_level,
                'status': latest.status,
                'arrivalTime': latest.arrival_time,
            }
            patients.append(row)
        return {'patients': patients, 'count': len(patients)}

    def check_delete(self, obj):
        if obj.triage_entries.filter(status__in=TriageEntry.ACTIVE_STATUSES).exists():
            raise Conflict('Patient has active triage entries')
        if obj.transfers.filter(status__in=OPEN_TRANSFER_STATUSES).exists():
            raise Conflict('Patient has a transfer in progress')


class TriageService(EntityService):
    model = TriageEntry
    serializer_class = TriageSerializer
    entity_type = 'TRIAGE'
    module = 'triage'
    facility_fields = ('hospital_id',)
    county_fields = ('hospital__county_id',)
    search_fields = ('triage_number', 'chief_complaint', 'patient__first_name', 'patient__last_name')
    filters = {
        'status': 'status',
        'triageLevel': 'triage_level',
        'hospitalId': 'hospital_id',
        'patientId': 'patient_id',
    }
    ordering = ('-arrival_time', '-id')

    def owner_ids(self, obj):
        return (obj.hospital_id,), (obj.hospital.county_id,)

    def base_queryset(self):
        return TriageEntry.objects.select_related('patient', 'hospital')

    def describe(self, obj):
        return f'triage entry {obj.triage_number or "new"} ({obj.triage_level})'

    def perform_create(self, data):
        data.setdefault('arrival_time', timezone.now())
        entry = TriageEntry.objects.create(
            triage_number=next_number(TriageEntry, 'triage_number', year_prefix('TRI')),
            assessed_by=self.user,
            **data,
        )
        patient = entry.patient
        patient.current_status = 'IN_TRIAGE'
        if patient.current_hospital_id is None:
            patient.current_hospital_id = entry.hospital_id
        patient.save(update_fields=['current_status', 'current_hospital', 'updated_at'])
        return entry

    def queue(self, params=None) -> dict:
        """Active entries ordered by triage level, then arrival."""
        permissions.require_permission(self.actor, self.read_permission)
        params = params or {}
        qs = self.scoped_queryset().filter(status__in=TriageEntry.ACTIVE_STATUSES)
        if params.get('hospitalId'):
            qs = qs.filter(hospital_id=params['hospitalId'])
        priority = Case(
            *[When(triage_level=level, then=Value(i)) for i, level in enumerate(TRIAGE_PRIORITY)],
            default=Value(len(TRIAGE_PRIORITY)),
            output_field=IntegerField(),
        )
        entries = list(qs.annotate(priority=priority).order_by('priority', 'arrival_time', 'id'))
        counts = {level: 0 for level in TRIAGE_PRIORITY}
        for row in qs.order_by().values('triage_level').annotate(n=Count('id')):
            counts[row['triage_level']] = row['n']
        return {
            'results': [self.serialize(e) for e in entries],
            'counts': counts,
            'total': len(entries),
        }

    @staticmethod
    def period_range(params) -> tuple[str, datetime.datetime, datetime.datetime]:
        """``(period, start, end)`` for a stats query; ``end`` is exclusive."""
        period = str(params.get('period') or 'today').lower()
        if period not in STATS_PERIODS:
            raise ValidationError({'period': [f'Must be one of {", ".join(STATS_PERIODS)}']})
        now = timezone.localtime()
        midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
        if period == 'today':
            return period, midnight, midnight + datetime.timedelta(days=1)
        if period == 'week':
            return period, now - datetime.timedelta(days=7), now
        if period == 'month':
            return period, midnight.replace(day=1), now
        start = parse_date(str(params.get('startDate') or ''))
        end = parse_date(str(params.get('endDate') or ''))
        if start is None or end is None or end < start:
            raise ValidationError({'startDate': ['A custom period needs startDate <= endDate (YYYY-MM-DD)']})
        tz = timezone.get_current_timezone()
        return (
            period,
            datetime.datetime.combine(start, datetime.time.min, tzinfo=tz),
            datetime.datetime.combine(end + datetime.timedelta(days=1), datetime.time.min, tzinfo=tz),
        )

    def stats(self, params=None) -> dict:
        """Triage volumes for a period: by level and status, peak hours, complaints, arrival modes."""
        permissions.require_permission(self.actor, self.read_permission)
        params = params or {}
        period, start, end = self.period_range(params)
        qs = self.scoped_queryset().filter(arrival_time__gte=start, arrival_time__lt=end)
        if params.get('hospitalId') not in (None, '', 'all'):
            qs = qs.filter(hospital_id=params['hospitalId'])
        qs = qs.order_by()

        by_priority = {level: {'total': 0, 'byStatus': {}} for level in TRIAGE_PRIORITY}
        by_status: dict[str, int] = {}
        total = 0
        for row in qs.values('triage_level', 'status').annotate(n=Count('id')):
            level = by_priority.setdefault(row['triage_level'], {'total': 0, 'byStatus': {}})
            level['total'] += row['n']
            level['byStatus'][row['status']] = row['n']
            by_status[row['status']] = by_status.get(row['status'], 0) + row['n']
            total += row['n']

        peak_hours = [
            {'hour': row['hour'], 'total': row['total'], 'immediate': row['immediate'], 'urgent': row['urgent']}
            for row in qs.annotate(hour=ExtractHour('arrival_time')).values('hour').annotate(
                total=Count('id'),
                immediate=Count('id', filter=Q(triage_level='IMMEDIATE')),
                urgent=Count('id', filter=Q(triage_level='URGENT')),
            ).order_by('hour')
        ]
        complaints = [
            {'complaint': row['chief_complaint'], 'count': row['count']}
            for row in qs.exclude(chief_complaint='').values('chief_complaint')
            .annotate(count=Count('id')).order_by('-count', 'chief_complaint')[:10]
        ]
        arrival_modes = {
            row['arrival_mode']: row['n'] for row in qs.values('arrival_mode').annotate(n=Count('id'))
        }
        return {
            'period': period,
            'dateRange': {'start': start, 'end': end},
            'summary': {'total': total, 'byPriority': by_priority, 'byStatus': by_status},
            'trends': {'peakHours': peak_hours, 'topComplaints': complaints, 'arrivalMode': arrival_modes},
            'leftWithoutBeingSeen': by_status.get('LEFT_WITHOUT_BEING_SEEN', 0),
        }
