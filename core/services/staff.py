"""Staff records and duty schedules."""
from __future__ import annotations

from django.utils.dateparse import parse_datetime

from core import permissions
from core.exceptions import Conflict
from core.models import Staff, StaffSchedule
from core.serializers.staff import StaffScheduleSerializer, StaffSerializer
from core.services import audit
from core.services.base import EntityService, next_number, paginate

ACTIVE_SESSION_STATUSES = ('SCHEDULED', 'IN_PROGRESS')


class StaffService(EntityService):
    model = Staff
    serializer_class = StaffSerializer
    entity_type = 'STAFF'
    module = 'staff'
    facility_fields = ('hospital_id',)
    county_fields = ('hospital__county_id',)
    search_fields = ('staff_number', 'first_name', 'last_name', 'email', 'specialization')
    filters = {
        'role': 'role',
        'hospitalId': 'hospital_id',
        'employmentType': 'employment_type',
        'specialization': 'specialization__icontains',
    }
    unique_fields = ('email',)
    ordering = ('last_name', 'first_name', 'id')
    delete_verb = 'Deactivated'

    def base_queryset(self):
        return Staff.objects.select_related('hospital')

    def owner_ids(self, obj):
        return (obj.hospital_id,), (obj.hospital.county_id,)

    def describe(self, obj):
        return f'staff {obj.first_name} {obj.last_name} ({obj.staff_number or "new"})'

    def check_unique(self, data, instance=None):
        email = data.get('email')
        if email:
            qs = Staff.objects.filter(email__iexact=email)
            if instance is not None:
                qs = qs.exclude(pk=instance.pk)
            if qs.exists():
                raise Conflict('Staff with this email already exists')

    def apply_filters(self, qs, params):
        qs = super().apply_filters(qs, params)
        active = params.get('isActive')
        if active in (None, ''):
            return qs.filter(is_active=True)
        if str(active).lower() == 'all':
            return qs
        return qs.filter(is_active=str(active).lower() in {'1', 'true', 'yes'})

    def perform_create(self, data):
        return Staff.objects.create(staff_number=next_number(Staff, 'staff_number', 'STAFF-'), **data)

    def check_delete(self, obj):
        if obj.telemedicine_sessions.filter(status__in=ACTIVE_SESSION_STATUSES).exists():
            raise Conflict('Staff member has scheduled or in-progress telemedicine sessions')

    def perform_delete(self, obj):
        obj.is_active = False
        obj.save(update_fields=['is_active', 'updated_at'])

    # -- schedules ---------------------------------------------------------
    def schedule(self, pk, params=None) -> dict:
        permissions.require_permission(self.actor, self.read_permission)
        params = params or {}
        staff = self.get_object(pk)
        qs = staff.schedules.filter(is_active=True)
        start = parse_datetime(str(params['from'])) if params.get('from') else None
        end = parse_datetime(str(params['to'])) if params.get('to') else None
        if start:
            qs = qs.filter(end_time__gte=start)
        if end:
            qs = qs.filter(start_time__lte=end)
        page = paginate(qs.order_by('start_time'), params, self.serialize_schedule)
        return page.as_dict()

    def serialize_schedule(self, obj) -> dict:
        return StaffScheduleSerializer(obj, context=self.context).data

    def add_schedule(self, pk, payload) -> dict:
        created = {}

        def op():
            permissions.require_permission(self.actor, self.write_permission)
            ser = StaffScheduleSerializer(data=payload, context=self.context)
            ser.is_valid(raise_exception=True)
            data = dict(ser.validated_data)

            def save():
                staff = self.get_object(pk, for_update=True)
                self.check_write_scope(staff)
                if not staff.is_active:
                    raise Conflict('Staff member is not active')
                overlap = staff.schedules.filter(
                    is_active=True, start_time__lt=data['end_time'], end_time__gt=data['start_time']
                )
                if overlap.exists():
                    raise Conflict('Schedule overlaps an existing shift')
                return StaffSchedule.objects.create(staff=staff, created_by=self.user, **data)

            entry = created['entry'] = self._save(save)
            return (
                entry.staff,
                f'Scheduled {entry.shift_type} shift for {self.describe(entry.staff)}',
                {'schedule': self.serialize_schedule(entry)},
            )

        self.audited(audit.UPDATE, pk, op)
        return self.serialize_schedule(created['entry'])
