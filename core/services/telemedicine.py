"""Telemedicine sessions between a requesting facility and a specialist."""
from __future__ import annotations

from core.models import TelemedicineSession
from core.serializers.telemedicine import TelemedicineSessionSerializer, TelemedicineStatusSerializer
from core.services.base import next_number, year_prefix
from core.services.workflow import TELEMEDICINE, WorkflowService


class TelemedicineService(WorkflowService):
    model = TelemedicineSession
    serializer_class = TelemedicineSessionSerializer
    status_serializer_class = TelemedicineStatusSerializer
    workflow = TELEMEDICINE
    entity_type = 'TELEMEDICINE_SESSION'
    module = 'telemedicine'
    facility_fields = ('requesting_hospital_id', 'specialist__hospital_id')
    county_fields = ('requesting_hospital__county_id', 'specialist__hospital__county_id')
    search_fields = ('session_number', 'chief_complaint', 'patient__first_name', 'patient__last_name')
    filters = {
        'status': 'status',
        'consultationType': 'consultation_type',
        'specialistId': 'specialist_id',
        'patientId': 'patient_id',
        'requestingHospitalId': 'requesting_hospital_id',
    }
    ordering = ('-scheduled_time', '-id')
    # session records carry clinical detail; reads are audited
    audit_reads = True

    def base_queryset(self):
        return TelemedicineSession.objects.select_related(
            'patient', 'specialist', 'specialist__hospital', 'requesting_hospital'
        )

    def owner_ids(self, obj):
        specialist = obj.specialist
        return (
            (obj.requesting_hospital_id, specialist.hospital_id),
            (obj.requesting_hospital.county_id, specialist.hospital.county_id),
        )

    def is_specialist(self, obj) -> bool:
        user_id = obj.specialist.user_id
        return user_id is not None and str(user_id) == self.actor.id

    def check_scope(self, obj):
        if self.is_specialist(obj):
            return
        super().check_scope(obj)

    def check_write_scope(self, obj):
        self.check_scope(obj)

    def scoped_queryset(self):
        own = self.base_queryset().filter(specialist__user_id=self.actor.id).distinct()
        return super().scoped_queryset().distinct() | own

    def describe(self, obj):
        return f'telemedicine session {obj.session_number or "request"}'

    def perform_create(self, data):
        return TelemedicineSession.objects.create(
            session_number=next_number(TelemedicineSession, 'session_number', year_prefix('TM')),
            status='SCHEDULED',
            created_by=self.user,
            **data,
        )
