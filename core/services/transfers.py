"""
Inter-facility transfers.

A transfer is requested by the origin facility and approved or rejected
by the destination.  Creation, the patient status change and the triage
link commit together; later status moves go through
:data:`core.services.workflow.TRANSFER`.
"""
from __future__ import annotations

from django.utils import timezone

from core import permissions
from core.exceptions import NotFound, ValidationError
from core.models import Hospital, Patient, Resource, Transfer, TriageEntry
from core.serializers.resource import ResourceSerializer
from core.serializers.transfer import TransferSerializer, TransferStatusSerializer
from core.services.base import next_number, year_prefix
from core.services.hospitals import bed_availability
from core.services.workflow import TRANSFER, WorkflowService


def _county(hospital):
    return hospital.county_id if hospital is not None else None


class TransferService(WorkflowService):
    model = Transfer
    serializer_class = TransferSerializer
    status_serializer_class = TransferStatusSerializer
    workflow = TRANSFER
    entity_type = 'TRANSFER'
    module = 'transfers'
    facility_fields = ('origin_hospital_id', 'destination_hospital_id')
    county_fields = ('origin_hospital__county_id', 'destination_hospital__county_id')
    search_fields = ('transfer_number', 'patient__first_name', 'patient__last_name', 'reason', 'diagnosis')
    filters = {
        'status': 'status',
        'urgency': 'urgency',
        'patientId': 'patient_id',
        'originHospitalId': 'origin_hospital_id',
        'destinationHospitalId': 'destination_hospital_id',
    }
    ordering = ('-requested_at', '-id')

    def base_queryset(self):
        return Transfer.objects.select_related('patient', 'origin_hospital', 'destination_hospital')

    def describe(self, obj):
        return f'transfer {obj.transfer_number or "request"}'

    def owner_ids(self, obj):
        return (
            (obj.origin_hospital_id, obj.destination_hospital_id),
            (_county(obj.origin_hospital), _county(obj.destination_hospital)),
        )

    def check_write_scope(self, obj):
        permissions.check_scope(self.actor, (obj.origin_hospital_id,), (_county(obj.origin_hospital),))

    def check_destination_scope(self, obj):
        permissions.check_scope(
            self.actor, (obj.destination_hospital_id,), (_county(obj.destination_hospital),)
        )

    def authorize_transition(self, obj, new_status):
        if new_status in ('APPROVED', 'REJECTED'):
            self.check_destination_scope(obj)
        elif new_status == 'CANCELLED':
            self.check_write_scope(obj)
        else:
            self.check_scope(obj)

    def transition_fields(self, obj, new_status):
        if new_status == 'APPROVED' and self.user is not None:
            return {'approved_by': self.user}
        return {}

    def describe_transition(self, obj, old, new):
        verbs = {'APPROVED': 'Approved', 'REJECTED': 'Rejected', 'CANCELLED': 'Cancelled'}
        route = f'from {obj.origin_hospital.name} to {obj.destination_hospital.name}'
        if new in verbs:
            return f'{verbs[new]} transfer {obj.transfer_number} {route}'
        return f'Transfer {obj.transfer_number} {route} moved from {old} to {new}'

    def perform_create(self, data):
        transfer = Transfer.objects.create(
            transfer_number=next_number(Transfer, 'transfer_number', year_prefix('TRF')),
            initiated_by=self.user,
            status='REQUESTED',
            **data,
        )
        Patient.objects.filter(pk=transfer.patient_id).update(
            current_status='AWAITING_TRANSFER', updated_at=timezone.now()
        )
        if transfer.triage_entry_id:
            TriageEntry.objects.filter(pk=transfer.triage_entry_id).update(status='TRANSFERRED')
        return transfer

    def approve(self, pk, payload=None) -> dict:
        return self.set_status(pk, payload or {}, status='APPROVED')

    def reject(self, pk, payload=None) -> dict:
        return self.set_status(pk, payload or {}, status='REJECTED')

    def cancel(self, pk, payload=None) -> dict:
        return self.set_status(pk, payload or {}, status='CANCELLED')

    def available_beds(self, params=None) -> dict:
        """Free beds at a candidate destination, for planning a transfer.

        Any facility may be looked up: destinations lie outside the
        caller's own scope by nature.
        """
        permissions.require_permission(self.actor, self.read_permission)
        params = params or {}
        hospital_id = str(params.get('hospitalId') or '').strip()
        if not hospital_id:
            raise ValidationError({'hospitalId': ['This query parameter is required']})
        hospital = Hospital.objects.filter(pk=hospital_id).first() if hospital_id.isdigit() else None
        if hospital is None:
            raise NotFound('Hospital not found')
        resource_type = str(params.get('resourceType') or 'BED').upper()
        resources = Resource.objects.filter(
            hospital=hospital, type=resource_type, status='AVAILABLE', is_operational=True
        ).order_by('name')
        return {
            'hospital': {
                'id': hospital.pk,
                'name': hospital.name,
                'acceptingPatients': hospital.accepting_patients,
                'operationalStatus': hospital.operational_status,
                'bedAvailability': bed_availability(hospital),
            },
            'resources': ResourceSerializer(resources, many=True).data,
        }
