"""
Inter-facility transfer tests.

Hospital A requests, hospital B approves or rejects.  Every status change
goes through the transfer workflow and leaves exactly one audit entry.
"""
from rest_framework.test import APIClient, APITestCase

from core import roles
from core.models import Ambulance, AuditLog, County, Hospital, Patient, Transfer, User
from core.services.workflow import release_ambulance


def transfer_payload(patient, origin, destination, **extra):
    body = {
        'patientId': patient.pk,
        'originHospitalId': origin.pk,
        'destinationHospitalId': destination.pk,
        'urgency': 'URGENT',
        'transportMode': 'AMBULANCE',
        'reason': 'Needs ICU bed',
        'diagnosis': 'Severe sepsis',
    }
    body.update(extra)
    return body


def create_transfer(client, patient, origin, destination, **extra):
    r = client.post('/api/transfers', transfer_payload(patient, origin, destination, **extra), format='json')
    assert r.status_code == 201, r.data
    return r.data


class TransferWorkflowTests(APITestCase):
    """Transfers between hospital A (origin) and hospital B (destination)."""

    def setUp(self) -> None:
        self.county = County.objects.create(name='Kiambu', code='KBU')
        self.hospital_a = self.make_hospital('THK', 'Thika Level 5 Hospital')
        self.hospital_b = self.make_hospital('KIA', 'Kiambu Level 5 Hospital')
        self.admin_b = self.make_user('admin_b', roles.HOSPITAL_ADMIN, self.hospital_b)
        self.as_a = self.client_for(self.make_user('admin_a', roles.HOSPITAL_ADMIN, self.hospital_a))
        self.as_b = self.client_for(self.admin_b)
        self.as_nurse_b = self.client_for(self.make_user('nurse_b', roles.NURSE, self.hospital_b))
        self.patient = Patient.objects.create(
            patient_number='PAT-000001', first_name='Achieng', last_name='Otieno',
            date_of_birth='1985-04-12', gender='FEMALE',
            current_hospital=self.hospital_a, current_status='ADMITTED',
        )
        self.ambulance = Ambulance.objects.create(
            registration_number='KCB 456B', hospital=self.hospital_a, county=self.county,
        )

    def make_hospital(self, code, name):
        return Hospital.objects.create(
            name=name, code=code, type='PUBLIC', level='LEVEL_5', ownership='COUNTY_GOVERNMENT',
            county=self.county, sub_county='Central', ward='Township', address=f'{name} Road',
            phone='+254700000000',
        )

    @staticmethod
    def make_user(username, role, facility):
        return User.objects.create_user(username=username, password='P@ssw0rd1', role=role, facility=facility)

    @staticmethod
    def client_for(user):
        client = APIClient()
        client.force_authenticate(user=user)
        return client

    def create(self, **extra):
        return create_transfer(self.as_a, self.patient, self.hospital_a, self.hospital_b, **extra)

    def test_create_marks_patient_awaiting_transfer(self):
        data = self.create()
        self.assertEqual(data['status'], 'REQUESTED')
        self.assertTrue(data['transferNumber'].startswith('TRF-'))
        self.patient.refresh_from_db()
        self.assertEqual(self.patient.current_status, 'AWAITING_TRANSFER')
        self.assertEqual(AuditLog.objects.filter(entity_type='TRANSFER', action='CREATE').count(), 1)

    def test_patient_must_be_at_origin(self):
        r = self.as_b.post(
            '/api/transfers',
            transfer_payload(self.patient, self.hospital_b, self.hospital_a),
            format='json',
        )
        self.assertEqual(r.status_code, 400)
        self.assertIn('patientId', r.data['details'])

    def test_origin_and_destination_must_differ(self):
        r = self.as_a.post(
            '/api/transfers',
            transfer_payload(self.patient, self.hospital_a, self.hospital_a),
            format='json',
        )
        self.assertEqual(r.status_code, 400)
        self.assertIn('destinationHospitalId', r.data['details'])

    def test_destination_approves(self):
        pk = self.create()['id']
        r = self.as_b.post(f'/api/transfers/{pk}/approve', {'bedNumber': 'ICU-4'}, format='json')
        self.assertEqual(r.status_code, 200, r.data)
        self.assertEqual(r.data['status'], 'APPROVED')
        self.assertIsNotNone(r.data['approvedAt'])
        self.assertEqual(r.data['approvedById'], self.admin_b.pk)
        self.assertEqual(r.data['bedNumber'], 'ICU-4')
        self.patient.refresh_from_db()
        self.assertEqual(self.patient.current_status, 'IN_TRANSFER')
        entry = AuditLog.objects.get(entity_type='TRANSFER', action='APPROVE')
        self.assertTrue(entry.success)
        self.assertEqual(entry.changes['status'], {'from': 'REQUESTED', 'to': 'APPROVED'})

    def test_origin_cannot_approve_its_own_request(self):
        pk = self.create()['id']
        r = self.as_a.post(f'/api/transfers/{pk}/approve', {}, format='json')
        self.assertEqual(r.status_code, 403)
        self.assertEqual(Transfer.objects.get(pk=pk).status, 'REQUESTED')

    def test_approve_without_write_permission_is_forbidden_and_audited(self):
        pk = self.create()['id']
        r = self.as_nurse_b.post(f'/api/transfers/{pk}/approve', {}, format='json')
        self.assertEqual(r.status_code, 403)
        self.assertIn('transfers.write', r.data['error'])
        self.assertEqual(Transfer.objects.get(pk=pk).status, 'REQUESTED')
        failures = AuditLog.objects.filter(entity_type='TRANSFER', action='APPROVE', success=False)
        self.assertEqual(failures.count(), 1)
        self.assertEqual(failures.get().user_role, roles.NURSE)

    def test_reject_requires_reason(self):
        pk = self.create()['id']
        r = self.as_b.post(f'/api/transfers/{pk}/reject', {}, format='json')
        self.assertEqual(r.status_code, 400)
        self.assertIn('rejectionReason', r.data['details'])
        self.assertEqual(AuditLog.objects.filter(action='REJECT', success=False).count(), 1)

        r = self.as_b.post(f'/api/transfers/{pk}/reject', {'rejectionReason': 'No ICU beds'}, format='json')
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.data['status'], 'REJECTED')
        self.assertEqual(r.data['rejectionReason'], 'No ICU beds')
        self.patient.refresh_from_db()
        self.assertEqual(self.patient.current_status, 'ADMITTED')

    def test_terminal_state_cannot_be_left(self):
        pk = self.create()['id']
        self.as_b.post(f'/api/transfers/{pk}/reject', {'rejectionReason': 'Full'}, format='json')
        r = self.as_b.post(f'/api/transfers/{pk}/approve', {}, format='json')
        self.assertEqual(r.status_code, 400)
        self.assertIn('REJECTED', r.data['error'])
        self.assertEqual(Transfer.objects.get(pk=pk).status, 'REJECTED')
        self.assertEqual(AuditLog.objects.filter(action='APPROVE', success=False).count(), 1)

    def test_repeating_the_current_status_is_a_no_op(self):
        pk = self.create()['id']
        first = self.as_b.post(f'/api/transfers/{pk}/approve', {}, format='json')
        second = self.as_b.post(f'/api/transfers/{pk}/approve', {}, format='json')
        self.assertEqual(second.status_code, 200)
        self.assertEqual(second.data['approvedAt'], first.data['approvedAt'])
        self.assertEqual(AuditLog.objects.filter(action='APPROVE').count(), 1)

    def test_completion_moves_patient_and_releases_ambulance_once(self):
        pk = self.create(ambulanceId=self.ambulance.pk)['id']
        self.as_b.post(f'/api/transfers/{pk}/approve', {}, format='json')
        r = self.as_a.patch(f'/api/transfers/{pk}', {'status': 'IN_TRANSIT'}, format='json')
        self.assertEqual(r.status_code, 200, r.data)
        self.assertIsNotNone(r.data['departureTime'])
        self.ambulance.refresh_from_db()
        self.assertEqual(self.ambulance.status, 'TRANSPORTING')

        r = self.as_b.patch(f'/api/transfers/{pk}', {'status': 'COMPLETED'}, format='json')
        self.assertEqual(r.status_code, 200, r.data)
        self.assertIsNotNone(r.data['arrivalTime'])
        self.ambulance.refresh_from_db()
        self.assertEqual(self.ambulance.status, 'AVAILABLE')
        self.patient.refresh_from_db()
        self.assertEqual(self.patient.current_hospital_id, self.hospital_b.pk)
        self.assertEqual(self.patient.current_status, 'ADMITTED')

        # a second release finds nothing to do
        self.assertFalse(release_ambulance(self.ambulance.pk))
        r = self.as_a.patch(f'/api/transfers/{pk}', {'status': 'CANCELLED'}, format='json')
        self.assertEqual(r.status_code, 400)
        self.assertEqual(Transfer.objects.get(pk=pk).status, 'COMPLETED')

    def test_busy_ambulance_is_refused_on_create_and_assignment(self):
        self.ambulance.status = 'EN_ROUTE'
        self.ambulance.save()
        r = self.as_a.post(
            '/api/transfers',
            transfer_payload(self.patient, self.hospital_a, self.hospital_b, ambulanceId=self.ambulance.pk),
            format='json',
        )
        self.assertEqual(r.status_code, 400)
        self.assertIn('ambulanceId', r.data['details'])

        pk = self.create()['id']
        r = self.as_b.patch(
            f'/api/transfers/{pk}', {'status': 'APPROVED', 'ambulanceId': self.ambulance.pk}, format='json',
        )
        self.assertEqual(r.status_code, 400)
        transfer = Transfer.objects.get(pk=pk)
        self.assertEqual(transfer.status, 'REQUESTED')
        self.assertIsNone(transfer.ambulance_id)

    def test_cancelling_a_request_does_not_free_an_ambulance_it_never_took(self):
        pk = self.create(ambulanceId=self.ambulance.pk)['id']
        # the unit is sent on an emergency call before the transfer leaves
        Ambulance.objects.filter(pk=self.ambulance.pk).update(status='DISPATCHED')
        r = self.as_a.patch(f'/api/transfers/{pk}', {'status': 'CANCELLED'}, format='json')
        self.assertEqual(r.status_code, 200, r.data)
        self.ambulance.refresh_from_db()
        self.assertEqual(self.ambulance.status, 'DISPATCHED')

    def test_delete_cancels(self):
        pk = self.create()['id']
        r = self.as_a.delete(f'/api/transfers/{pk}', {'cancellationReason': 'Patient improved'}, format='json')
        self.assertEqual(r.status_code, 200, r.data)
        self.assertEqual(r.data['status'], 'CANCELLED')
        self.assertEqual(r.data['cancellationReason'], 'Patient improved')
        self.assertTrue(Transfer.objects.filter(pk=pk).exists())
        self.assertEqual(AuditLog.objects.filter(action='CANCEL', success=True).count(), 1)

    def test_destination_cannot_edit_a_request_it_did_not_make(self):
        pk = self.create()['id']
        r = self.as_b.patch(f'/api/transfers/{pk}', {'notes': 'bump'}, format='json')
        self.assertEqual(r.status_code, 403)
        self.assertEqual(Transfer.objects.get(pk=pk).notes, '')
        self.assertEqual(AuditLog.objects.filter(action='UPDATE', success=False).count(), 1)

    def test_unrelated_facility_sees_nothing(self):
        pk = self.create()['id']
        other = self.make_hospital('CGH', 'Gatundu Level 4 Hospital')
        outsider = self.client_for(self.make_user('outsider', roles.HOSPITAL_ADMIN, other))
        self.assertEqual(outsider.get(f'/api/transfers/{pk}').status_code, 403)
        self.assertEqual(outsider.get('/api/transfers').data['pagination']['total'], 0)
        self.assertEqual(self.as_b.get('/api/transfers').data['pagination']['total'], 1)

    def test_admin_cannot_edit_transfer_originating_elsewhere(self):
        patient = Patient.objects.create(
            patient_number='PAT-000002', first_name='Baraka', last_name='Mwangi',
            date_of_birth='1979-09-30', gender='MALE', current_hospital=self.hospital_b,
        )
        pk = create_transfer(self.as_b, patient, self.hospital_b, self.hospital_a)['id']
        r = self.as_a.patch(f'/api/transfers/{pk}', {'notes': 'changed', 'urgency': 'ROUTINE'}, format='json')
        self.assertEqual(r.status_code, 403)
        transfer = Transfer.objects.get(pk=pk)
        self.assertEqual(transfer.notes, '')
        self.assertEqual(transfer.urgency, 'URGENT')
