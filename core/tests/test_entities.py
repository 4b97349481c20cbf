import datetime

import pytest
from django.utils import timezone

from core import roles
from core.models import AuditLog, Hospital, Patient, Resource, Staff, StaffSchedule, TelemedicineSession, TriageEntry

pytestmark = pytest.mark.django_db


def patient_payload(**extra):
    body = {
        'firstName': 'Njeri',
        'lastName': 'Wambui',
        'dateOfBirth': '1992-06-15',
        'gender': 'FEMALE',
        'nationalId': '28765432',
        'phone': '+254733000000',
        'allergies': ['Penicillin'],
    }
    body.update(extra)
    return body


def staff_payload(hospital, **extra):
    body = {
        'firstName': 'Otieno',
        'lastName': 'Ouma',
        'email': 'Otieno.Ouma@Example.com',
        'phone': '+254722111111',
        'role': 'nurse',
        'employmentType': 'PERMANENT',
        'hospitalId': hospital.pk,
        'hireDate': '2021-02-01',
    }
    body.update(extra)
    return body


def resource_payload(hospital, **extra):
    body = {
        'hospitalId': hospital.pk,
        'name': 'Oxygen cylinders',
        'type': 'OXYGEN',
        'category': 'Respiratory',
        'unit': 'cylinder',
        'totalCapacity': 10,
        'criticalLevel': 3,
        'reorderLevel': 5,
    }
    body.update(extra)
    return body


# ---------------------------------------------------------------------------
# Hospitals
# ---------------------------------------------------------------------------
def test_county_admin_creates_hospital(api, make_user, county):
    client = api(make_user(roles.COUNTY_ADMIN, county=county))
    r = client.post('/api/hospitals', {
        'name': 'Mbagathi County Hospital',
        'code': 'mbg',
        'type': 'PUBLIC',
        'level': 'LEVEL_4',
        'ownership': 'COUNTY_GOVERNMENT',
        'countyId': county.pk,
        'subCounty': 'Dagoretti',
        'ward': 'Kilimani',
        'address': 'Mbagathi Way',
        'phone': '+254720000001',
        'totalBeds': 180,
        'functionalBeds': 150,
    }, format='json')
    assert r.status_code == 201, r.data
    assert r.data['code'] == 'MBG'
    got = client.get(f'/api/hospitals/{r.data["id"]}')
    assert got.status_code == 200
    assert got.data == r.data


def test_functional_beds_cannot_exceed_total(api, super_admin, hospital_a):
    r = api(super_admin).patch(f'/api/hospitals/{hospital_a.pk}', {'functionalBeds': 500}, format='json')
    assert r.status_code == 400
    assert 'functionalBeds' in r.data['details']


def test_duplicate_hospital_code_conflicts(api, super_admin, hospital_a, hospital_b):
    r = api(super_admin).patch(f'/api/hospitals/{hospital_b.pk}', {'code': 'knh'}, format='json')
    assert r.status_code == 409


def test_only_super_admin_deletes_hospitals(api, make_user, county, hospital_a, admin_a):
    assert api(admin_a).delete(f'/api/hospitals/{hospital_a.pk}').status_code == 403
    county_admin = make_user(roles.COUNTY_ADMIN, county=county)
    r = api(county_admin).delete(f'/api/hospitals/{hospital_a.pk}')
    assert r.status_code == 403
    assert Hospital.objects.filter(pk=hospital_a.pk).exists()
    assert AuditLog.objects.filter(entity_type='HOSPITAL', action='DELETE', success=False).count() == 2


def test_hospital_with_dependents_cannot_be_deleted(api, super_admin, hospital_a, patient_a, hospital_b):
    client = api(super_admin)
    r = client.delete(f'/api/hospitals/{hospital_a.pk}')
    assert r.status_code == 409
    assert 'patients' in r.data['error']
    assert client.delete(f'/api/hospitals/{hospital_b.pk}').status_code == 204
    assert not Hospital.objects.filter(pk=hospital_b.pk).exists()


# ---------------------------------------------------------------------------
# Patients and triage
# ---------------------------------------------------------------------------
def test_patient_registration_defaults_to_own_facility(api, admin_a, hospital_a):
    client = api(admin_a)
    r = client.post('/api/patients', patient_payload(), format='json')
    assert r.status_code == 201, r.data
    assert r.data['patientNumber'].startswith('PAT-')
    assert r.data['currentHospitalId'] == hospital_a.pk
    assert r.data['currentStatus'] == 'REGISTERED'
    got = client.get(f'/api/patients/{r.data["id"]}')
    assert got.status_code == 200
    assert got.data == r.data
    assert AuditLog.objects.filter(entity_type='PATIENT', action='CREATE', success=True).count() == 1


def test_patient_input_is_sanitized(api, admin_a):
    r = api(admin_a).post(
        '/api/patients', patient_payload(firstName='<script>alert(1)</script>Njeri'), format='json'
    )
    assert r.status_code == 201
    assert '<' not in r.data['firstName']


def test_duplicate_national_id_conflicts(api, admin_a):
    client = api(admin_a)
    assert client.post('/api/patients', patient_payload(), format='json').status_code == 201
    r = client.post('/api/patients', patient_payload(firstName='Other'), format='json')
    assert r.status_code == 409
    assert Patient.objects.count() == 1
    assert AuditLog.objects.filter(entity_type='PATIENT', action='CREATE', success=False).count() == 1


def test_future_date_of_birth_is_rejected(api, admin_a):
    tomorrow = (timezone.localdate() + datetime.timedelta(days=1)).isoformat()
    r = api(admin_a).post('/api/patients', patient_payload(dateOfBirth=tomorrow), format='json')
    assert r.status_code == 400
    assert r.data['error'] == 'Invalid data'
    assert 'dateOfBirth' in r.data['details']


def test_patient_outside_facility_is_forbidden(api, admin_b, patient_a):
    assert api(admin_b).get(f'/api/patients/{patient_a.pk}').status_code == 403
    assert api(admin_b).get('/api/patients').data['pagination']['total'] == 0


def test_patient_list_paginates(api, admin_a, hospital_a):
    for i in range(5):
        Patient.objects.create(
            patient_number=f'PAT-1000{i}', first_name=f'P{i}', last_name='Kariuki',
            date_of_birth='2000-01-01', gender='MALE', current_hospital=hospital_a,
        )
    r = api(admin_a).get('/api/patients', {'page': 2, 'limit': 2})
    assert r.status_code == 200
    assert len(r.data['results']) == 2
    assert r.data['pagination'] == {'page': 2, 'limit': 2, 'total': 5, 'pages': 3}


def test_triage_sets_patient_in_triage_and_orders_queue(api, make_user, hospital_a, patient_a):
    client = api(make_user(roles.NURSE, facility=hospital_a))
    other = Patient.objects.create(
        patient_number='PAT-000009', first_name='Kiprop', last_name='Cheruiyot',
        date_of_birth='1970-02-02', gender='MALE', current_hospital=hospital_a,
    )
    r = client.post('/api/triage', {
        'patientId': patient_a.pk,
        'hospitalId': hospital_a.pk,
        'chiefComplaint': 'Abdominal pain',
        'triageLevel': 'LESS_URGENT',
    }, format='json')
    assert r.status_code == 201, r.data
    assert r.data['triageNumber'].startswith('TRI-')
    patient_a.refresh_from_db()
    assert patient_a.current_status == 'IN_TRIAGE'

    r = client.post('/api/triage', {
        'patientId': other.pk,
        'hospitalId': hospital_a.pk,
        'chiefComplaint': 'Chest pain, diaphoretic',
        'triageLevel': 'IMMEDIATE',
        'vitalSigns': {'bp': '80/50', 'pulse': 130},
    }, format='json')
    assert r.status_code == 201, r.data

    queue = client.get('/api/triage/queue')
    assert queue.status_code == 200
    assert [e['triageLevel'] for e in queue.data['results']] == ['IMMEDIATE', 'LESS_URGENT']
    assert queue.data['counts']['IMMEDIATE'] == 1
    assert queue.data['counts']['URGENT'] == 0
    assert queue.data['total'] == 2


def test_patient_with_active_triage_cannot_be_deleted(api, admin_a, hospital_a, patient_a):
    TriageEntry.objects.create(
        triage_number='TRI-2026-000001', patient=patient_a, hospital=hospital_a,
        chief_complaint='Fever', triage_level='URGENT', arrival_time=timezone.now(),
    )
    r = api(admin_a).delete(f'/api/patients/{patient_a.pk}')
    assert r.status_code == 409
    assert Patient.objects.filter(pk=patient_a.pk).exists()


# ---------------------------------------------------------------------------
# Staff
# ---------------------------------------------------------------------------
def test_staff_email_is_unique_case_insensitively(api, admin_a, hospital_a):
    client = api(admin_a)
    r = client.post('/api/staff', staff_payload(hospital_a), format='json')
    assert r.status_code == 201, r.data
    assert r.data['email'] == 'otieno.ouma@example.com'
    assert r.data['role'] == roles.NURSE
    assert r.data['staffNumber'].startswith('STAFF-')

    r = client.post('/api/staff', staff_payload(hospital_a, email='OTIENO.OUMA@example.com'), format='json')
    assert r.status_code == 409
    assert Staff.objects.count() == 1


def test_staff_cannot_be_placed_in_another_facility(api, admin_a, hospital_b):
    r = api(admin_a).post('/api/staff', staff_payload(hospital_b), format='json')
    assert r.status_code == 403
    assert not Staff.objects.exists()


def test_deleting_staff_deactivates(api, admin_a, hospital_a):
    client = api(admin_a)
    pk = client.post('/api/staff', staff_payload(hospital_a), format='json').data['id']
    assert client.delete(f'/api/staff/{pk}').status_code == 204
    staff = Staff.objects.get(pk=pk)
    assert staff.is_active is False
    assert client.get('/api/staff').data['pagination']['total'] == 0
    assert client.get('/api/staff', {'isActive': 'all'}).data['pagination']['total'] == 1
    entry = AuditLog.objects.get(entity_type='STAFF', action='DELETE')
    assert entry.description.startswith('Deactivated')


def test_staff_with_open_sessions_cannot_be_deactivated(api, make_user, hospital_b, specialist_b, patient_a, hospital_a):
    TelemedicineSession.objects.create(
        session_number='TM-2026-000003', patient=patient_a, specialist=specialist_b,
        requesting_hospital=hospital_a, consultation_type='SPECIALIST', chief_complaint='Murmur',
        scheduled_time=timezone.now() + datetime.timedelta(days=1),
    )
    client = api(make_user(roles.HOSPITAL_ADMIN, facility=hospital_b))
    assert client.delete(f'/api/staff/{specialist_b.pk}').status_code == 409
    specialist_b.refresh_from_db()
    assert specialist_b.is_active


def test_overlapping_shifts_conflict(api, admin_a, hospital_a):
    client = api(admin_a)
    pk = client.post('/api/staff', staff_payload(hospital_a), format='json').data['id']
    shift = {'startTime': '2026-05-04T07:00:00Z', 'endTime': '2026-05-04T15:00:00Z', 'shiftType': 'MORNING'}
    r = client.post(f'/api/staff/{pk}/schedule', shift, format='json')
    assert r.status_code == 201, r.data

    overlap = {'startTime': '2026-05-04T14:00:00Z', 'endTime': '2026-05-04T22:00:00Z', 'shiftType': 'AFTERNOON'}
    assert client.post(f'/api/staff/{pk}/schedule', overlap, format='json').status_code == 409

    after = {'startTime': '2026-05-04T15:00:00Z', 'endTime': '2026-05-04T23:00:00Z', 'shiftType': 'AFTERNOON'}
    assert client.post(f'/api/staff/{pk}/schedule', after, format='json').status_code == 201

    backwards = {'startTime': '2026-05-05T15:00:00Z', 'endTime': '2026-05-05T07:00:00Z', 'shiftType': 'NIGHT'}
    assert client.post(f'/api/staff/{pk}/schedule', backwards, format='json').status_code == 400

    assert StaffSchedule.objects.filter(staff_id=pk).count() == 2
    listing = client.get(f'/api/staff/{pk}/schedule')
    assert listing.data['pagination']['total'] == 2
    assert listing.data['results'][0]['shiftType'] == 'MORNING'


# ---------------------------------------------------------------------------
# Resources
# ---------------------------------------------------------------------------
def test_resource_status_is_derived(api, admin_a, hospital_a):
    client = api(admin_a)
    r = client.post('/api/resources', resource_payload(hospital_a), format='json')
    assert r.status_code == 201, r.data
    assert r.data['availableCapacity'] == 10
    assert r.data['status'] == 'AVAILABLE'

    r = client.patch(f'/api/resources/{r.data["id"]}', {'availableCapacity': 2, 'inUseCapacity': 8}, format='json')
    assert r.status_code == 200, r.data
    assert r.data['status'] == 'CRITICAL'


def test_resource_capacity_cannot_be_over_allocated(api, admin_a, hospital_a):
    r = api(admin_a).post(
        '/api/resources',
        resource_payload(hospital_a, availableCapacity=8, reservedCapacity=5),
        format='json',
    )
    assert r.status_code == 400
    assert 'totalCapacity' in r.data['details']
    assert not Resource.objects.exists()


def test_capacity_check_can_be_relaxed(api, admin_a, hospital_a, settings):
    settings.RESOURCE_ENFORCE_CAPACITY = False
    r = api(admin_a).post(
        '/api/resources',
        resource_payload(hospital_a, availableCapacity=8, reservedCapacity=5),
        format='json',
    )
    assert r.status_code == 201


def test_critical_shortages(api, admin_a, hospital_a, hospital_b):
    Resource.objects.create(
        hospital=hospital_a, name='O-negative blood', type='BLOOD', category='Blood bank', unit='pint',
        total_capacity=20, available_capacity=1, critical_level=4, status='CRITICAL',
    )
    Resource.objects.create(
        hospital=hospital_a, name='Gloves', type='SUPPLY', category='PPE', unit='box',
        total_capacity=100, available_capacity=80, critical_level=10,
    )
    Resource.objects.create(
        hospital=hospital_b, name='Ventilators', type='EQUIPMENT', category='ICU', unit='unit',
        total_capacity=5, available_capacity=0, critical_level=1, status='UNAVAILABLE',
    )
    r = api(admin_a).get('/api/resources/critical-shortages')
    assert r.status_code == 200
    assert r.data['total'] == 1
    row = r.data['results'][0]
    assert row['name'] == 'O-negative blood'
    assert row['shortfall'] == 3
    assert row['hospitalName'] == hospital_a.name


def test_bed_availability(api, dispatcher, hospital_a, hospital_b):
    Resource.objects.create(
        hospital=hospital_a, name='General ward', type='BED', category='Ward', unit='bed',
        total_capacity=40, available_capacity=10, in_use_capacity=30,
    )
    Resource.objects.create(
        hospital=hospital_a, name='ICU', type='BED', category='ICU', unit='bed',
        total_capacity=10, available_capacity=0, in_use_capacity=10,
    )
    r = api(dispatcher).get('/api/resources/beds/availability')
    assert r.status_code == 200
    by_hospital = {row['hospitalId']: row for row in r.data['results']}
    assert by_hospital[hospital_a.pk]['beds']['total'] == 50
    assert by_hospital[hospital_a.pk]['beds']['available'] == 10
    assert by_hospital[hospital_a.pk]['beds']['occupancy'] == 80.0
    assert by_hospital[hospital_b.pk]['beds']['total'] == 0
    assert r.data['summary'] == {'hospitals': 2, 'totalBeds': 50, 'availableBeds': 10, 'occupancy': 80.0}


def test_bed_availability_is_scoped_for_facility_roles(api, admin_b, hospital_a, hospital_b):
    r = api(admin_b).get('/api/resources/beds/availability')
    assert [row['hospitalId'] for row in r.data['results']] == [hospital_b.pk]


# ---------------------------------------------------------------------------
# Ambulances
# ---------------------------------------------------------------------------
def test_busy_ambulance_cannot_be_deleted(api, dispatcher, ambulance):
    ambulance.status = 'EN_ROUTE'
    ambulance.save()
    client = api(dispatcher)
    assert client.delete(f'/api/dispatch/ambulances/{ambulance.pk}').status_code == 409
    r = client.get('/api/dispatch/ambulances', {'status': 'EN_ROUTE'})
    assert r.data['pagination']['total'] == 1


def test_nurse_cannot_reach_dispatch(api, nurse_b):
    r = api(nurse_b).get('/api/dispatch')
    assert r.status_code == 403
    assert r.data == {'error': 'Forbidden - missing permission dispatch.read'}


def test_unauthenticated_requests_are_401(api):
    assert api().get('/api/patients').status_code == 401
