"""
Status workflow tests: transition tables, dispatch timestamps, concurrent
updates, emergency responses and telemedicine sessions.
"""
import pytest

from core import roles
from core.exceptions import InvalidTransition, NotFound
from core.models import (
    Ambulance,
    AuditLog,
    County,
    DispatchLog,
    Emergency,
    EmergencyResponse,
    TelemedicineSession,
    Transfer,
)
from core.services.workflow import DISPATCH, RESPONSE, TELEMEDICINE, TRANSFER, release_ambulance, transition
from core.tokens import Principal

pytestmark = pytest.mark.django_db


# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------
def test_terminal_states_have_no_successors():
    for workflow in (TRANSFER, DISPATCH, RESPONSE, TELEMEDICINE):
        for state in workflow.terminal:
            assert not workflow.transitions.get(state), (workflow.name, state)
            for target in workflow.statuses:
                assert not workflow.can_transition(state, target)


def test_dispatch_allows_jumping_forward_but_not_back():
    assert DISPATCH.can_transition('RECEIVED', 'ON_SCENE')
    assert DISPATCH.can_transition('NO_AMBULANCE_AVAILABLE', 'DISPATCHED')
    assert not DISPATCH.can_transition('ON_SCENE', 'EN_ROUTE')
    assert not DISPATCH.can_transition('DISPATCHED', 'NO_AMBULANCE_AVAILABLE')


def test_transfer_edges():
    assert TRANSFER.can_transition('REQUESTED', 'APPROVED')
    assert TRANSFER.can_transition('APPROVED', 'IN_TRANSIT')
    assert not TRANSFER.can_transition('REQUESTED', 'IN_TRANSIT')
    assert not TRANSFER.can_transition('APPROVED', 'REQUESTED')


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------
def test_dispatch_stamps_each_state_once(api, dispatcher, ambulance):
    client = api(dispatcher)
    r = client.post('/api/dispatch', {
        'callerPhone': '+254722000000',
        'callerLocation': 'Thika Road, Roysambu',
        'emergencyType': 'Road traffic accident',
        'severity': 'HIGH',
        'description': 'Two vehicles, one casualty trapped',
        'ambulanceId': ambulance.pk,
    }, format='json')
    assert r.status_code == 201, r.data
    pk = r.data['id']
    assert r.data['status'] == 'RECEIVED'
    assert r.data['dispatchNumber'].startswith('DISP-')

    r = client.patch(f'/api/dispatch/{pk}', {'status': 'DISPATCHED'}, format='json')
    assert r.status_code == 200, r.data
    assert r.data['status'] == 'DISPATCHED'
    assert r.data['dispatched'] is not None
    assert r.data['arrivedOnScene'] is None
    dispatched_at = r.data['dispatched']
    ambulance.refresh_from_db()
    assert ambulance.status == 'DISPATCHED'

    r = client.patch(f'/api/dispatch/{pk}', {'status': 'ON_SCENE'}, format='json')
    assert r.status_code == 200, r.data
    assert r.data['dispatched'] == dispatched_at
    assert r.data['arrivedOnScene'] is not None
    assert r.data['enRoute'] is None
    assert r.data['responseTime'] is not None

    r = client.patch(f'/api/dispatch/{pk}', {'status': 'EN_ROUTE'}, format='json')
    assert r.status_code == 400
    assert DispatchLog.objects.get(pk=pk).status == 'ON_SCENE'

    r = client.patch(f'/api/dispatch/{pk}', {'status': 'COMPLETED'}, format='json')
    assert r.status_code == 200
    assert r.data['cleared'] is not None
    ambulance.refresh_from_db()
    assert ambulance.status == 'AVAILABLE'


def test_unknown_status_is_rejected(api, dispatcher):
    log = DispatchLog.objects.create(
        dispatch_number='DISP-2026-000001', caller_phone='0700', caller_location='CBD',
        emergency_type='Fire', severity='LOW', description='Smoke', call_received='2026-01-01T08:00:00Z',
    )
    r = api(dispatcher).patch(f'/api/dispatch/{log.pk}', {'status': 'TELEPORTED'}, format='json')
    assert r.status_code == 400
    assert DispatchLog.objects.get(pk=log.pk).status == 'RECEIVED'


def test_transition_of_missing_entity_is_not_found(dispatcher):
    actor = Principal.for_user(dispatcher)
    with pytest.raises(NotFound):
        transition(DISPATCH, 424242, 'ASSESSING', actor)
    assert AuditLog.objects.filter(entity_type='DISPATCH', success=False).count() == 1


def test_concurrent_status_change_is_detected(admin_b, patient_a, hospital_a, hospital_b):
    transfer = Transfer.objects.create(
        transfer_number='TRF-2026-000009', patient=patient_a,
        origin_hospital=hospital_a, destination_hospital=hospital_b,
        urgency='URGENT', transport_mode='AMBULANCE', reason='r', diagnosis='d',
    )
    actor = Principal.for_user(admin_b)

    def sneak_in(obj, new_status):
        Transfer.objects.filter(pk=obj.pk).update(status='CANCELLED')

    with pytest.raises(InvalidTransition):
        transition(TRANSFER, transfer.pk, 'APPROVED', actor, authorize=sneak_in)
    # the whole transaction rolled back, including the competing write
    assert Transfer.objects.get(pk=transfer.pk).status == 'REQUESTED'
    assert AuditLog.objects.filter(action='APPROVE', success=False).count() == 1


# ---------------------------------------------------------------------------
# Emergency responses
# ---------------------------------------------------------------------------
def test_emergency_response_lifecycle(api, dispatcher, county, ambulance):
    client = api(dispatcher)
    r = client.post('/api/emergencies', {
        'type': 'Building collapse',
        'severity': 'CRITICAL',
        'countyId': county.pk,
        'location': 'Kware, Embakasi',
        'description': 'Six-storey building collapsed',
    }, format='json')
    assert r.status_code == 201, r.data
    emergency_id = r.data['id']

    r = client.post(f'/api/emergencies/{emergency_id}/responses', {'ambulanceId': ambulance.pk}, format='json')
    assert r.status_code == 201, r.data
    rid = r.data['id']
    assert r.data['status'] == 'DISPATCHED'
    ambulance.refresh_from_db()
    assert ambulance.status == 'DISPATCHED'

    # the busy ambulance cannot be sent again
    r = client.post(f'/api/emergencies/{emergency_id}/responses', {'ambulanceId': ambulance.pk}, format='json')
    assert r.status_code == 400

    r = client.patch(f'/api/emergencies/{emergency_id}/responses/{rid}', {'status': 'ON_SCENE'}, format='json')
    assert r.status_code == 200, r.data
    assert r.data['arrivedAt'] is not None

    r = client.patch(f'/api/emergencies/{emergency_id}/responses/{rid}', {'status': 'COMPLETED'}, format='json')
    assert r.status_code == 200
    ambulance.refresh_from_db()
    assert ambulance.status == 'AVAILABLE'


# ---------------------------------------------------------------------------
# Telemedicine
# ---------------------------------------------------------------------------
def test_telemedicine_duration_is_computed_in_minutes(api, admin_a, patient_a, hospital_a, specialist_b):
    client = api(admin_a)
    r = client.post('/api/telemedicine', {
        'patientId': patient_a.pk,
        'specialistId': specialist_b.pk,
        'requestingHospitalId': hospital_a.pk,
        'consultationType': 'SPECIALIST',
        'chiefComplaint': 'Chest pain on exertion',
        'scheduledTime': '2026-03-02T09:00:00Z',
    }, format='json')
    assert r.status_code == 201, r.data
    pk = r.data['id']
    assert r.data['status'] == 'SCHEDULED'

    r = client.patch(f'/api/telemedicine/{pk}', {
        'status': 'IN_PROGRESS', 'startTime': '2026-03-02T09:05:00Z',
    }, format='json')
    assert r.status_code == 200, r.data

    r = client.patch(f'/api/telemedicine/{pk}', {
        'status': 'COMPLETED',
        'endTime': '2026-03-02T09:50:30Z',
        'diagnosis': 'Stable angina',
    }, format='json')
    assert r.status_code == 200, r.data
    assert r.data['duration'] == 45
    session = TelemedicineSession.objects.get(pk=pk)
    assert session.status == 'COMPLETED'
    assert session.diagnosis == 'Stable angina'


def test_telemedicine_reads_are_audited(api, admin_a, patient_a, hospital_a, specialist_b):
    session = TelemedicineSession.objects.create(
        session_number='TM-2026-000001', patient=patient_a, specialist=specialist_b,
        requesting_hospital=hospital_a, consultation_type='FOLLOW_UP', chief_complaint='Review',
        scheduled_time='2026-03-02T09:00:00Z',
    )
    r = api(admin_a).get(f'/api/telemedicine/{session.pk}')
    assert r.status_code == 200
    assert AuditLog.objects.filter(action='READ', entity_type='TELEMEDICINE_SESSION').count() == 1


def test_specialist_sees_own_sessions(api, make_user, patient_a, hospital_a, specialist_b):
    # no facility binding: only the specialist link grants access
    doctor = make_user(roles.DOCTOR)
    specialist_b.user = doctor
    specialist_b.save()
    TelemedicineSession.objects.create(
        session_number='TM-2026-000002', patient=patient_a, specialist=specialist_b,
        requesting_hospital=hospital_a, consultation_type='SPECIALIST', chief_complaint='Arrhythmia',
        scheduled_time='2026-03-03T09:00:00Z',
    )
    r = api(doctor).get('/api/telemedicine')
    assert r.status_code == 200
    assert r.data['pagination']['total'] == 1


def test_ambulance_release_skips_units_out_of_service(ambulance):
    Ambulance.objects.filter(pk=ambulance.pk).update(status='MAINTENANCE')
    assert not release_ambulance(ambulance.pk)
    ambulance.refresh_from_db()
    assert ambulance.status == 'MAINTENANCE'


# ---------------------------------------------------------------------------
# Ambulance ownership
# ---------------------------------------------------------------------------
def dispatch_log(number, ambulance=None, status='RECEIVED'):
    return DispatchLog.objects.create(
        dispatch_number=f'DISP-2026-{number:06d}', caller_phone='0700', caller_location='Ngong Road',
        emergency_type='Fall', severity='HIGH', description='Elderly fall', call_received='2026-01-01T08:00:00Z',
        ambulance=ambulance, status=status,
    )


def dispatch_call(client, **extra):
    body = {
        'callerPhone': '+254722000001',
        'callerLocation': 'Mombasa Road, Imara Daima',
        'emergencyType': 'Cardiac arrest',
        'severity': 'CRITICAL',
        'description': 'Collapsed at bus stop',
    }
    body.update(extra)
    return client.post('/api/dispatch', body, format='json')


@pytest.mark.parametrize('status', ['CANCELLED', 'REJECTED'])
def test_closing_a_transfer_leaves_an_ambulance_out_on_a_dispatch(status, admin_b, ambulance, patient_a,
                                                                  hospital_a, hospital_b):
    transfer = Transfer.objects.create(
        transfer_number='TRF-2026-000011', patient=patient_a, ambulance=ambulance,
        origin_hospital=hospital_a, destination_hospital=hospital_b,
        urgency='URGENT', transport_mode='AMBULANCE', reason='r', diagnosis='d',
    )
    dispatch_log(21, ambulance, status='DISPATCHED')
    Ambulance.objects.filter(pk=ambulance.pk).update(status='DISPATCHED')

    transition(TRANSFER, transfer.pk, status, Principal.for_user(admin_b))

    ambulance.refresh_from_db()
    assert ambulance.status == 'DISPATCHED'


def test_completing_a_transfer_that_never_left_keeps_a_transporting_unit(admin_b, ambulance, patient_a,
                                                                         hospital_a, hospital_b):
    transfer = Transfer.objects.create(
        transfer_number='TRF-2026-000012', patient=patient_a, ambulance=ambulance, status='APPROVED',
        origin_hospital=hospital_a, destination_hospital=hospital_b,
        urgency='URGENT', transport_mode='AMBULANCE', reason='r', diagnosis='d',
    )
    dispatch_log(22, ambulance, status='TRANSPORTING')
    Ambulance.objects.filter(pk=ambulance.pk).update(status='TRANSPORTING')

    transition(TRANSFER, transfer.pk, 'COMPLETED', Principal.for_user(admin_b))

    ambulance.refresh_from_db()
    assert ambulance.status == 'TRANSPORTING'


def test_busy_ambulance_cannot_be_sent_on_a_second_dispatch(api, dispatcher, ambulance):
    client = api(dispatcher)
    first = dispatch_call(client, ambulanceId=ambulance.pk).data['id']
    # assigned while still free, dispatched after the first call took it
    late = dispatch_call(client, ambulanceId=ambulance.pk).data['id']
    assert client.patch(f'/api/dispatch/{first}', {'status': 'DISPATCHED'}, format='json').status_code == 200

    r = dispatch_call(client, ambulanceId=ambulance.pk)
    assert r.status_code == 400
    assert 'ambulanceId' in r.data['details']

    other = dispatch_call(client).data['id']
    r = client.patch(f'/api/dispatch/{other}', {'status': 'DISPATCHED', 'ambulanceId': ambulance.pk}, format='json')
    assert r.status_code == 400
    assert DispatchLog.objects.get(pk=other).status == 'RECEIVED'

    r = client.patch(f'/api/dispatch/{late}', {'status': 'DISPATCHED'}, format='json')
    assert r.status_code == 400
    assert DispatchLog.objects.get(pk=late).status == 'RECEIVED'
    # the refused create and both refused transitions
    assert AuditLog.objects.filter(entity_type='DISPATCH', success=False).count() == 3


def test_cancelling_one_call_keeps_the_ambulance_busy_for_another(api, dispatcher, ambulance):
    client = api(dispatcher)
    waiting = dispatch_call(client, ambulanceId=ambulance.pk).data['id']
    active = dispatch_call(client, ambulanceId=ambulance.pk).data['id']
    client.patch(f'/api/dispatch/{active}', {'status': 'EN_ROUTE'}, format='json')

    r = client.delete(f'/api/dispatch/{waiting}')
    assert r.status_code == 200, r.data
    ambulance.refresh_from_db()
    assert ambulance.status == 'EN_ROUTE'

    client.patch(f'/api/dispatch/{active}', {'status': 'COMPLETED'}, format='json')
    ambulance.refresh_from_db()
    assert ambulance.status == 'AVAILABLE'


def test_reassigning_a_dispatched_call_swaps_the_ambulances(api, dispatcher, ambulance, hospital_a, county):
    spare = Ambulance.objects.create(registration_number='KBB 777C', hospital=hospital_a, county=county)
    client = api(dispatcher)
    pk = dispatch_call(client, ambulanceId=ambulance.pk).data['id']
    client.patch(f'/api/dispatch/{pk}', {'status': 'DISPATCHED'}, format='json')

    r = client.patch(f'/api/dispatch/{pk}', {'ambulanceId': spare.pk}, format='json')
    assert r.status_code == 200, r.data
    ambulance.refresh_from_db()
    spare.refresh_from_db()
    assert ambulance.status == 'AVAILABLE'
    assert spare.status == 'DISPATCHED'

    # moving on with a third, busy unit is refused and changes nothing
    busy = Ambulance.objects.create(registration_number='KBC 888D', county=county, status='ON_SCENE')
    r = client.patch(f'/api/dispatch/{pk}', {'status': 'EN_ROUTE', 'ambulanceId': busy.pk}, format='json')
    assert r.status_code == 400
    spare.refresh_from_db()
    assert spare.status == 'DISPATCHED'


def test_response_under_another_emergency_is_not_found_before_scope(api, make_user, county, ambulance):
    coast = County.objects.create(name='Mombasa', code='MSA')
    officer = make_user(roles.COUNTY_HEALTH_OFFICER, county=coast)
    nairobi = Emergency.objects.create(
        emergency_number='EMG-2026-000001', type='Flood', severity='HIGH', county=county,
        location='Mathare', description='River burst', reported_at='2026-04-01T06:00:00Z',
    )
    mombasa = Emergency.objects.create(
        emergency_number='EMG-2026-000002', type='Fire', severity='MEDIUM', county=coast,
        location='Kongowea', description='Market fire', reported_at='2026-04-01T07:00:00Z',
    )
    response = EmergencyResponse.objects.create(
        emergency=nairobi, ambulance=ambulance, dispatched_at='2026-04-01T06:10:00Z',
    )
    client = api(officer)

    r = client.patch(f'/api/emergencies/{mombasa.pk}/responses/{response.pk}', {'status': 'EN_ROUTE'}, format='json')
    assert r.status_code == 404
    assert client.get(f'/api/emergencies/{mombasa.pk}/responses/{response.pk}').status_code == 404
    # the right emergency, but outside the officer's county
    r = client.patch(f'/api/emergencies/{nairobi.pk}/responses/{response.pk}', {'status': 'EN_ROUTE'}, format='json')
    assert r.status_code == 403
    assert EmergencyResponse.objects.get(pk=response.pk).status == 'DISPATCHED'
