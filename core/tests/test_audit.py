import csv
import io
import json
from unittest import mock

import pytest
from django.db import DatabaseError

from core import roles
from core.models import AuditLog
from core.services import audit
from core.services.patients import PatientService
from core.tokens import Principal

pytestmark = pytest.mark.django_db


def entry(**fields):
    values = {'action': 'UPDATE', 'entity_type': 'PATIENT', 'entity_id': '1', 'description': 'edited'}
    values.update(fields)
    return AuditLog.objects.create(**values)


def test_record_copies_actor_and_request_meta(admin_a, hospital_a):
    actor = Principal.for_user(admin_a)
    row = audit.record(
        actor=actor,
        action=audit.UPDATE,
        entity_type='PATIENT',
        entity_id=42,
        description='Updated patient',
        changes={'phone': {'from': '1', 'to': '2'}},
        meta={'ip_address': '10.0.0.8', 'user_agent': 'pytest'},
    )
    assert row.user_id == str(admin_a.pk)
    assert row.user_role == roles.HOSPITAL_ADMIN
    assert row.entity_id == '42'
    assert row.facility_id == str(hospital_a.pk)
    assert row.ip_address == '10.0.0.8'
    assert row.changes == {'phone': {'from': '1', 'to': '2'}}
    assert row.success


def test_entries_are_immutable():
    row = entry()
    row.description = 'rewritten'
    with pytest.raises(TypeError):
        row.save()
    with pytest.raises(TypeError):
        AuditLog.objects.filter(pk=row.pk).update(description='rewritten')
    with pytest.raises(TypeError):
        row.delete()
    with pytest.raises(TypeError):
        AuditLog.objects.all().delete()
    assert AuditLog.objects.get(pk=row.pk).description == 'edited'


def test_unavailable_store_falls_back_to_log(settings, dispatcher):
    settings.AUDIT_WRITE_ATTEMPTS = 2
    sink = mock.Mock()
    with mock.patch.object(AuditLog.objects, 'create', side_effect=DatabaseError('disk full')) as create, \
            mock.patch.object(audit, 'fallback_logger', sink):
        result = audit.record(
            actor=Principal.for_user(dispatcher),
            action=audit.CREATE,
            entity_type='DISPATCH',
            entity_id=7,
            description='Created dispatch',
        )
    assert result is None
    assert create.call_count == 2
    sink.error.assert_called_once()
    payload = json.loads(sink.error.call_args[0][0])
    assert payload['audit']['entity_type'] == 'DISPATCH'
    assert payload['audit']['entity_id'] == '7'
    assert 'disk full' in payload['reason']


def test_operation_survives_audit_outage(admin_a):
    service = PatientService(Principal.for_user(admin_a), user=admin_a)
    with mock.patch.object(audit, 'fallback_logger'), \
            mock.patch.object(AuditLog.objects, 'create', side_effect=DatabaseError('down')):
        created = service.create({
            'firstName': 'Mumbi', 'lastName': 'Njoroge', 'dateOfBirth': '1999-12-01', 'gender': 'FEMALE',
        })
    assert created['id']
    assert not AuditLog.objects.exists()


def test_each_mutation_leaves_one_entry(api, admin_a):
    client = api(admin_a)
    body = {'firstName': 'Mumbi', 'lastName': 'Njoroge', 'dateOfBirth': '1999-12-01', 'gender': 'FEMALE'}
    pk = client.post('/api/patients', body, format='json').data['id']
    client.patch(f'/api/patients/{pk}', {'phone': '+254700123456'}, format='json')
    client.patch(f'/api/patients/{pk}', {'gender': 'UNKNOWN'}, format='json')
    client.delete(f'/api/patients/{pk}')

    rows = list(AuditLog.objects.filter(entity_type='PATIENT').order_by('id'))
    assert [(r.action, r.success) for r in rows] == [
        ('CREATE', True), ('UPDATE', True), ('UPDATE', False), ('DELETE', True),
    ]
    assert rows[1].changes['phone'] == {'from': '', 'to': '+254700123456'}
    assert 'gender' not in rows[1].changes
    assert rows[2].error_message.startswith('Invalid data')


def test_list_is_filtered_and_scoped(api, admin_a, hospital_a, hospital_b):
    entry(facility_id=str(hospital_a.pk), action='CREATE')
    entry(facility_id=str(hospital_a.pk), action='UPDATE', success=False, error_message='boom')
    entry(facility_id=str(hospital_b.pk), action='CREATE')

    client = api(admin_a)
    r = client.get('/api/audit-logs')
    assert r.status_code == 200
    assert r.data['pagination']['total'] == 2
    assert {row['facilityId'] for row in r.data['results']} == {str(hospital_a.pk)}

    r = client.get('/api/audit-logs', {'success': 'false'})
    assert [row['errorMessage'] for row in r.data['results']] == ['boom']


def test_global_reader_sees_everything(api, super_admin, hospital_a, hospital_b):
    entry(facility_id=str(hospital_a.pk))
    entry(facility_id=str(hospital_b.pk))
    r = api(super_admin).get('/api/audit-logs', {'entityType': 'PATIENT'})
    assert r.data['pagination']['total'] == 2


def test_readers_need_audit_permission(api, nurse_b):
    r = api(nurse_b).get('/api/audit-logs')
    assert r.status_code == 403
    assert r.data['error'] == 'Forbidden - missing permission audit.read'


def test_statistics(api, super_admin):
    entry(action='CREATE')
    entry(action='CREATE')
    entry(action='DELETE', success=False)
    r = api(super_admin).get('/api/audit-logs/stats')
    assert r.status_code == 200
    assert r.data['total'] == 3
    assert r.data['last24h'] == 3
    assert r.data['failures'] == 1
    assert r.data['byAction'] == {'CREATE': 2, 'DELETE': 1}


def test_export_is_csv_and_audited(api, super_admin):
    entry(description='Admitted, then moved')
    r = api(super_admin).get('/api/audit-logs/export')
    assert r.status_code == 200
    assert r['Content-Type'].startswith('text/csv')
    assert 'attachment' in r['Content-Disposition']
    rows = list(csv.reader(io.StringIO(r.content.decode())))
    assert tuple(rows[0]) == audit.CSV_COLUMNS
    assert rows[1][audit.CSV_COLUMNS.index('description')] == 'Admitted, then moved'
    assert AuditLog.objects.filter(entity_type='AUDIT_LOG', action='READ').count() == 1
