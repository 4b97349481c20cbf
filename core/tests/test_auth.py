from datetime import timedelta

import pytest
from django.urls import reverse
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken

from core import roles
from core.exceptions import InvalidToken
from core.models import AuditLog, User
from core.tokens import issue_tokens, verify_token

pytestmark = pytest.mark.django_db

PASSWORD = 'P@ssw0rd1'


def login(client, username, password=PASSWORD):
    return client.post(reverse('login_view'), {'username': username, 'password': password}, format='json')


@pytest.fixture
def nurse(hospital_a):
    return User.objects.create_user(
        username='nurse1', password=PASSWORD, role=roles.NURSE, facility=hospital_a,
        first_name='Akinyi', last_name='Odhiambo',
    )


def test_login_returns_tokens_and_sets_cookies(nurse, hospital_a):
    r = login(APIClient(), 'nurse1')
    assert r.status_code == 200
    assert r.data['token'] and r.data['refreshToken']
    assert r.data['expiresIn'] > 0
    assert r.data['user']['role'] == roles.NURSE
    assert r.data['user']['facilityId'] == str(hospital_a.pk)
    assert 'patients.write' in r.data['user']['permissions']
    assert r.cookies['auth_token'].value == r.data['token']
    assert r.cookies['auth_token']['httponly']
    assert r.cookies['refreshToken']['httponly']

    entry = AuditLog.objects.get(action='LOGIN')
    assert entry.success
    assert entry.user_id == str(nurse.pk)


def test_login_ignores_role_sent_by_client(nurse):
    r = APIClient().post(
        reverse('login_view'),
        {'username': 'nurse1', 'password': PASSWORD, 'role': 'SUPER_ADMIN'},
        format='json',
    )
    assert r.status_code == 200
    assert r.data['user']['role'] == roles.NURSE
    assert '*' not in r.data['user']['permissions']


def test_bad_credentials_are_401_and_audited(nurse):
    r = login(APIClient(), 'nurse1', 'wrong-password')
    assert r.status_code == 401
    assert r.data == {'error': 'Invalid credentials'}
    entry = AuditLog.objects.get(action='LOGIN')
    assert not entry.success
    assert entry.error_message == 'Invalid credentials'


def test_missing_fields_are_400():
    r = APIClient().post(reverse('login_view'), {'username': 'x'}, format='json')
    assert r.status_code == 400
    assert 'password' in r.data['details']


def test_bearer_header_authenticates(nurse):
    token = login(APIClient(), 'nurse1').data['token']
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')
    r = client.get(reverse('me_view'))
    assert r.status_code == 200
    assert r.data['username'] == 'nurse1'
    assert r.data['scope'] == roles.SCOPE_FACILITY


def test_auth_cookie_authenticates(nurse):
    token = login(APIClient(), 'nurse1').data['token']
    client = APIClient()
    client.cookies['auth_token'] = token
    assert client.get(reverse('me_view')).status_code == 200


def test_missing_or_invalid_token_is_401():
    assert APIClient().get(reverse('me_view')).status_code == 401
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION='Bearer not-a-token')
    r = client.get(reverse('me_view'))
    assert r.status_code == 401
    assert r.data == {'error': 'Invalid or expired token'}


def test_token_for_deactivated_user_is_rejected(nurse):
    token = str(issue_tokens(nurse).access_token)
    nurse.is_active = False
    nurse.save()
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')
    assert client.get(reverse('me_view')).status_code == 401


def test_verify_token_round_trip(nurse, hospital_a):
    principal = verify_token(str(issue_tokens(nurse).access_token))
    assert principal.id == str(nurse.pk)
    assert principal.role == roles.NURSE
    assert principal.facility_id == str(hospital_a.pk)
    assert principal.permissions == roles.permissions_for_role(roles.NURSE)


def test_verify_token_rejects_tampered_and_expired_tokens(nurse):
    head, body, sig = str(issue_tokens(nurse).access_token).split('.')
    with pytest.raises(InvalidToken):
        verify_token(f'{head}.{body}.{"A" * len(sig)}')

    expired = AccessToken.for_user(nurse)
    expired.set_exp(lifetime=-timedelta(seconds=1))
    with pytest.raises(InvalidToken):
        verify_token(str(expired))

    with pytest.raises(InvalidToken):
        verify_token('')


def test_refresh_issues_new_access_token(nurse):
    refresh = login(APIClient(), 'nurse1').data['refreshToken']
    r = APIClient().post(reverse('refresh_view'), {'refreshToken': refresh}, format='json')
    assert r.status_code == 200
    assert verify_token(r.data['token']).id == str(nurse.pk)


def test_logout_revokes_refresh_token(nurse):
    client = APIClient()
    tokens = login(client, 'nurse1').data
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {tokens["token"]}')
    r = client.post(reverse('logout_view'), {'refreshToken': tokens['refreshToken']}, format='json')
    assert r.status_code == 200
    assert r.data['revoked'] is True
    assert AuditLog.objects.filter(action='LOGOUT', success=True).count() == 1

    again = APIClient().post(reverse('refresh_view'), {'refreshToken': tokens['refreshToken']}, format='json')
    assert again.status_code == 401


def test_page_requests_redirect_to_login_without_token():
    r = APIClient().get('/dashboard')
    assert r.status_code == 302
    assert r['Location'] == '/login'
    assert r.cookies['redirect_url'].value == '/dashboard'


def test_websocket_token_lookup():
    from core.realtime.middleware import _token_from_scope

    assert _token_from_scope({'query_string': b'token=abc'}) == 'abc'
    assert _token_from_scope({'headers': [(b'cookie', b'theme=dark; auth_token=xyz')]}) == 'xyz'
    assert _token_from_scope({'query_string': b'', 'headers': []}) is None
