import datetime

import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from core import roles
from core.models import Ambulance, County, Hospital, Patient, Staff, User


@pytest.fixture(autouse=True)
def _clear_throttle_cache():
    # login throttling keeps its counters in the default cache
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def county(db):
    return County.objects.create(name='Nairobi', code='NBI')


def _hospital(county, code, name):
    return Hospital.objects.create(
        name=name,
        code=code,
        type='PUBLIC',
        level='LEVEL_5',
        ownership='COUNTY_GOVERNMENT',
        county=county,
        sub_county='Westlands',
        ward='Parklands',
        address=f'{name} Road',
        phone='+254700000000',
        total_beds=100,
        functional_beds=90,
    )


@pytest.fixture
def hospital_a(county):
    return _hospital(county, 'KNH', 'Kenyatta National Hospital')


@pytest.fixture
def hospital_b(county):
    return _hospital(county, 'MLK', 'Mama Lucy Kibaki Hospital')


@pytest.fixture
def make_user(db):
    def make(role, facility=None, county=None, username=None, password='P@ssw0rd1'):
        return User.objects.create_user(
            username=username or f'{role.lower()}_{User.objects.count() + 1}',
            password=password,
            role=role,
            facility=facility,
            county=county,
            first_name=role.title(),
            last_name='Tester',
        )
    return make


@pytest.fixture
def api():
    """APIClient authenticated as ``user``; no user means anonymous."""
    def client_for(user=None):
        client = APIClient()
        if user is not None:
            client.force_authenticate(user=user)
        return client
    return client_for


@pytest.fixture
def super_admin(make_user):
    return make_user(roles.SUPER_ADMIN)


@pytest.fixture
def admin_a(make_user, hospital_a):
    return make_user(roles.HOSPITAL_ADMIN, facility=hospital_a)


@pytest.fixture
def admin_b(make_user, hospital_b):
    return make_user(roles.HOSPITAL_ADMIN, facility=hospital_b)


@pytest.fixture
def nurse_b(make_user, hospital_b):
    return make_user(roles.NURSE, facility=hospital_b)


@pytest.fixture
def dispatcher(make_user):
    return make_user(roles.DISPATCHER)


@pytest.fixture
def patient_a(hospital_a):
    return Patient.objects.create(
        patient_number='PAT-000001',
        first_name='Achieng',
        last_name='Otieno',
        date_of_birth=datetime.date(1985, 4, 12),
        gender='FEMALE',
        current_hospital=hospital_a,
        current_status='ADMITTED',
    )


@pytest.fixture
def ambulance(hospital_a, county):
    return Ambulance.objects.create(registration_number='KBA 123A', hospital=hospital_a, county=county)


@pytest.fixture
def specialist_b(hospital_b):
    return Staff.objects.create(
        staff_number='STAFF-000001',
        first_name='Wanjiru',
        last_name='Kamau',
        email='wanjiru.kamau@example.com',
        phone='+254711000000',
        role=roles.DOCTOR,
        employment_type='PERMANENT',
        hospital=hospital_b,
        specialization='Cardiology',
        hire_date=datetime.date(2019, 1, 7),
        telemedicine_enabled=True,
    )
