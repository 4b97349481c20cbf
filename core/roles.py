"""
Static role → permission table.

Every role maps to a frozen set of dotted permission strings such as
``"transfers.write"``; ``"*"`` grants everything.  The table is built once
at import time and exposed through read-only mappings, so nothing at
runtime can widen a role's permissions.
"""
from __future__ import annotations

from types import MappingProxyType
from typing import Iterable, Mapping

WILDCARD = '*'

# Scope levels, see core.permissions.check_scope
SCOPE_GLOBAL = 'global'
SCOPE_COUNTY = 'county'
SCOPE_FACILITY = 'facility'

SUPER_ADMIN = 'SUPER_ADMIN'
ADMIN = 'ADMIN'
COUNTY_ADMIN = 'COUNTY_ADMIN'
COUNTY_HEALTH_OFFICER = 'COUNTY_HEALTH_OFFICER'
HOSPITAL_ADMIN = 'HOSPITAL_ADMIN'
FACILITY_MANAGER = 'FACILITY_MANAGER'
DOCTOR = 'DOCTOR'
NURSE = 'NURSE'
TRIAGE_OFFICER = 'TRIAGE_OFFICER'
DISPATCHER = 'DISPATCHER'
DISPATCH_COORDINATOR = 'DISPATCH_COORDINATOR'
AMBULANCE_DRIVER = 'AMBULANCE_DRIVER'
AMBULANCE_CREW = 'AMBULANCE_CREW'
EMERGENCY_MANAGER = 'EMERGENCY_MANAGER'
FINANCE_OFFICER = 'FINANCE_OFFICER'
LAB_TECHNICIAN = 'LAB_TECHNICIAN'
PHARMACIST = 'PHARMACIST'
MEDICAL_SUPERINTENDENT = 'MEDICAL_SUPERINTENDENT'
HOSPITAL_DIRECTOR = 'HOSPITAL_DIRECTOR'

ROLE_CHOICES = [
    (SUPER_ADMIN, 'Super Administrator'),
    (ADMIN, 'Administrator'),
    (COUNTY_ADMIN, 'County Administrator'),
    (COUNTY_HEALTH_OFFICER, 'County Health Officer'),
    (HOSPITAL_ADMIN, 'Hospital Administrator'),
    (FACILITY_MANAGER, 'Facility Manager'),
    (DOCTOR, 'Doctor'),
    (NURSE, 'Nurse'),
    (TRIAGE_OFFICER, 'Triage Officer'),
    (DISPATCHER, 'Dispatcher'),
    (DISPATCH_COORDINATOR, 'Dispatch Coordinator'),
    (AMBULANCE_DRIVER, 'Ambulance Driver'),
    (AMBULANCE_CREW, 'Ambulance Crew'),
    (EMERGENCY_MANAGER, 'Emergency Manager'),
    (FINANCE_OFFICER, 'Finance Officer'),
    (LAB_TECHNICIAN, 'Lab Technician'),
    (PHARMACIST, 'Pharmacist'),
    (MEDICAL_SUPERINTENDENT, 'Medical Superintendent'),
    (HOSPITAL_DIRECTOR, 'Hospital Director'),
]

_MODULES = (
    'triage', 'patients', 'transfers', 'dispatch', 'ambulances', 'emergencies',
    'referrals', 'resources', 'procurement', 'claims', 'telemedicine', 'staff',
    'hospitals', 'settings', 'monitoring', 'system',
)


def _rw(*modules: str) -> set[str]:
    out: set[str] = set()
    for m in modules:
        out.add(f'{m}.read')
        out.add(f'{m}.write')
    return out


def _r(*modules: str) -> set[str]:
    return {f'{m}.read' for m in modules}


ALL_PERMISSIONS = frozenset(
    {WILDCARD, 'dashboard.read', 'analytics.read', 'audit.read'} | _rw(*_MODULES)
)

_TABLE: dict[str, frozenset[str]] = {
    SUPER_ADMIN: ALL_PERMISSIONS,
    ADMIN: ALL_PERMISSIONS,
    COUNTY_ADMIN: frozenset(
        {'dashboard.read', 'analytics.read', 'audit.read'}
        | _rw('hospitals', 'patients', 'triage', 'transfers', 'emergencies', 'referrals',
              'resources', 'procurement', 'staff', 'telemedicine', 'monitoring')
        | _r('dispatch', 'ambulances', 'claims')
    ),
    COUNTY_HEALTH_OFFICER: frozenset(
        {'dashboard.read', 'analytics.read'}
        | _rw('emergencies', 'monitoring')
        | _r('hospitals', 'patients', 'triage', 'transfers', 'dispatch', 'ambulances',
             'referrals', 'resources', 'staff', 'telemedicine')
    ),
    HOSPITAL_ADMIN: frozenset(
        {'dashboard.read', 'analytics.read', 'audit.read'}
        | _rw('patients', 'triage', 'transfers', 'referrals', 'resources', 'procurement',
              'claims', 'staff', 'telemedicine', 'settings')
        | _r('hospitals', 'dispatch', 'ambulances', 'emergencies')
    ),
    FACILITY_MANAGER: frozenset(
        {'dashboard.read', 'analytics.read'}
        | _rw('resources', 'procurement', 'staff')
        | _r('hospitals', 'patients', 'transfers')
    ),
    DOCTOR: frozenset(
        {'dashboard.read'}
        | _rw('patients', 'triage', 'transfers', 'referrals', 'telemedicine')
        | _r('resources', 'emergencies')
    ),
    NURSE: frozenset(
        {'dashboard.read'}
        | _rw('patients', 'triage')
        | _r('transfers', 'resources', 'telemedicine')
    ),
    TRIAGE_OFFICER: frozenset(
        {'dashboard.read'}
        | _rw('triage', 'patients')
        | _r('transfers', 'resources', 'emergencies')
    ),
    DISPATCHER: frozenset(
        {'dashboard.read'}
        | _rw('dispatch', 'ambulances', 'emergencies')
        | _r('hospitals', 'transfers', 'resources')
    ),
    DISPATCH_COORDINATOR: frozenset(
        {'dashboard.read', 'analytics.read'}
        | _rw('dispatch', 'ambulances', 'emergencies', 'transfers')
        | _r('hospitals', 'resources', 'patients')
    ),
    AMBULANCE_DRIVER: frozenset(
        {'dashboard.read'}
        | _r('dispatch', 'ambulances', 'emergencies', 'hospitals')
    ),
    AMBULANCE_CREW: frozenset(
        {'dashboard.read'}
        | _rw('dispatch')
        | _r('ambulances', 'emergencies', 'patients', 'hospitals')
    ),
    EMERGENCY_MANAGER: frozenset(
        {'dashboard.read', 'analytics.read'}
        | _rw('emergencies', 'dispatch', 'ambulances', 'monitoring')
        | _r('hospitals', 'transfers', 'resources')
    ),
    FINANCE_OFFICER: frozenset(
        {'dashboard.read', 'analytics.read'}
        | _rw('claims', 'procurement')
        | _r('patients', 'resources')
    ),
    LAB_TECHNICIAN: frozenset({'dashboard.read'} | _r('patients', 'triage', 'resources')),
    PHARMACIST: frozenset({'dashboard.read'} | _rw('resources') | _r('patients', 'procurement')),
    MEDICAL_SUPERINTENDENT: frozenset(
        {'dashboard.read', 'analytics.read', 'audit.read'}
        | _rw('patients', 'triage', 'transfers', 'referrals', 'resources', 'staff', 'telemedicine')
        | _r('hospitals', 'emergencies', 'claims')
    ),
    HOSPITAL_DIRECTOR: frozenset(
        {'dashboard.read', 'analytics.read', 'audit.read'}
        | _rw('staff', 'resources', 'procurement', 'settings')
        | _r('hospitals', 'patients', 'transfers', 'claims', 'telemedicine', 'emergencies')
    ),
}

ROLE_PERMISSIONS: Mapping[str, frozenset[str]] = MappingProxyType(_TABLE)

ROLE_SCOPES: Mapping[str, str] = MappingProxyType({
    SUPER_ADMIN: SCOPE_GLOBAL,
    ADMIN: SCOPE_GLOBAL,
    DISPATCHER: SCOPE_GLOBAL,
    DISPATCH_COORDINATOR: SCOPE_GLOBAL,
    AMBULANCE_DRIVER: SCOPE_GLOBAL,
    AMBULANCE_CREW: SCOPE_GLOBAL,
    EMERGENCY_MANAGER: SCOPE_GLOBAL,
    COUNTY_ADMIN: SCOPE_COUNTY,
    COUNTY_HEALTH_OFFICER: SCOPE_COUNTY,
    HOSPITAL_ADMIN: SCOPE_FACILITY,
    FACILITY_MANAGER: SCOPE_FACILITY,
    DOCTOR: SCOPE_FACILITY,
    NURSE: SCOPE_FACILITY,
    TRIAGE_OFFICER: SCOPE_FACILITY,
    FINANCE_OFFICER: SCOPE_FACILITY,
    LAB_TECHNICIAN: SCOPE_FACILITY,
    PHARMACIST: SCOPE_FACILITY,
    MEDICAL_SUPERINTENDENT: SCOPE_FACILITY,
    HOSPITAL_DIRECTOR: SCOPE_FACILITY,
})

ROLE_ALIASES: Mapping[str, str] = MappingProxyType({
    'superadmin': SUPER_ADMIN,
    'super_admin': SUPER_ADMIN,
    'system_admin': ADMIN,
    'admin': ADMIN,
    'county_admin': COUNTY_ADMIN,
    'county_health_officer': COUNTY_HEALTH_OFFICER,
    'hospital_admin': HOSPITAL_ADMIN,
    'facility_admin': HOSPITAL_ADMIN,
    'facility_manager': FACILITY_MANAGER,
    'doctor': DOCTOR,
    'medical_officer': DOCTOR,
    'clinician': DOCTOR,
    'specialist': DOCTOR,
    'nurse': NURSE,
    'triage_nurse': TRIAGE_OFFICER,
    'triage_officer': TRIAGE_OFFICER,
    'dispatcher': DISPATCHER,
    'dispatch_coordinator': DISPATCH_COORDINATOR,
    'ambulance_driver': AMBULANCE_DRIVER,
    'driver': AMBULANCE_DRIVER,
    'paramedic': AMBULANCE_CREW,
    'ambulance_crew': AMBULANCE_CREW,
    'emergency_manager': EMERGENCY_MANAGER,
    'finance_officer': FINANCE_OFFICER,
    'lab_technician': LAB_TECHNICIAN,
    'pharmacist': PHARMACIST,
    'medical_superintendent': MEDICAL_SUPERINTENDENT,
    'hospital_director': HOSPITAL_DIRECTOR,
})

# Dashboard modules and the permission each one needs
MODULE_PERMISSIONS: Mapping[str, str] = MappingProxyType({
    'dashboard': 'dashboard.read',
    'analytics': 'analytics.read',
    'audit': 'audit.read',
    **{m: f'{m}.read' for m in _MODULES},
})

BASIC_PERMISSIONS = frozenset({'dashboard.read'})


def normalize_role(role: str | None) -> str:
    """Return the canonical upper-case role for ``role`` or its alias."""
    if not role:
        return ''
    key = str(role).strip()
    if key.upper() in ROLE_PERMISSIONS:
        return key.upper()
    return ROLE_ALIASES.get(key.lower(), key.upper())


def permissions_for_role(role: str | None) -> frozenset[str]:
    return ROLE_PERMISSIONS.get(normalize_role(role), frozenset())


def role_scope(role: str | None) -> str:
    # Unknown roles are treated as the narrowest scope
    return ROLE_SCOPES.get(normalize_role(role), SCOPE_FACILITY)


def ensure_basic_permissions(role: str | None, granted: Iterable[str] = ()) -> frozenset[str]:
    """Merge token-carried permissions with the role's static set.

    A token issued before a role gained permissions still receives them;
    a principal never ends up with an empty set.
    """
    merged = frozenset(granted or ()) | permissions_for_role(role)
    return merged or BASIC_PERMISSIONS
