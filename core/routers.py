"""
URL mappings for the HEMS API.

Collections live at ``/api/<module>`` and single entities at
``/api/<module>/<id>``.  Trailing slashes are deliberately omitted
(``APPEND_SLASH`` is off).
"""
from django.urls import include, path

from .auth_views import login_view, logout_view, me_view, refresh_view
from .views import (
    audit_logs,
    dispatch,
    emergencies,
    health,
    hospitals,
    patients,
    resources,
    staff,
    telemedicine,
    transfers,
)

urlpatterns = [
    path('', include('django_prometheus.urls')),
    path('healthz', health.healthz),

    # Auth
    path('api/auth/login', login_view, name='login_view'),
    path('api/auth/refresh', refresh_view, name='refresh_view'),
    path('api/auth/logout', logout_view, name='logout_view'),
    path('api/auth/me', me_view, name='me_view'),

    # Facilities
    path('api/hospitals', hospitals.hospitals),
    path('api/hospitals/<int:pk>', hospitals.hospital_detail),
    path('api/hospitals/<int:pk>/status', hospitals.hospital_status),
    path('api/hospitals/<int:pk>/capacity', hospitals.hospital_capacity),
    path('api/resources', resources.resources),
    path('api/resources/critical-shortages', resources.critical_shortages),
    path('api/resources/beds/availability', resources.bed_availability),
    path('api/resources/<int:pk>', resources.resource_detail),
    path('api/staff', staff.staff),
    path('api/staff/<int:pk>', staff.staff_detail),
    path('api/staff/<int:pk>/schedule', staff.staff_schedule),

    # Patients and triage
    path('api/patients', patients.patients),
    path('api/patients/search', patients.patient_search),
    path('api/patients/<int:pk>', patients.patient_detail),
    path('api/triage', patients.triage),
    path('api/triage/queue', patients.triage_queue),
    path('api/triage/stats', patients.triage_stats),
    path('api/triage/<int:pk>', patients.triage_detail),

    # Transfers
    path('api/transfers', transfers.transfers),
    path('api/transfers/available-beds', transfers.available_beds),
    path('api/transfers/<int:pk>', transfers.transfer_detail),
    path('api/transfers/<int:pk>/approve', transfers.transfer_approve),
    path('api/transfers/<int:pk>/reject', transfers.transfer_reject),

    # Dispatch and emergencies
    path('api/dispatch', dispatch.dispatch_logs),
    path('api/dispatch/nearest', dispatch.nearest_ambulances),
    path('api/dispatch/ambulances', dispatch.ambulances),
    path('api/dispatch/ambulances/<int:pk>', dispatch.ambulance_detail),
    path('api/dispatch/ambulances/<int:pk>/location', dispatch.ambulance_location),
    path('api/dispatch/ambulances/<int:pk>/maintenance', dispatch.ambulance_maintenance),
    path('api/dispatch/<int:pk>', dispatch.dispatch_detail),
    path('api/emergencies', emergencies.emergencies),
    path('api/emergencies/<int:pk>', emergencies.emergency_detail),
    path('api/emergencies/<int:pk>/responses', emergencies.emergency_responses),
    path('api/emergencies/<int:pk>/responses/<int:rid>', emergencies.emergency_response_detail),

    # Telemedicine
    path('api/telemedicine', telemedicine.sessions),
    path('api/telemedicine/<int:pk>', telemedicine.session_detail),

    # Audit
    path('api/audit-logs', audit_logs.audit_logs),
    path('api/audit-logs/stats', audit_logs.audit_stats),
    path('api/audit-logs/export', audit_logs.audit_export),
]
