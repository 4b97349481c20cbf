"""
Django admin registrations for the core models.

Superusers can inspect and correct records through ``/admin/``.  The
audit log is shown read-only: entries cannot be added, changed or
deleted from the admin.
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import (
    Ambulance,
    AmbulanceMaintenance,
    AuditLog,
    County,
    DispatchLog,
    Emergency,
    EmergencyResponse,
    Hospital,
    Patient,
    Resource,
    Staff,
    StaffSchedule,
    TelemedicineSession,
    Transfer,
    TriageEntry,
    User,
)


@admin.register(County)
class CountyAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'code')
    search_fields = ('name', 'code')


@admin.register(Hospital)
class HospitalAdmin(admin.ModelAdmin):
    list_display = ('code', 'name', 'county', 'level', 'operational_status', 'accepting_patients')
    list_filter = ('county', 'level', 'type', 'operational_status')
    search_fields = ('name', 'code', 'mfl_code')


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ('username', 'role', 'facility', 'county', 'is_active', 'is_superuser')
    list_filter = ('role', 'facility', 'county', 'is_active')
    fieldsets = BaseUserAdmin.fieldsets + (
        ('Access', {'fields': ('role', 'facility', 'county', 'phone')}),
    )


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ('patient_number', 'first_name', 'last_name', 'current_hospital', 'current_status')
    list_filter = ('current_status', 'gender')
    search_fields = ('patient_number', 'first_name', 'last_name', 'national_id', 'phone')


@admin.register(TriageEntry)
class TriageEntryAdmin(admin.ModelAdmin):
    list_display = ('triage_number', 'patient', 'hospital', 'triage_level', 'status', 'arrival_time')
    list_filter = ('triage_level', 'status', 'hospital')
    search_fields = ('triage_number', 'patient__first_name', 'patient__last_name')


class AmbulanceMaintenanceInline(admin.TabularInline):
    model = AmbulanceMaintenance
    extra = 0


@admin.register(Ambulance)
class AmbulanceAdmin(admin.ModelAdmin):
    list_display = (
        'registration_number', 'type', 'hospital', 'county', 'status', 'equipment_level', 'next_service_date',
    )
    list_filter = ('status', 'type', 'equipment_level', 'is_operational')
    search_fields = ('registration_number', 'driver_name')
    inlines = [AmbulanceMaintenanceInline]


@admin.register(Transfer)
class TransferAdmin(admin.ModelAdmin):
    list_display = ('transfer_number', 'patient', 'origin_hospital', 'destination_hospital', 'status', 'urgency')
    list_filter = ('status', 'urgency')
    search_fields = ('transfer_number', 'patient__first_name', 'patient__last_name')


@admin.register(DispatchLog)
class DispatchLogAdmin(admin.ModelAdmin):
    list_display = ('dispatch_number', 'emergency_type', 'severity', 'status', 'ambulance', 'call_received')
    list_filter = ('status', 'severity')
    search_fields = ('dispatch_number', 'caller_phone', 'caller_location')


class EmergencyResponseInline(admin.TabularInline):
    model = EmergencyResponse
    extra = 0


@admin.register(Emergency)
class EmergencyAdmin(admin.ModelAdmin):
    list_display = ('emergency_number', 'type', 'severity', 'county', 'status', 'reported_at')
    list_filter = ('status', 'severity', 'county')
    inlines = [EmergencyResponseInline]


@admin.register(Staff)
class StaffAdmin(admin.ModelAdmin):
    list_display = ('staff_number', 'first_name', 'last_name', 'role', 'hospital', 'is_active')
    list_filter = ('role', 'hospital', 'is_active')
    search_fields = ('staff_number', 'first_name', 'last_name', 'email')


@admin.register(StaffSchedule)
class StaffScheduleAdmin(admin.ModelAdmin):
    list_display = ('staff', 'shift_type', 'start_time', 'end_time', 'is_active')
    list_filter = ('shift_type', 'is_active')


@admin.register(TelemedicineSession)
class TelemedicineSessionAdmin(admin.ModelAdmin):
    list_display = ('session_number', 'patient', 'specialist', 'consultation_type', 'status', 'scheduled_time')
    list_filter = ('status', 'consultation_type')
    search_fields = ('session_number',)


@admin.register(Resource)
class ResourceAdmin(admin.ModelAdmin):
    list_display = ('name', 'hospital', 'type', 'available_capacity', 'total_capacity', 'status')
    list_filter = ('type', 'status', 'hospital')
    search_fields = ('name', 'category')


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ('timestamp', 'action', 'entity_type', 'entity_id', 'user_name', 'success')
    list_filter = ('action', 'entity_type', 'success')
    search_fields = ('description', 'user_name', 'entity_id')

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
