"""
Database models for the HEMS backend.

These models capture facilities (counties and hospitals), the people
moving through them (patients, triage entries, transfers), the
emergency side (ambulances, dispatch logs, emergencies and responses),
telemedicine, staff rosters and facility resources, plus the
append-only audit ledger.  Status fields hold plain upper-case strings;
the allowed moves between them live in ``core.services.workflow``.
"""
from __future__ import annotations

from django.contrib.auth.models import AbstractUser
from django.db import models

from . import roles


class County(models.Model):
    name = models.CharField(max_length=128, unique=True)
    code = models.CharField(max_length=16, unique=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name_plural = 'counties'

    def __str__(self) -> str:
        return f"{self.name} ({self.code})"


class Hospital(models.Model):
    """A health facility.  Most scoped entities hang off one."""
    TYPE_CHOICES = [
        ('PUBLIC', 'Public'),
        ('PRIVATE', 'Private'),
        ('FAITH_BASED', 'Faith based'),
        ('MISSION', 'Mission'),
        ('MILITARY', 'Military'),
        ('SPECIALIZED', 'Specialized'),
        ('NGO', 'NGO'),
    ]
    LEVEL_CHOICES = [
        ('LEVEL_4', 'Level 4'),
        ('LEVEL_5', 'Level 5'),
        ('LEVEL_6', 'Level 6'),
    ]
    OWNERSHIP_CHOICES = [
        ('COUNTY_GOVERNMENT', 'County government'),
        ('NATIONAL_GOVERNMENT', 'National government'),
        ('PRIVATE', 'Private'),
        ('FAITH_BASED', 'Faith based'),
        ('NGO', 'NGO'),
        ('COMMUNITY', 'Community'),
    ]
    OPERATIONAL_STATUS_CHOICES = [
        ('OPERATIONAL', 'Operational'),
        ('LIMITED_CAPACITY', 'Limited capacity'),
        ('OVERWHELMED', 'Overwhelmed'),
        ('CLOSED', 'Closed'),
        ('EMERGENCY_ONLY', 'Emergency only'),
        ('MAINTENANCE', 'Maintenance'),
    ]

    name = models.CharField(max_length=255)
    code = models.CharField(max_length=32, unique=True)
    mfl_code = models.CharField(max_length=32, blank=True)
    type = models.CharField(max_length=16, choices=TYPE_CHOICES)
    level = models.CharField(max_length=8, choices=LEVEL_CHOICES)
    ownership = models.CharField(max_length=24, choices=OWNERSHIP_CHOICES)
    county = models.ForeignKey(County, on_delete=models.PROTECT, related_name='hospitals')
    sub_county = models.CharField(max_length=128)
    ward = models.CharField(max_length=128)
    address = models.CharField(max_length=255)
    latitude = models.FloatField(null=True, blank=True)
    longitude = models.FloatField(null=True, blank=True)
    phone = models.CharField(max_length=32)
    emergency_phone = models.CharField(max_length=32, blank=True)
    email = models.EmailField(blank=True)
    total_beds = models.PositiveIntegerField(default=0)
    functional_beds = models.PositiveIntegerField(default=0)
    icu_beds = models.PositiveIntegerField(default=0)
    hd_unit_beds = models.PositiveIntegerField(default=0)
    maternity_beds = models.PositiveIntegerField(default=0)
    pediatric_beds = models.PositiveIntegerField(default=0)
    emergency_beds = models.PositiveIntegerField(default=0)
    isolation_beds = models.PositiveIntegerField(default=0)
    operational_status = models.CharField(
        max_length=20, choices=OPERATIONAL_STATUS_CHOICES, default='OPERATIONAL', db_index=True
    )
    available_beds = models.PositiveIntegerField(default=0)
    available_icu_beds = models.PositiveIntegerField(default=0)
    available_emergency_beds = models.PositiveIntegerField(default=0)
    status_notes = models.TextField(blank=True)
    capacity_updated_at = models.DateTimeField(null=True, blank=True)
    accepting_patients = models.BooleanField(default=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"{self.name} ({self.code})"


class User(AbstractUser):
    """Login account.

    ``role`` is one of the roles in :mod:`core.roles`; ``facility`` and
    ``county`` bind facility- and county-scoped roles to the entities
    they may act on.
    """
    role = models.CharField(max_length=32, choices=roles.ROLE_CHOICES, default=roles.NURSE)
    facility = models.ForeignKey(
        Hospital, null=True, blank=True, on_delete=models.SET_NULL, related_name='users'
    )
    county = models.ForeignKey(
        County, null=True, blank=True, on_delete=models.SET_NULL, related_name='users'
    )
    phone = models.CharField(max_length=32, blank=True)

    def __str__(self) -> str:
        return f"{self.username} ({self.role})"


class Patient(models.Model):
    GENDER_CHOICES = [
        ('MALE', 'Male'),
        ('FEMALE', 'Female'),
        ('OTHER', 'Other'),
    ]
    STATUS_CHOICES = [
        ('REGISTERED', 'Registered'),
        ('IN_TRIAGE', 'In triage'),
        ('ADMITTED', 'Admitted'),
        ('AWAITING_TRANSFER', 'Awaiting transfer'),
        ('IN_TRANSFER', 'In transfer'),
        ('DISCHARGED', 'Discharged'),
        ('DECEASED', 'Deceased'),
    ]

    patient_number = models.CharField(max_length=32, unique=True)
    first_name = models.CharField(max_length=128)
    last_name = models.CharField(max_length=128)
    date_of_birth = models.DateField()
    gender = models.CharField(max_length=8, choices=GENDER_CHOICES)
    phone = models.CharField(max_length=32, blank=True)
    national_id = models.CharField(max_length=32, unique=True, null=True, blank=True)
    blood_type = models.CharField(max_length=8, blank=True)
    allergies = models.JSONField(default=list, blank=True)
    chronic_conditions = models.JSONField(default=list, blank=True)
    next_of_kin_name = models.CharField(max_length=128, blank=True)
    next_of_kin_phone = models.CharField(max_length=32, blank=True)
    current_hospital = models.ForeignKey(
        Hospital, null=True, blank=True, on_delete=models.SET_NULL, related_name='patients'
    )
    current_status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='REGISTERED', db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"{self.first_name} {self.last_name} ({self.patient_number})"


class TriageEntry(models.Model):
    LEVEL_CHOICES = [
        ('IMMEDIATE', 'Immediate'),
        ('URGENT', 'Urgent'),
        ('LESS_URGENT', 'Less urgent'),
        ('NON_URGENT', 'Non urgent'),
    ]
    STATUS_CHOICES = [
        ('WAITING', 'Waiting'),
        ('IN_ASSESSMENT', 'In assessment'),
        ('IN_TREATMENT', 'In treatment'),
        ('ADMITTED', 'Admitted'),
        ('TRANSFERRED', 'Transferred'),
        ('DISCHARGED', 'Discharged'),
        ('LEFT_WITHOUT_BEING_SEEN', 'Left without being seen'),
    ]
    ARRIVAL_MODE_CHOICES = [
        ('WALK_IN', 'Walk in'),
        ('AMBULANCE', 'Ambulance'),
        ('REFERRAL', 'Referral'),
        ('POLICE', 'Police'),
        ('OTHER', 'Other'),
    ]
    ACTIVE_STATUSES = ('WAITING', 'IN_ASSESSMENT', 'IN_TREATMENT')

    triage_number = models.CharField(max_length=32, unique=True)
    patient = models.ForeignKey(Patient, on_delete=models.PROTECT, related_name='triage_entries')
    hospital = models.ForeignKey(Hospital, on_delete=models.PROTECT, related_name='triage_entries')
    chief_complaint = models.TextField()
    triage_level = models.CharField(max_length=16, choices=LEVEL_CHOICES, db_index=True)
    status = models.CharField(max_length=32, choices=STATUS_CHOICES, default='WAITING', db_index=True)
    arrival_mode = models.CharField(max_length=16, choices=ARRIVAL_MODE_CHOICES, default='WALK_IN')
    vital_signs = models.JSONField(default=dict, blank=True)
    notes = models.TextField(blank=True)
    assessed_by = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='triage_assessments'
    )
    arrival_time = models.DateTimeField()
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=['hospital', 'status', 'arrival_time'], name='triage_hosp_status_arr_idx'),
        ]

    def __str__(self) -> str:
        return self.triage_number


class Ambulance(models.Model):
    TYPE_CHOICES = [
        ('BASIC_LIFE_SUPPORT', 'Basic life support'),
        ('ADVANCED_LIFE_SUPPORT', 'Advanced life support'),
        ('PATIENT_TRANSPORT', 'Patient transport'),
        ('AIR_AMBULANCE', 'Air ambulance'),
    ]
    STATUS_CHOICES = [
        ('AVAILABLE', 'Available'),
        ('DISPATCHED', 'Dispatched'),
        ('EN_ROUTE', 'En route'),
        ('ON_SCENE', 'On scene'),
        ('TRANSPORTING', 'Transporting'),
        ('AT_HOSPITAL', 'At hospital'),
        ('MAINTENANCE', 'Maintenance'),
        ('OUT_OF_SERVICE', 'Out of service'),
    ]
    EQUIPMENT_LEVEL_CHOICES = [
        ('BASIC', 'Basic'),
        ('INTERMEDIATE', 'Intermediate'),
        ('ADVANCED', 'Advanced'),
        ('CRITICAL_CARE', 'Critical care'),
    ]
    OFF_DUTY_STATUSES = ('MAINTENANCE', 'OUT_OF_SERVICE')

    registration_number = models.CharField(max_length=32, unique=True)
    type = models.CharField(max_length=24, choices=TYPE_CHOICES, default='BASIC_LIFE_SUPPORT')
    hospital = models.ForeignKey(
        Hospital, null=True, blank=True, on_delete=models.SET_NULL, related_name='ambulances'
    )
    county = models.ForeignKey(
        County, null=True, blank=True, on_delete=models.SET_NULL, related_name='ambulances'
    )
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default='AVAILABLE', db_index=True)
    driver_name = models.CharField(max_length=128, blank=True)
    driver_phone = models.CharField(max_length=32, blank=True)
    equipment_level = models.CharField(max_length=16, choices=EQUIPMENT_LEVEL_CHOICES, default='BASIC')
    is_operational = models.BooleanField(default=True)
    fuel_level = models.PositiveSmallIntegerField(null=True, blank=True)
    latitude = models.FloatField(null=True, blank=True)
    longitude = models.FloatField(null=True, blank=True)
    location_accuracy = models.FloatField(null=True, blank=True)
    location_updated_at = models.DateTimeField(null=True, blank=True)
    next_service_date = models.DateField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"{self.registration_number} ({self.status})"


class AmbulanceMaintenance(models.Model):
    ambulance = models.ForeignKey(Ambulance, on_delete=models.CASCADE, related_name='maintenance_records')
    type = models.CharField(max_length=64)
    description = models.TextField()
    cost = models.DecimalField(max_digits=12, decimal_places=2)
    performed_by = models.CharField(max_length=255)
    performed_at = models.DateTimeField()
    next_service_date = models.DateField(null=True, blank=True)
    recorded_by = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='maintenance_records'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ('-performed_at', '-id')

    def __str__(self) -> str:
        return f"{self.ambulance_id}: {self.type}"


class Transfer(models.Model):
    STATUS_CHOICES = [
        ('REQUESTED', 'Requested'),
        ('APPROVED', 'Approved'),
        ('REJECTED', 'Rejected'),
        ('IN_TRANSIT', 'In transit'),
        ('COMPLETED', 'Completed'),
        ('CANCELLED', 'Cancelled'),
    ]
    URGENCY_CHOICES = [
        ('IMMEDIATE', 'Immediate'),
        ('URGENT', 'Urgent'),
        ('SCHEDULED', 'Scheduled'),
        ('ROUTINE', 'Routine'),
    ]
    TRANSPORT_MODE_CHOICES = [
        ('AMBULANCE', 'Ambulance'),
        ('AIR_AMBULANCE', 'Air ambulance'),
        ('PRIVATE_VEHICLE', 'Private vehicle'),
        ('INTER_FACILITY_TRANSPORT', 'Inter-facility transport'),
        ('PUBLIC_TRANSPORT', 'Public transport'),
    ]
    # statuses in which the transfer keeps its ambulance busy
    AMBULANCE_HOLDING_STATUSES = ('IN_TRANSIT',)

    transfer_number = models.CharField(max_length=32, unique=True)
    patient = models.ForeignKey(Patient, on_delete=models.PROTECT, related_name='transfers')
    origin_hospital = models.ForeignKey(Hospital, on_delete=models.PROTECT, related_name='outgoing_transfers')
    destination_hospital = models.ForeignKey(Hospital, on_delete=models.PROTECT, related_name='incoming_transfers')
    triage_entry = models.ForeignKey(
        TriageEntry, null=True, blank=True, on_delete=models.SET_NULL, related_name='transfers'
    )
    ambulance = models.ForeignKey(
        Ambulance, null=True, blank=True, on_delete=models.SET_NULL, related_name='transfers'
    )
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default='REQUESTED', db_index=True)
    urgency = models.CharField(max_length=16, choices=URGENCY_CHOICES)
    transport_mode = models.CharField(max_length=32, choices=TRANSPORT_MODE_CHOICES)
    reason = models.TextField()
    diagnosis = models.TextField()
    vital_signs = models.JSONField(default=dict, blank=True)
    notes = models.TextField(blank=True)
    bed_reserved = models.BooleanField(default=False)
    bed_number = models.CharField(max_length=32, blank=True)
    rejection_reason = models.TextField(blank=True)
    cancellation_reason = models.TextField(blank=True)
    initiated_by = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='initiated_transfers'
    )
    approved_by = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='approved_transfers'
    )
    requested_at = models.DateTimeField(auto_now_add=True)
    approved_at = models.DateTimeField(null=True, blank=True)
    rejected_at = models.DateTimeField(null=True, blank=True)
    departure_time = models.DateTimeField(null=True, blank=True)
    arrival_time = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=['origin_hospital', 'status'], name='transfer_origin_status_idx'),
            models.Index(fields=['destination_hospital', 'status'], name='transfer_dest_status_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.transfer_number} ({self.status})"


class DispatchLog(models.Model):
    STATUS_CHOICES = [
        ('RECEIVED', 'Received'),
        ('ASSESSING', 'Assessing'),
        ('DISPATCHED', 'Dispatched'),
        ('EN_ROUTE', 'En route'),
        ('ON_SCENE', 'On scene'),
        ('TRANSPORTING', 'Transporting'),
        ('AT_HOSPITAL', 'At hospital'),
        ('COMPLETED', 'Completed'),
        ('CANCELLED', 'Cancelled'),
        ('NO_AMBULANCE_AVAILABLE', 'No ambulance available'),
    ]
    AMBULANCE_HOLDING_STATUSES = ('DISPATCHED', 'EN_ROUTE', 'ON_SCENE', 'TRANSPORTING', 'AT_HOSPITAL')
    SEVERITY_CHOICES = [
        ('CRITICAL', 'Critical'),
        ('HIGH', 'High'),
        ('MEDIUM', 'Medium'),
        ('LOW', 'Low'),
    ]

    dispatch_number = models.CharField(max_length=32, unique=True)
    caller_phone = models.CharField(max_length=32)
    caller_name = models.CharField(max_length=128, blank=True)
    caller_location = models.CharField(max_length=255)
    emergency_type = models.CharField(max_length=64)
    severity = models.CharField(max_length=8, choices=SEVERITY_CHOICES)
    description = models.TextField()
    county = models.ForeignKey(
        County, null=True, blank=True, on_delete=models.SET_NULL, related_name='dispatch_logs'
    )
    destination_hospital = models.ForeignKey(
        Hospital, null=True, blank=True, on_delete=models.SET_NULL, related_name='dispatch_logs'
    )
    ambulance = models.ForeignKey(
        Ambulance, null=True, blank=True, on_delete=models.SET_NULL, related_name='dispatch_logs'
    )
    status = models.CharField(max_length=24, choices=STATUS_CHOICES, default='RECEIVED', db_index=True)
    call_received = models.DateTimeField()
    assessment_started = models.DateTimeField(null=True, blank=True)
    dispatched = models.DateTimeField(null=True, blank=True)
    en_route = models.DateTimeField(null=True, blank=True)
    arrived_on_scene = models.DateTimeField(null=True, blank=True)
    departed_scene = models.DateTimeField(null=True, blank=True)
    arrived_hospital = models.DateTimeField(null=True, blank=True)
    handover_completed = models.DateTimeField(null=True, blank=True)
    cleared = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    response_time = models.PositiveIntegerField(null=True, blank=True, help_text="Seconds from call to scene")
    transport_time = models.PositiveIntegerField(null=True, blank=True, help_text="Seconds from scene to hospital")
    notes = models.TextField(blank=True)
    created_by = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='dispatch_logs'
    )
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"{self.dispatch_number} ({self.status})"


class Emergency(models.Model):
    STATUS_CHOICES = [
        ('ACTIVE', 'Active'),
        ('CONTAINED', 'Contained'),
        ('RESOLVED', 'Resolved'),
    ]

    emergency_number = models.CharField(max_length=32, unique=True)
    type = models.CharField(max_length=64)
    severity = models.CharField(max_length=8, choices=DispatchLog.SEVERITY_CHOICES)
    county = models.ForeignKey(County, on_delete=models.PROTECT, related_name='emergencies')
    location = models.CharField(max_length=255)
    description = models.TextField()
    casualties = models.PositiveIntegerField(default=0)
    status = models.CharField(max_length=12, choices=STATUS_CHOICES, default='ACTIVE', db_index=True)
    reported_at = models.DateTimeField()
    reported_by = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='reported_emergencies'
    )
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name_plural = 'emergencies'

    def __str__(self) -> str:
        return f"{self.emergency_number} ({self.status})"


class EmergencyResponse(models.Model):
    STATUS_CHOICES = [
        ('DISPATCHED', 'Dispatched'),
        ('EN_ROUTE', 'En route'),
        ('ON_SCENE', 'On scene'),
        ('TREATING', 'Treating'),
        ('TRANSPORTING', 'Transporting'),
        ('COMPLETED', 'Completed'),
        ('CANCELLED', 'Cancelled'),
    ]
    AMBULANCE_HOLDING_STATUSES = ('DISPATCHED', 'EN_ROUTE', 'ON_SCENE', 'TREATING', 'TRANSPORTING')

    emergency = models.ForeignKey(Emergency, on_delete=models.CASCADE, related_name='responses')
    ambulance = models.ForeignKey(
        Ambulance, null=True, blank=True, on_delete=models.SET_NULL, related_name='responses'
    )
    hospital = models.ForeignKey(
        Hospital, null=True, blank=True, on_delete=models.SET_NULL, related_name='emergency_responses'
    )
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default='DISPATCHED', db_index=True)
    notes = models.TextField(blank=True)
    dispatched_at = models.DateTimeField()
    arrived_at = models.DateTimeField(null=True, blank=True)
    departed_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"{self.emergency_id}/{self.pk} ({self.status})"


class Staff(models.Model):
    """Facility staff record, optionally linked to a login account."""
    EMPLOYMENT_TYPE_CHOICES = [
        ('PERMANENT', 'Permanent'),
        ('CONTRACT', 'Contract'),
        ('LOCUM', 'Locum'),
        ('INTERN', 'Intern'),
        ('VOLUNTEER', 'Volunteer'),
    ]

    staff_number = models.CharField(max_length=32, unique=True)
    user = models.OneToOneField(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='staff_profile'
    )
    first_name = models.CharField(max_length=128)
    last_name = models.CharField(max_length=128)
    email = models.EmailField(unique=True)
    phone = models.CharField(max_length=32)
    role = models.CharField(max_length=32, choices=roles.ROLE_CHOICES)
    employment_type = models.CharField(max_length=16, choices=EMPLOYMENT_TYPE_CHOICES)
    hospital = models.ForeignKey(Hospital, on_delete=models.PROTECT, related_name='staff')
    specialization = models.CharField(max_length=128, blank=True)
    license_number = models.CharField(max_length=64, blank=True)
    hire_date = models.DateField()
    telemedicine_enabled = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name_plural = 'staff'

    def __str__(self) -> str:
        return f"{self.first_name} {self.last_name} ({self.staff_number})"


class StaffSchedule(models.Model):
    SHIFT_CHOICES = [
        ('MORNING', 'Morning'),
        ('AFTERNOON', 'Afternoon'),
        ('NIGHT', 'Night'),
        ('DAY', 'Day'),
        ('ON_CALL', 'On call'),
    ]

    staff = models.ForeignKey(Staff, on_delete=models.CASCADE, related_name='schedules')
    start_time = models.DateTimeField()
    end_time = models.DateTimeField()
    shift_type = models.CharField(max_length=12, choices=SHIFT_CHOICES)
    notes = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)
    created_by = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='created_schedules'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['staff', 'start_time'], name='schedule_staff_start_idx'),
        ]


class TelemedicineSession(models.Model):
    STATUS_CHOICES = [
        ('SCHEDULED', 'Scheduled'),
        ('IN_PROGRESS', 'In progress'),
        ('COMPLETED', 'Completed'),
        ('CANCELLED', 'Cancelled'),
        ('NO_SHOW', 'No show'),
        ('TECHNICAL_FAILURE', 'Technical failure'),
    ]
    CONSULTATION_TYPE_CHOICES = [
        ('EMERGENCY', 'Emergency'),
        ('SPECIALIST', 'Specialist'),
        ('SECOND_OPINION', 'Second opinion'),
        ('FOLLOW_UP', 'Follow up'),
        ('DIAGNOSTIC_REVIEW', 'Diagnostic review'),
    ]
    CONNECTION_QUALITY_CHOICES = [
        ('EXCELLENT', 'Excellent'),
        ('GOOD', 'Good'),
        ('FAIR', 'Fair'),
        ('POOR', 'Poor'),
        ('FAILED', 'Failed'),
    ]

    session_number = models.CharField(max_length=32, unique=True)
    patient = models.ForeignKey(Patient, on_delete=models.PROTECT, related_name='telemedicine_sessions')
    specialist = models.ForeignKey(Staff, on_delete=models.PROTECT, related_name='telemedicine_sessions')
    requesting_hospital = models.ForeignKey(
        Hospital, on_delete=models.PROTECT, related_name='telemedicine_requests'
    )
    consultation_type = models.CharField(max_length=20, choices=CONSULTATION_TYPE_CHOICES)
    chief_complaint = models.TextField()
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='SCHEDULED', db_index=True)
    scheduled_time = models.DateTimeField()
    start_time = models.DateTimeField(null=True, blank=True)
    end_time = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    duration = models.PositiveIntegerField(null=True, blank=True, help_text="Minutes")
    diagnosis = models.TextField(blank=True)
    recommendations = models.TextField(blank=True)
    prescriptions = models.JSONField(default=list, blank=True)
    connection_quality = models.CharField(max_length=12, choices=CONNECTION_QUALITY_CHOICES, blank=True)
    requires_in_person_visit = models.BooleanField(default=False)
    requires_referral = models.BooleanField(default=False)
    created_by = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='created_sessions'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"{self.session_number} ({self.status})"


class Resource(models.Model):
    TYPE_CHOICES = [
        ('BED', 'Bed'),
        ('EQUIPMENT', 'Equipment'),
        ('SUPPLY', 'Supply'),
        ('MEDICATION', 'Medication'),
        ('OXYGEN', 'Oxygen'),
        ('BLOOD', 'Blood'),
    ]
    STATUS_CHOICES = [
        ('AVAILABLE', 'Available'),
        ('LIMITED', 'Limited'),
        ('CRITICAL', 'Critical'),
        ('UNAVAILABLE', 'Unavailable'),
        ('MAINTENANCE', 'Maintenance'),
    ]

    hospital = models.ForeignKey(Hospital, on_delete=models.PROTECT, related_name='resources')
    name = models.CharField(max_length=255)
    type = models.CharField(max_length=12, choices=TYPE_CHOICES, db_index=True)
    category = models.CharField(max_length=64)
    unit = models.CharField(max_length=32)
    total_capacity = models.PositiveIntegerField()
    available_capacity = models.PositiveIntegerField()
    reserved_capacity = models.PositiveIntegerField(default=0)
    in_use_capacity = models.PositiveIntegerField(default=0)
    critical_level = models.PositiveIntegerField(default=0)
    reorder_level = models.PositiveIntegerField(default=0)
    status = models.CharField(max_length=12, choices=STATUS_CHOICES, default='AVAILABLE')
    is_operational = models.BooleanField(default=True)
    last_restocked = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"{self.name} @ {self.hospital_id}"


class AuditLogQuerySet(models.QuerySet):
    def update(self, **kwargs):
        raise TypeError('audit log entries are immutable')

    def delete(self):
        raise TypeError('audit log entries cannot be deleted')


class AuditLog(models.Model):
    """Append-only record of who did what, when and with what outcome."""
    ACTION_CHOICES = [
        ('CREATE', 'Create'),
        ('READ', 'Read'),
        ('UPDATE', 'Update'),
        ('DELETE', 'Delete'),
        ('APPROVE', 'Approve'),
        ('REJECT', 'Reject'),
        ('CANCEL', 'Cancel'),
        ('LOGIN', 'Login'),
        ('LOGOUT', 'Logout'),
    ]

    action = models.CharField(max_length=16, choices=ACTION_CHOICES)
    entity_type = models.CharField(max_length=64)
    entity_id = models.CharField(max_length=64, blank=True)
    user_id = models.CharField(max_length=64, blank=True)
    user_role = models.CharField(max_length=32, blank=True)
    user_name = models.CharField(max_length=255, blank=True)
    description = models.TextField(blank=True)
    changes = models.JSONField(null=True, blank=True)
    facility_id = models.CharField(max_length=64, blank=True)
    success = models.BooleanField(default=True)
    error_message = models.TextField(blank=True)
    ip_address = models.CharField(max_length=64, blank=True)
    user_agent = models.CharField(max_length=255, blank=True)
    timestamp = models.DateTimeField(auto_now_add=True)

    objects = AuditLogQuerySet.as_manager()

    class Meta:
        indexes = [
            models.Index(fields=['action', 'timestamp'], name='audit_action_ts_idx'),
            models.Index(fields=['entity_type', 'entity_id', 'timestamp'], name='audit_entity_ts_idx'),
            models.Index(fields=['user_id', 'timestamp'], name='audit_user_ts_idx'),
        ]

    def save(self, *args, **kwargs):
        if self.pk is not None:
            raise TypeError('audit log entries are immutable')
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise TypeError('audit log entries cannot be deleted')

    def __str__(self) -> str:
        return f"{self.action} {self.entity_type}:{self.entity_id} ({'ok' if self.success else 'fail'})"
