import django.contrib.auth.models
import django.contrib.auth.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models

import core.roles


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('auth', '0012_alter_user_first_name_max_length'),
    ]

    operations = [
        migrations.CreateModel(
            name='County',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=128, unique=True)),
                ('code', models.CharField(max_length=16, unique=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'verbose_name_plural': 'counties',
            },
        ),
        migrations.CreateModel(
            name='Hospital',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=255)),
                ('code', models.CharField(max_length=32, unique=True)),
                ('mfl_code', models.CharField(blank=True, max_length=32)),
                ('type', models.CharField(choices=[('PUBLIC', 'Public'), ('PRIVATE', 'Private'), ('FAITH_BASED', 'Faith based'), ('MISSION', 'Mission'), ('MILITARY', 'Military'), ('SPECIALIZED', 'Specialized'), ('NGO', 'NGO')], max_length=16)),
                ('level', models.CharField(choices=[('LEVEL_4', 'Level 4'), ('LEVEL_5', 'Level 5'), ('LEVEL_6', 'Level 6')], max_length=8)),
                ('ownership', models.CharField(choices=[('COUNTY_GOVERNMENT', 'County government'), ('NATIONAL_GOVERNMENT', 'National government'), ('PRIVATE', 'Private'), ('FAITH_BASED', 'Faith based'), ('NGO', 'NGO'), ('COMMUNITY', 'Community')], max_length=24)),
                ('sub_county', models.CharField(max_length=128)),
                ('ward', models.CharField(max_length=128)),
                ('address', models.CharField(max_length=255)),
                ('latitude', models.FloatField(blank=True, null=True)),
                ('longitude', models.FloatField(blank=True, null=True)),
                ('phone', models.CharField(max_length=32)),
                ('emergency_phone', models.CharField(blank=True, max_length=32)),
                ('email', models.EmailField(blank=True, max_length=254)),
                ('total_beds', models.PositiveIntegerField(default=0)),
                ('functional_beds', models.PositiveIntegerField(default=0)),
                ('icu_beds', models.PositiveIntegerField(default=0)),
                ('hd_unit_beds', models.PositiveIntegerField(default=0)),
                ('maternity_beds', models.PositiveIntegerField(default=0)),
                ('pediatric_beds', models.PositiveIntegerField(default=0)),
                ('emergency_beds', models.PositiveIntegerField(default=0)),
                ('isolation_beds', models.PositiveIntegerField(default=0)),
                ('operational_status', models.CharField(choices=[('OPERATIONAL', 'Operational'), ('LIMITED_CAPACITY', 'Limited capacity'), ('OVERWHELMED', 'Overwhelmed'), ('CLOSED', 'Closed'), ('EMERGENCY_ONLY', 'Emergency only'), ('MAINTENANCE', 'Maintenance')], db_index=True, default='OPERATIONAL', max_length=20)),
                ('accepting_patients', models.BooleanField(default=True)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('county', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='hospitals', to='core.county')),
            ],
        ),
        migrations.CreateModel(
            name='User',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('password', models.CharField(max_length=128, verbose_name='password')),
                ('last_login', models.DateTimeField(blank=True, null=True, verbose_name='last login')),
                ('is_superuser', models.BooleanField(default=False, help_text='Designates that this user has all permissions without explicitly assigning them.', verbose_name='superuser status')),
                ('username', models.CharField(error_messages={'unique': 'A user with that username already exists.'}, help_text='Required. 150 characters or fewer. Letters, digits and @/./+/-/_ only.', max_length=150, unique=True, validators=[django.contrib.auth.validators.UnicodeUsernameValidator()], verbose_name='username')),
                ('first_name', models.CharField(blank=True, max_length=150, verbose_name='first name')),
                ('last_name', models.CharField(blank=True, max_length=150, verbose_name='last name')),
                ('email', models.EmailField(blank=True, max_length=254, verbose_name='email address')),
                ('is_staff', models.BooleanField(default=False, help_text='Designates whether the user can log into this admin site.', verbose_name='staff status')),
                ('is_active', models.BooleanField(default=True, help_text='Designates whether this user should be treated as active. Unselect this instead of deleting accounts.', verbose_name='active')),
                ('date_joined', models.DateTimeField(default=django.utils.timezone.now, verbose_name='date joined')),
                ('role', models.CharField(choices=core.roles.ROLE_CHOICES, default='NURSE', max_length=32)),
                ('phone', models.CharField(blank=True, max_length=32)),
                ('county', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='users', to='core.county')),
                ('facility', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='users', to='core.hospital')),
                ('groups', models.ManyToManyField(blank=True, help_text='The groups this user belongs to. A user will get all permissions granted to each of their groups.', related_name='user_set', related_query_name='user', to='auth.group', verbose_name='groups')),
                ('user_permissions', models.ManyToManyField(blank=True, help_text='Specific permissions for this user.', related_name='user_set', related_query_name='user', to='auth.permission', verbose_name='user permissions')),
            ],
            options={
                'verbose_name': 'user',
                'verbose_name_plural': 'users',
                'abstract': False,
            },
            managers=[
                ('objects', django.contrib.auth.models.UserManager()),
            ],
        ),
        migrations.CreateModel(
            name='Patient',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('patient_number', models.CharField(max_length=32, unique=True)),
                ('first_name', models.CharField(max_length=128)),
                ('last_name', models.CharField(max_length=128)),
                ('date_of_birth', models.DateField()),
                ('gender', models.CharField(choices=[('MALE', 'Male'), ('FEMALE', 'Female'), ('OTHER', 'Other')], max_length=8)),
                ('phone', models.CharField(blank=True, max_length=32)),
                ('national_id', models.CharField(blank=True, max_length=32, null=True, unique=True)),
                ('blood_type', models.CharField(blank=True, max_length=8)),
                ('allergies', models.JSONField(blank=True, default=list)),
                ('chronic_conditions', models.JSONField(blank=True, default=list)),
                ('next_of_kin_name', models.CharField(blank=True, max_length=128)),
                ('next_of_kin_phone', models.CharField(blank=True, max_length=32)),
                ('current_status', models.CharField(choices=[('REGISTERED', 'Registered'), ('IN_TRIAGE', 'In triage'), ('ADMITTED', 'Admitted'), ('AWAITING_TRANSFER', 'Awaiting transfer'), ('IN_TRANSFER', 'In transfer'), ('DISCHARGED', 'Discharged'), ('DECEASED', 'Deceased')], db_index=True, default='REGISTERED', max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('current_hospital', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='patients', to='core.hospital')),
            ],
        ),
        migrations.CreateModel(
            name='TriageEntry',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('triage_number', models.CharField(max_length=32, unique=True)),
                ('chief_complaint', models.TextField()),
                ('triage_level', models.CharField(choices=[('IMMEDIATE', 'Immediate'), ('URGENT', 'Urgent'), ('LESS_URGENT', 'Less urgent'), ('NON_URGENT', 'Non urgent')], db_index=True, max_length=16)),
                ('status', models.CharField(choices=[('WAITING', 'Waiting'), ('IN_ASSESSMENT', 'In assessment'), ('IN_TREATMENT', 'In treatment'), ('ADMITTED', 'Admitted'), ('TRANSFERRED', 'Transferred'), ('DISCHARGED', 'Discharged'), ('LEFT_WITHOUT_BEING_SEEN', 'Left without being seen')], db_index=True, default='WAITING', max_length=32)),
                ('arrival_mode', models.CharField(choices=[('WALK_IN', 'Walk in'), ('AMBULANCE', 'Ambulance'), ('REFERRAL', 'Referral'), ('POLICE', 'Police'), ('OTHER', 'Other')], default='WALK_IN', max_length=16)),
                ('vital_signs', models.JSONField(blank=True, default=dict)),
                ('notes', models.TextField(blank=True)),
                ('arrival_time', models.DateTimeField()),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('assessed_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='triage_assessments', to=settings.AUTH_USER_MODEL)),
                ('hospital', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='triage_entries', to='core.hospital')),
                ('patient', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='triage_entries', to='core.patient')),
            ],
            options={
                'indexes': [models.Index(fields=['hospital', 'status', 'arrival_time'], name='triage_hosp_status_arr_idx')],
            },
        ),
        migrations.CreateModel(
            name='Ambulance',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('registration_number', models.CharField(max_length=32, unique=True)),
                ('type', models.CharField(choices=[('BASIC_LIFE_SUPPORT', 'Basic life support'), ('ADVANCED_LIFE_SUPPORT', 'Advanced life support'), ('PATIENT_TRANSPORT', 'Patient transport'), ('AIR_AMBULANCE', 'Air ambulance')], default='BASIC_LIFE_SUPPORT', max_length=24)),
                ('status', models.CharField(choices=[('AVAILABLE', 'Available'), ('DISPATCHED', 'Dispatched'), ('EN_ROUTE', 'En route'), ('ON_SCENE', 'On scene'), ('TRANSPORTING', 'Transporting'), ('AT_HOSPITAL', 'At hospital'), ('MAINTENANCE', 'Maintenance'), ('OUT_OF_SERVICE', 'Out of service')], db_index=True, default='AVAILABLE', max_length=16)),
                ('driver_name', models.CharField(blank=True, max_length=128)),
                ('driver_phone', models.CharField(blank=True, max_length=32)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('county', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='ambulances', to='core.county')),
                ('hospital', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='ambulances', to='core.hospital')),
            ],
        ),
        migrations.CreateModel(
            name='Transfer',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('transfer_number', models.CharField(max_length=32, unique=True)),
                ('status', models.CharField(choices=[('REQUESTED', 'Requested'), ('APPROVED', 'Approved'), ('REJECTED', 'Rejected'), ('IN_TRANSIT', 'In transit'), ('COMPLETED', 'Completed'), ('CANCELLED', 'Cancelled')], db_index=True, default='REQUESTED', max_length=16)),
                ('urgency', models.CharField(choices=[('IMMEDIATE', 'Immediate'), ('URGENT', 'Urgent'), ('SCHEDULED', 'Scheduled'), ('ROUTINE', 'Routine')], max_length=16)),
                ('transport_mode', models.CharField(choices=[('AMBULANCE', 'Ambulance'), ('AIR_AMBULANCE', 'Air ambulance'), ('PRIVATE_VEHICLE', 'Private vehicle'), ('INTER_FACILITY_TRANSPORT', 'Inter-facility transport'), ('PUBLIC_TRANSPORT', 'Public transport')], max_length=32)),
                ('reason', models.TextField()),
                ('diagnosis', models.TextField()),
                ('vital_signs', models.JSONField(blank=True, default=dict)),
                ('notes', models.TextField(blank=True)),
                ('bed_reserved', models.BooleanField(default=False)),
                ('bed_number', models.CharField(blank=True, max_length=32)),
                ('rejection_reason', models.TextField(blank=True)),
                ('cancellation_reason', models.TextField(blank=True)),
                ('requested_at', models.DateTimeField(auto_now_add=True)),
                ('approved_at', models.DateTimeField(blank=True, null=True)),
                ('rejected_at', models.DateTimeField(blank=True, null=True)),
                ('departure_time', models.DateTimeField(blank=True, null=True)),
                ('arrival_time', models.DateTimeField(blank=True, null=True)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('cancelled_at', models.DateTimeField(blank=True, null=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('ambulance', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='transfers', to='core.ambulance')),
                ('approved_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='approved_transfers', to=settings.AUTH_USER_MODEL)),
                ('destination_hospital', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='incoming_transfers', to='core.hospital')),
                ('initiated_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='initiated_transfers', to=settings.AUTH_USER_MODEL)),
                ('origin_hospital', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='outgoing_transfers', to='core.hospital')),
                ('patient', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='transfers', to='core.patient')),
                ('triage_entry', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='transfers', to='core.triageentry')),
            ],
            options={
                'indexes': [
                    models.Index(fields=['origin_hospital', 'status'], name='transfer_origin_status_idx'),
                    models.Index(fields=['destination_hospital', 'status'], name='transfer_dest_status_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='DispatchLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('dispatch_number', models.CharField(max_length=32, unique=True)),
                ('caller_phone', models.CharField(max_length=32)),
                ('caller_name', models.CharField(blank=True, max_length=128)),
                ('caller_location', models.CharField(max_length=255)),
                ('emergency_type', models.CharField(max_length=64)),
                ('severity', models.CharField(choices=[('CRITICAL', 'Critical'), ('HIGH', 'High'), ('MEDIUM', 'Medium'), ('LOW', 'Low')], max_length=8)),
                ('description', models.TextField()),
                ('status', models.CharField(choices=[('RECEIVED', 'Received'), ('ASSESSING', 'Assessing'), ('DISPATCHED', 'Dispatched'), ('EN_ROUTE', 'En route'), ('ON_SCENE', 'On scene'), ('TRANSPORTING', 'Transporting'), ('AT_HOSPITAL', 'At hospital'), ('COMPLETED', 'Completed'), ('CANCELLED', 'Cancelled'), ('NO_AMBULANCE_AVAILABLE', 'No ambulance available')], db_index=True, default='RECEIVED', max_length=24)),
                ('call_received', models.DateTimeField()),
                ('assessment_started', models.DateTimeField(blank=True, null=True)),
                ('dispatched', models.DateTimeField(blank=True, null=True)),
                ('en_route', models.DateTimeField(blank=True, null=True)),
                ('arrived_on_scene', models.DateTimeField(blank=True, null=True)),
                ('departed_scene', models.DateTimeField(blank=True, null=True)),
                ('arrived_hospital', models.DateTimeField(blank=True, null=True)),
                ('handover_completed', models.DateTimeField(blank=True, null=True)),
                ('cleared', models.DateTimeField(blank=True, null=True)),
                ('cancelled_at', models.DateTimeField(blank=True, null=True)),
                ('response_time', models.PositiveIntegerField(blank=True, help_text='Seconds from call to scene', null=True)),
                ('transport_time', models.PositiveIntegerField(blank=True, help_text='Seconds from scene to hospital', null=True)),
                ('notes', models.TextField(blank=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('ambulance', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='dispatch_logs', to='core.ambulance')),
                ('county', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='dispatch_logs', to='core.county')),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='dispatch_logs', to=settings.AUTH_USER_MODEL)),
                ('destination_hospital', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='dispatch_logs', to='core.hospital')),
            ],
        ),
        migrations.CreateModel(
            name='Emergency',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('emergency_number', models.CharField(max_length=32, unique=True)),
                ('type', models.CharField(max_length=64)),
                ('severity', models.CharField(choices=[('CRITICAL', 'Critical'), ('HIGH', 'High'), ('MEDIUM', 'Medium'), ('LOW', 'Low')], max_length=8)),
                ('location', models.CharField(max_length=255)),
                ('description', models.TextField()),
                ('casualties', models.PositiveIntegerField(default=0)),
                ('status', models.CharField(choices=[('ACTIVE', 'Active'), ('CONTAINED', 'Contained'), ('RESOLVED', 'Resolved')], db_index=True, default='ACTIVE', max_length=12)),
                ('reported_at', models.DateTimeField()),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('county', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='emergencies', to='core.county')),
                ('reported_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='reported_emergencies', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name_plural': 'emergencies',
            },
        ),
        migrations.CreateModel(
            name='EmergencyResponse',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('status', models.CharField(choices=[('DISPATCHED', 'Dispatched'), ('EN_ROUTE', 'En route'), ('ON_SCENE', 'On scene'), ('TREATING', 'Treating'), ('TRANSPORTING', 'Transporting'), ('COMPLETED', 'Completed'), ('CANCELLED', 'Cancelled')], db_index=True, default='DISPATCHED', max_length=16)),
                ('notes', models.TextField(blank=True)),
                ('dispatched_at', models.DateTimeField()),
                ('arrived_at', models.DateTimeField(blank=True, null=True)),
                ('departed_at', models.DateTimeField(blank=True, null=True)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('cancelled_at', models.DateTimeField(blank=True, null=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('ambulance', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='responses', to='core.ambulance')),
                ('emergency', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='responses', to='core.emergency')),
                ('hospital', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='emergency_responses', to='core.hospital')),
            ],
        ),
        migrations.CreateModel(
            name='Staff',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('staff_number', models.CharField(max_length=32, unique=True)),
                ('first_name', models.CharField(max_length=128)),
                ('last_name', models.CharField(max_length=128)),
                ('email', models.EmailField(max_length=254, unique=True)),
                ('phone', models.CharField(max_length=32)),
                ('role', models.CharField(choices=core.roles.ROLE_CHOICES, max_length=32)),
                ('employment_type', models.CharField(choices=[('PERMANENT', 'Permanent'), ('CONTRACT', 'Contract'), ('LOCUM', 'Locum'), ('INTERN', 'Intern'), ('VOLUNTEER', 'Volunteer')], max_length=16)),
                ('specialization', models.CharField(blank=True, max_length=128)),
                ('license_number', models.CharField(blank=True, max_length=64)),
                ('hire_date', models.DateField()),
                ('telemedicine_enabled', models.BooleanField(default=False)),
                ('is_active', models.BooleanField(db_index=True, default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('hospital', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='staff', to='core.hospital')),
                ('user', models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='staff_profile', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name_plural': 'staff',
            },
        ),
        migrations.CreateModel(
            name='StaffSchedule',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('start_time', models.DateTimeField()),
                ('end_time', models.DateTimeField()),
                ('shift_type', models.CharField(choices=[('MORNING', 'Morning'), ('AFTERNOON', 'Afternoon'), ('NIGHT', 'Night'), ('DAY', 'Day'), ('ON_CALL', 'On call')], max_length=12)),
                ('notes', models.TextField(blank=True)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='created_schedules', to=settings.AUTH_USER_MODEL)),
                ('staff', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='schedules', to='core.staff')),
            ],
            options={
                'indexes': [models.Index(fields=['staff', 'start_time'], name='schedule_staff_start_idx')],
            },
        ),
        migrations.CreateModel(
            name='TelemedicineSession',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('session_number', models.CharField(max_length=32, unique=True)),
                ('consultation_type', models.CharField(choices=[('EMERGENCY', 'Emergency'), ('SPECIALIST', 'Specialist'), ('SECOND_OPINION', 'Second opinion'), ('FOLLOW_UP', 'Follow up'), ('DIAGNOSTIC_REVIEW', 'Diagnostic review')], max_length=20)),
                ('chief_complaint', models.TextField()),
                ('status', models.CharField(choices=[('SCHEDULED', 'Scheduled'), ('IN_PROGRESS', 'In progress'), ('COMPLETED', 'Completed'), ('CANCELLED', 'Cancelled'), ('NO_SHOW', 'No show'), ('TECHNICAL_FAILURE', 'Technical failure')], db_index=True, default='SCHEDULED', max_length=20)),
                ('scheduled_time', models.DateTimeField()),
                ('start_time', models.DateTimeField(blank=True, null=True)),
                ('end_time', models.DateTimeField(blank=True, null=True)),
                ('cancelled_at', models.DateTimeField(blank=True, null=True)),
                ('duration', models.PositiveIntegerField(blank=True, help_text='Minutes', null=True)),
                ('diagnosis', models.TextField(blank=True)),
                ('recommendations', models.TextField(blank=True)),
                ('prescriptions', models.JSONField(blank=True, default=list)),
                ('connection_quality', models.CharField(blank=True, choices=[('EXCELLENT', 'Excellent'), ('GOOD', 'Good'), ('FAIR', 'Fair'), ('POOR', 'Poor'), ('FAILED', 'Failed')], max_length=12)),
                ('requires_in_person_visit', models.BooleanField(default=False)),
                ('requires_referral', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='created_sessions', to=settings.AUTH_USER_MODEL)),
                ('patient', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='telemedicine_sessions', to='core.patient')),
                ('requesting_hospital', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='telemedicine_requests', to='core.hospital')),
                ('specialist', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='telemedicine_sessions', to='core.staff')),
            ],
        ),
        migrations.CreateModel(
            name='Resource',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=255)),
                ('type', models.CharField(choices=[('BED', 'Bed'), ('EQUIPMENT', 'Equipment'), ('SUPPLY', 'Supply'), ('MEDICATION', 'Medication'), ('OXYGEN', 'Oxygen'), ('BLOOD', 'Blood')], db_index=True, max_length=12)),
                ('category', models.CharField(max_length=64)),
                ('unit', models.CharField(max_length=32)),
                ('total_capacity', models.PositiveIntegerField()),
                ('available_capacity', models.PositiveIntegerField()),
                ('reserved_capacity', models.PositiveIntegerField(default=0)),
                ('in_use_capacity', models.PositiveIntegerField(default=0)),
                ('critical_level', models.PositiveIntegerField(default=0)),
                ('reorder_level', models.PositiveIntegerField(default=0)),
                ('status', models.CharField(choices=[('AVAILABLE', 'Available'), ('LIMITED', 'Limited'), ('CRITICAL', 'Critical'), ('UNAVAILABLE', 'Unavailable'), ('MAINTENANCE', 'Maintenance')], default='AVAILABLE', max_length=12)),
                ('is_operational', models.BooleanField(default=True)),
                ('last_restocked', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('hospital', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='resources', to='core.hospital')),
            ],
        ),
        migrations.CreateModel(
            name='AuditLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('action', models.CharField(choices=[('CREATE', 'Create'), ('READ', 'Read'), ('UPDATE', 'Update'), ('DELETE', 'Delete'), ('APPROVE', 'Approve'), ('REJECT', 'Reject'), ('CANCEL', 'Cancel'), ('LOGIN', 'Login'), ('LOGOUT', 'Logout')], max_length=16)),
                ('entity_type', models.CharField(max_length=64)),
                ('entity_id', models.CharField(blank=True, max_length=64)),
                ('user_id', models.CharField(blank=True, max_length=64)),
                ('user_role', models.CharField(blank=True, max_length=32)),
                ('user_name', models.CharField(blank=True, max_length=255)),
                ('description', models.TextField(blank=True)),
                ('changes', models.JSONField(blank=True, null=True)),
                ('facility_id', models.CharField(blank=True, max_length=64)),
                ('success', models.BooleanField(default=True)),
                ('error_message', models.TextField(blank=True)),
                ('ip_address', models.CharField(blank=True, max_length=64)),
                ('user_agent', models.CharField(blank=True, max_length=255)),
                ('timestamp', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'indexes': [
                    models.Index(fields=['action', 'timestamp'], name='audit_action_ts_idx'),
                    models.Index(fields=['entity_type', 'entity_id', 'timestamp'], name='audit_entity_ts_idx'),
                    models.Index(fields=['user_id', 'timestamp'], name='audit_user_ts_idx'),
                ],
            },
        ),
    ]
