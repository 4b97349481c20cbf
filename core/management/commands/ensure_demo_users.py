# core/management/commands/ensure_demo_users.py
from django.contrib.auth.hashers import make_password
from django.core.management.base import BaseCommand
from django.db import transaction

from core import roles
from core.models import County, Hospital, User

DEMO_COUNTY = {'code': 'NBI', 'name': 'Nairobi'}
DEMO_HOSPITALS = [
    {'code': 'KNH', 'name': 'Kenyatta National Hospital', 'level': 'LEVEL_6'},
    {'code': 'MLK', 'name': 'Mama Lucy Kibaki Hospital', 'level': 'LEVEL_5'},
]
GLOBAL_OR_COUNTY = {roles.SCOPE_GLOBAL, roles.SCOPE_COUNTY}


class Command(BaseCommand):
    help = "Ensure a demo county, two hospitals and one user per role exist (idempotent)."

    def add_arguments(self, parser):
        parser.add_argument('--password', default='demo12345', help='password set on every demo user')

    @transaction.atomic
    def handle(self, *args, **opts):
        county, _ = County.objects.get_or_create(code=DEMO_COUNTY['code'], defaults={'name': DEMO_COUNTY['name']})
        hospitals = []
        for entry in DEMO_HOSPITALS:
            hospital, _ = Hospital.objects.get_or_create(
                code=entry['code'],
                defaults={
                    'name': entry['name'],
                    'type': 'PUBLIC',
                    'level': entry['level'],
                    'ownership': 'NATIONAL_GOVERNMENT',
                    'county': county,
                    'sub_county': 'Central',
                    'ward': 'Central',
                    'address': entry['name'],
                    'phone': '+254700000000',
                },
            )
            hospitals.append(hospital)

        password = make_password(opts['password'])
        for role, _label in roles.ROLE_CHOICES:
            scope = roles.role_scope(role)
            username = role.lower()
            defaults = {
                'role': role,
                'facility': None if scope in GLOBAL_OR_COUNTY else hospitals[0],
                'county': county if scope == roles.SCOPE_COUNTY else None,
                'is_active': True,
                'is_staff': role == roles.SUPER_ADMIN,
                'is_superuser': role == roles.SUPER_ADMIN,
            }
            user, created = User.objects.get_or_create(username=username, defaults={**defaults, 'password': password})
            if not created:
                for key, value in defaults.items():
                    setattr(user, key, value)
                user.password = password
                user.save()
            self.stdout.write(self.style.SUCCESS(f"ok: {username} ({role}, {scope})"))
        self.stdout.write(self.style.SUCCESS("All demo users ensured."))
