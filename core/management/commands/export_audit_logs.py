from django.core.management.base import BaseCommand, CommandError

from core.models import AuditLog
from core.services import audit


class Command(BaseCommand):
    help = "Write audit log entries as CSV to stdout or a file."

    def add_arguments(self, parser):
        parser.add_argument('--output', '-o', help='file to write; defaults to stdout')
        parser.add_argument('--action')
        parser.add_argument('--entity-type')
        parser.add_argument('--user-id')
        parser.add_argument('--facility-id')
        parser.add_argument('--start-date', help='ISO datetime, inclusive')
        parser.add_argument('--end-date', help='ISO datetime, inclusive')
        parser.add_argument('--failures-only', action='store_true')

    def handle(self, *args, **opts):
        params = {
            'action': opts.get('action'),
            'entityType': opts.get('entity_type'),
            'userId': opts.get('user_id'),
            'facilityId': opts.get('facility_id'),
            'startDate': opts.get('start_date'),
            'endDate': opts.get('end_date'),
        }
        if opts.get('failures_only'):
            params['success'] = 'false'
        qs = audit.filter_logs(AuditLog.objects.all(), {k: v for k, v in params.items() if v})
        body = audit.export_csv(qs.iterator())
        output = opts.get('output')
        if not output:
            self.stdout.write(body, ending='')
            return
        try:
            with open(output, 'w', encoding='utf-8', newline='') as fh:
                fh.write(body)
        except OSError as exc:
            raise CommandError(f"cannot write {output}: {exc}") from exc
        self.stdout.write(self.style.SUCCESS(f"wrote {qs.count()} entries to {output}"))
