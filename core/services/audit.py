"""
Audit recorder.

``record`` writes one :class:`~core.models.AuditLog` row synchronously,
retrying a bounded number of times inside its own savepoint.  When the
store stays unavailable the entry is emitted as JSON on the
``core.audit.fallback`` logger (stderr) and the caller carries on: an
audit failure never fails the operation being audited.

The query helpers back the ``/api/audit-logs`` endpoints and the
``export_audit_logs`` management command.
"""
from __future__ import annotations

import csv
import io
import json
import logging
from datetime import timedelta
from typing import Any, Iterable, Mapping

from django.conf import settings
from django.db import DatabaseError, transaction
from django.db.models import Count, Q, QuerySet
from django.utils import timezone
from django.utils.dateparse import parse_datetime

from core import roles
from core.models import AuditLog, Hospital
from core.tokens import Principal

logger = logging.getLogger(__name__)
fallback_logger = logging.getLogger('core.audit.fallback')

CREATE = 'CREATE'
READ = 'READ'
UPDATE = 'UPDATE'
DELETE = 'DELETE'
APPROVE = 'APPROVE'
REJECT = 'REJECT'
CANCEL = 'CANCEL'
LOGIN = 'LOGIN'
LOGOUT = 'LOGOUT'

CSV_COLUMNS = (
    'timestamp', 'action', 'entityType', 'entityId', 'userId', 'userRole',
    'userName', 'description', 'facilityId', 'success', 'errorMessage', 'ipAddress',
)


def request_meta(request) -> dict[str, str]:
    """Client address and agent for audit rows; empty when no request."""
    if request is None:
        return {}
    forwarded = request.META.get('HTTP_X_FORWARDED_FOR', '')
    ip = forwarded.split(',')[0].strip() if forwarded else request.META.get('REMOTE_ADDR', '')
    return {
        'ip_address': ip or '',
        'user_agent': (request.META.get('HTTP_USER_AGENT') or '')[:255],
    }


def record(
    *,
    actor: Principal | None,
    action: str,
    entity_type: str,
    entity_id: Any = '',
    description: str = '',
    changes: Mapping[str, Any] | None = None,
    success: bool = True,
    error_message: str = '',
    facility_id: Any = None,
    meta: Mapping[str, str] | None = None,
) -> AuditLog | None:
    """Append one audit entry.  Returns the row, or None if it went to the fallback sink."""
    fields = {
        'action': action,
        'entity_type': entity_type,
        'entity_id': '' if entity_id is None else str(entity_id),
        'user_id': actor.id if actor else '',
        'user_role': actor.role if actor else '',
        'user_name': actor.name if actor else '',
        'description': description,
        'changes': _jsonable(changes) if changes else None,
        'facility_id': str(facility_id if facility_id is not None else (actor.facility_id if actor else '') or ''),
        'success': success,
        'error_message': error_message or '',
        **(meta or {}),
    }
    attempts = max(1, int(getattr(settings, 'AUDIT_WRITE_ATTEMPTS', 3)))
    last_error: Exception | None = None
    for attempt in range(1, attempts + 1):
        try:
            with transaction.atomic():
                return AuditLog.objects.create(**fields)
        except DatabaseError as exc:
            last_error = exc
            logger.warning('audit write attempt %s/%s failed: %s', attempt, attempts, exc)
    fallback_logger.error(json.dumps({
        'audit': fields,
        'timestamp': timezone.now().isoformat(),
        'reason': repr(last_error),
    }, default=str))
    return None


def _jsonable(value: Mapping[str, Any]) -> dict[str, Any]:
    return json.loads(json.dumps(dict(value), default=str))


def serialize_entry(entry: AuditLog) -> dict:
    return {
        'id': entry.id,
        'action': entry.action,
        'entityType': entry.entity_type,
        'entityId': entry.entity_id,
        'userId': entry.user_id,
        'userRole': entry.user_role,
        'userName': entry.user_name,
        'description': entry.description,
        'changes': entry.changes,
        'facilityId': entry.facility_id or None,
        'success': entry.success,
        'errorMessage': entry.error_message or None,
        'ipAddress': entry.ip_address or None,
        'timestamp': entry.timestamp.isoformat() if entry.timestamp else None,
    }


def filter_logs(qs: QuerySet, params: Mapping[str, Any]) -> QuerySet:
    """Apply the audit list filters (``userId``, ``action``, ``entityType``, ...)."""
    if params.get('userId'):
        qs = qs.filter(user_id=str(params['userId']))
    if params.get('action'):
        qs = qs.filter(action=str(params['action']).upper())
    if params.get('entityType'):
        qs = qs.filter(entity_type=params['entityType'])
    if params.get('entityId'):
        qs = qs.filter(entity_id=str(params['entityId']))
    if params.get('facilityId'):
        qs = qs.filter(facility_id=str(params['facilityId']))
    if params.get('success') not in (None, ''):
        qs = qs.filter(success=str(params['success']).lower() in {'1', 'true', 'yes'})
    start = parse_datetime(str(params['startDate'])) if params.get('startDate') else None
    end = parse_datetime(str(params['endDate'])) if params.get('endDate') else None
    if start:
        qs = qs.filter(timestamp__gte=start)
    if end:
        qs = qs.filter(timestamp__lte=end)
    if params.get('search'):
        term = str(params['search'])
        qs = qs.filter(
            Q(description__icontains=term)
            | Q(user_name__icontains=term)
            | Q(entity_type__icontains=term)
            | Q(entity_id__icontains=term)
        )
    return qs.order_by('-timestamp', '-id')


def visible_logs(actor: Principal) -> QuerySet:
    """Audit rows the actor may read: facility-scoped roles see their facility only."""
    qs = AuditLog.objects.all()
    if actor.scope == roles.SCOPE_FACILITY:
        return qs.filter(facility_id=actor.facility_id or '-')
    if actor.scope == roles.SCOPE_COUNTY:
        ids = [str(pk) for pk in Hospital.objects.filter(county_id=actor.county_id).values_list('id', flat=True)]
        return qs.filter(facility_id__in=ids)
    return qs


def statistics(qs: QuerySet) -> dict:
    now = timezone.now()
    by_action = {row['action']: row['n'] for row in qs.order_by().values('action').annotate(n=Count('id'))}
    return {
        'total': qs.count(),
        'last24h': qs.filter(timestamp__gte=now - timedelta(hours=24)).count(),
        'last7d': qs.filter(timestamp__gte=now - timedelta(days=7)).count(),
        'last30d': qs.filter(timestamp__gte=now - timedelta(days=30)).count(),
        'failures': qs.filter(success=False).count(),
        'byAction': by_action,
    }


def export_csv(entries: Iterable[AuditLog]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(CSV_COLUMNS)
    for e in entries:
        row = serialize_entry(e)
        writer.writerow([row[c] if row[c] is not None else '' for c in CSV_COLUMNS])
    return buf.getvalue()
