"""
Audit log endpoints.

Read-only views over the audit ledger: a filtered, paginated listing,
summary statistics and a CSV export.  Facility-scoped readers only see
rows recorded against their own facility.
"""
from __future__ import annotations

from django.http import HttpResponse
from django.utils import timezone
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.permissions import get_principal, requires
from core.services import audit
from core.services.base import paginate

CanReadAudit = requires('audit.read')


def _logs(request):
    actor = get_principal(request)
    return actor, audit.filter_logs(audit.visible_logs(actor), request.query_params)


@api_view(['GET'])
@permission_classes([IsAuthenticated, CanReadAudit])
def audit_logs(request):
    _, qs = _logs(request)
    return Response(paginate(qs, request.query_params, audit.serialize_entry).as_dict())


@api_view(['GET'])
@permission_classes([IsAuthenticated, CanReadAudit])
def audit_stats(request):
    _, qs = _logs(request)
    return Response(audit.statistics(qs))


@api_view(['GET'])
@permission_classes([IsAuthenticated, CanReadAudit])
def audit_export(request):
    actor, qs = _logs(request)
    body = audit.export_csv(qs.iterator())
    audit.record(
        actor=actor,
        action=audit.READ,
        entity_type='AUDIT_LOG',
        description='Exported audit logs',
        changes={'filters': dict(request.query_params.items())},
        meta=audit.request_meta(request),
    )
    filename = f'audit-logs-{timezone.now():%Y%m%d-%H%M%S}.csv'
    response = HttpResponse(body, content_type='text/csv; charset=utf-8')
    response['Content-Disposition'] = f'attachment; filename="{filename}"'
    return response
