"""Facility resources: beds, equipment, supplies and stock levels."""
from __future__ import annotations

from django.db.models import F, Q, Sum

from core import permissions
from core.models import Hospital, Resource
from core.serializers.resource import ResourceSerializer
from core.services.base import EntityService


def occupancy(total: int, available: int) -> float:
    if not total:
        return 0.0
    return round((total - available) / total * 100, 1)


class ResourceService(EntityService):
    model = Resource
    serializer_class = ResourceSerializer
    entity_type = 'RESOURCE'
    module = 'resources'
    facility_fields = ('hospital_id',)
    county_fields = ('hospital__county_id',)
    search_fields = ('name', 'category')
    filters = {
        'type': 'type',
        'status': 'status',
        'category': 'category',
        'hospitalId': 'hospital_id',
    }
    ordering = ('hospital_id', 'type', 'name')

    def base_queryset(self):
        return Resource.objects.select_related('hospital')

    def owner_ids(self, obj):
        return (obj.hospital_id,), (obj.hospital.county_id,)

    def describe(self, obj):
        return f'resource {obj.name} ({obj.type})'

    def critical_shortages(self, params=None) -> dict:
        """Operational resources at or under their critical level."""
        permissions.require_permission(self.actor, self.read_permission)
        params = params or {}
        qs = self.apply_filters(self.scoped_queryset(), params).filter(
            Q(status='CRITICAL') | Q(available_capacity__lte=F('critical_level')),
            is_operational=True,
        ).order_by('available_capacity', 'name')
        results = []
        for r in qs:
            row = self.serialize(r)
            row['hospitalName'] = r.hospital.name
            row['shortfall'] = max(0, r.critical_level - r.available_capacity)
            results.append(row)
        return {'results': results, 'total': len(results)}

    def bed_availability(self, params=None) -> dict:
        """Per-hospital bed totals from BED resources."""
        permissions.require_permission(self.actor, self.read_permission)
        params = params or {}
        hospitals = permissions.scope_queryset(
            self.actor, Hospital.objects.filter(is_active=True), ('id',), ('county_id',)
        )
        if params.get('hospitalId'):
            hospitals = hospitals.filter(pk=params['hospitalId'])
        if params.get('countyId'):
            hospitals = hospitals.filter(county_id=params['countyId'])
        beds = {
            row['hospital_id']: row
            for row in Resource.objects.filter(type='BED', is_operational=True, hospital__in=hospitals)
            .order_by()
            .values('hospital_id')
            .annotate(
                total=Sum('total_capacity'),
                available=Sum('available_capacity'),
                reserved=Sum('reserved_capacity'),
                in_use=Sum('in_use_capacity'),
            )
        }
        results = []
        for h in hospitals.order_by('name'):
            row = beds.get(h.pk, {})
            total = row.get('total') or 0
            available = row.get('available') or 0
            results.append({
                'hospitalId': h.pk,
                'hospitalName': h.name,
                'operationalStatus': h.operational_status,
                'acceptingPatients': h.accepting_patients,
                'beds': {
                    'total': total,
                    'available': available,
                    'reserved': row.get('reserved') or 0,
                    'inUse': row.get('in_use') or 0,
                    'occupancy': occupancy(total, available),
                },
                'capacity': {
                    'totalBeds': h.total_beds,
                    'icuBeds': h.icu_beds,
                    'emergencyBeds': h.emergency_beds,
                    'isolationBeds': h.isolation_beds,
                },
            })
        summary_total = sum(r['beds']['total'] for r in results)
        summary_available = sum(r['beds']['available'] for r in results)
        return {
            'results': results,
            'summary': {
                'hospitals': len(results),
                'totalBeds': summary_total,
                'availableBeds': summary_available,
                'occupancy': occupancy(summary_total, summary_available),
            },
        }
