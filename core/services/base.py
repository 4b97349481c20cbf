"""
Shared plumbing for the entity services.

An :class:`EntityService` is bound to one acting :class:`Principal` and
offers ``list``/``get``/``create``/``update``/``delete`` over one model.
Input always goes through the service's DRF serializer, writes run in
``transaction.atomic``, and every mutating call leaves exactly one audit
row behind: ``success=True`` when it went through, ``success=False``
with the error message when it did not.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping

from django.conf import settings
from django.db import IntegrityError, models, transaction
from django.db.models import Q, QuerySet
from django.utils import timezone
from rest_framework import serializers
from rest_framework.exceptions import APIException

from core import permissions
from core.exceptions import Conflict, NotFound
from core.realtime.events import broadcast_update
from core.services import audit
from core.tokens import Principal

logger = logging.getLogger(__name__)


@dataclass
class Page:
    results: list
    page: int
    limit: int
    total: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    def as_dict(self) -> dict:
        return {
            'results': self.results,
            'pagination': {'page': self.page, 'limit': self.limit, 'total': self.total, 'pages': self.pages},
        }


def _int_param(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def paginate(qs: QuerySet, params: Mapping[str, Any], serialize: Callable[[Any], dict]) -> Page:
    page = max(1, _int_param(params.get('page'), 1))
    limit = _int_param(params.get('limit') or params.get('pageSize'), settings.DEFAULT_PAGE_SIZE)
    limit = min(max(1, limit), settings.MAX_PAGE_SIZE)
    total = qs.count()
    start = (page - 1) * limit
    return Page([serialize(o) for o in qs[start:start + limit]], page, limit, total)


def next_number(model: type[models.Model], field: str, prefix: str, width: int = 6) -> str:
    """Next free ``<prefix><zero-padded n>`` identifier for ``model.field``."""
    n = model.objects.filter(**{f'{field}__startswith': prefix}).count() + 1
    candidate = f'{prefix}{n:0{width}d}'
    while model.objects.filter(**{field: candidate}).exists():
        n += 1
        candidate = f'{prefix}{n:0{width}d}'
    return candidate


def year_prefix(code: str) -> str:
    return f'{code}-{timezone.now().year}-'


def error_text(exc: Exception) -> str:
    if isinstance(exc, serializers.ValidationError):
        return f'Invalid data: {exc.detail}'
    if isinstance(exc, APIException):
        return str(exc.detail)
    return f'{type(exc).__name__}: {exc}'


class EntityService:
    model: type[models.Model]
    serializer_class: type[serializers.Serializer]
    entity_type = ''
    # permission module, e.g. "patients" -> patients.read / patients.write
    module = ''
    # lookups resolving to the owning hospital id / county id, for list scoping
    facility_fields: tuple[str, ...] = ()
    county_fields: tuple[str, ...] = ()
    search_fields: tuple[str, ...] = ()
    # query param -> ORM lookup
    filters: Mapping[str, str] = {}
    # model fields that must be unique; duplicates raise Conflict
    unique_fields: tuple[str, ...] = ()
    ordering: tuple[str, ...] = ('-id',)
    audit_reads = False
    delete_verb = 'Deleted'

    def __init__(self, actor: Principal, *, user=None, request=None):
        self.actor = actor
        self.user = user
        self.meta = audit.request_meta(request)

    @classmethod
    def for_request(cls, request, *args, **kwargs):
        """Service acting as the authenticated caller of ``request``."""
        return cls(permissions.get_principal(request), *args, user=request.user, request=request, **kwargs)

    # -- permissions -------------------------------------------------------
    @property
    def read_permission(self) -> str:
        return f'{self.module}.read'

    @property
    def write_permission(self) -> str:
        return f'{self.module}.write'

    def owner_ids(self, obj) -> tuple[Iterable, Iterable]:
        """Return ``(facility_ids, county_ids)`` that own ``obj``."""
        return (), ()

    def check_scope(self, obj) -> None:
        facility_ids, county_ids = self.owner_ids(obj)
        permissions.check_scope(self.actor, facility_ids, county_ids)

    def check_write_scope(self, obj) -> None:
        """Scope check for writes; defaults to the read scope."""
        self.check_scope(obj)

    # -- hooks -------------------------------------------------------------
    def base_queryset(self) -> QuerySet:
        return self.model.objects.all()

    def serialize(self, obj) -> dict:
        return self.serializer_class(obj, context=self.context).data

    def describe(self, obj) -> str:
        return f'{self.entity_type} {obj.pk}'

    @property
    def context(self) -> dict:
        return {'actor': self.actor, 'user': self.user}

    def prepare_create(self, data: dict) -> dict:
        return data

    def perform_create(self, data: dict):
        return self.model.objects.create(**data)

    def perform_update(self, obj, data: dict):
        # data is already applied to obj
        obj.save()
        return obj

    def check_delete(self, obj) -> None:
        """Raise Conflict when ``obj`` still has active dependents."""

    def perform_delete(self, obj) -> None:
        obj.delete()

    # -- auditing ----------------------------------------------------------
    def audit(self, action: str, entity_id: Any, description: str, *, changes=None,
              success: bool = True, error_message: str = '', facility_id: Any = None) -> None:
        audit.record(
            actor=self.actor,
            action=action,
            entity_type=self.entity_type,
            entity_id=entity_id,
            description=description,
            changes=changes,
            success=success,
            error_message=error_message,
            facility_id=facility_id,
            meta=self.meta,
        )

    def audited(self, action: str, entity_id: Any, operation: Callable[[], tuple[Any, str, Any]]):
        """Run ``operation`` and audit its outcome exactly once.

        ``operation`` returns ``(obj, description, changes)``.
        """
        try:
            obj, description, changes = operation()
        except Exception as exc:
            self.audit(
                action, entity_id,
                f'Failed to {action.lower()} {self.entity_type}',
                success=False, error_message=error_text(exc),
            )
            raise
        facility_ids, _ = self.owner_ids(obj) if obj is not None else ((), ())
        facility = next(iter(facility_ids), None)
        if entity_id is None:
            entity_id = getattr(obj, 'pk', None)
        self.audit(action, entity_id, description, changes=changes, facility_id=facility)
        return obj

    # -- validation --------------------------------------------------------
    def validate(self, payload: Mapping[str, Any], *, instance=None, partial: bool = False) -> dict:
        ser = self.serializer_class(instance=instance, data=payload, partial=partial, context=self.context)
        ser.is_valid(raise_exception=True)
        return dict(ser.validated_data)

    def check_unique(self, data: Mapping[str, Any], instance=None) -> None:
        for field in self.unique_fields:
            value = data.get(field)
            if value in (None, ''):
                continue
            qs = self.model.objects.filter(**{field: value})
            if instance is not None:
                qs = qs.exclude(pk=instance.pk)
            if qs.exists():
                raise Conflict(f'{self.entity_type} with this {field.replace("_", " ")} already exists')

    def _save(self, fn: Callable[[], Any]):
        try:
            with transaction.atomic():
                return fn()
        except IntegrityError as exc:
            logger.info('%s write rejected by constraint: %s', self.entity_type, exc)
            raise Conflict(f'{self.entity_type} conflicts with an existing record') from exc

    # -- queries -----------------------------------------------------------
    def scoped_queryset(self) -> QuerySet:
        return permissions.scope_queryset(
            self.actor, self.base_queryset(), self.facility_fields, self.county_fields
        )

    def apply_filters(self, qs: QuerySet, params: Mapping[str, Any]) -> QuerySet:
        for param, lookup in self.filters.items():
            value = params.get(param)
            if value not in (None, '', 'all'):
                qs = qs.filter(**{lookup: value})
        term = params.get('search') or params.get('q')
        if term and self.search_fields:
            cond = Q()
            for f in self.search_fields:
                cond |= Q(**{f'{f}__icontains': term})
            qs = qs.filter(cond)
        return qs

    def list(self, params: Mapping[str, Any] | None = None) -> Page:
        permissions.require_permission(self.actor, self.read_permission)
        params = params or {}
        qs = self.apply_filters(self.scoped_queryset(), params).order_by(*self.ordering)
        return paginate(qs, params, self.serialize)

    def get_object(self, pk, *, for_update: bool = False):
        qs = self.base_queryset()
        if for_update:
            qs = qs.select_for_update(of=('self',))
        obj = qs.filter(pk=pk).first()
        if obj is None:
            raise NotFound(f'{self.entity_type} not found')
        self.check_scope(obj)
        return obj

    def get(self, pk) -> dict:
        if not self.audit_reads:
            permissions.require_permission(self.actor, self.read_permission)
            return self.serialize(self.get_object(pk))

        def op():
            permissions.require_permission(self.actor, self.read_permission)
            obj = self.get_object(pk)
            return obj, f'Viewed {self.describe(obj)}', None

        return self.serialize(self.audited(audit.READ, pk, op))

    # -- mutations ---------------------------------------------------------
    def create(self, payload: Mapping[str, Any]) -> dict:
        def op():
            permissions.require_permission(self.actor, self.write_permission)
            data = self.prepare_create(self.validate(payload))
            self.check_write_scope(self.model(**data))
            self.check_unique(data)
            obj = self._save(lambda: self.perform_create(data))
            return obj, f'Created {self.describe(obj)}', {'created': self.serialize(obj)}

        obj = self.audited(audit.CREATE, None, op)
        broadcast_update(self.entity_type, obj.pk, getattr(obj, 'status', None), action='created')
        return self.serialize(obj)

    def update(self, pk, payload: Mapping[str, Any]) -> dict:
        def op():
            permissions.require_permission(self.actor, self.write_permission)
            with transaction.atomic():
                obj = self.get_object(pk, for_update=True)
                self.check_write_scope(obj)
                before = self.serialize(obj)
                data = self.validate(payload, instance=obj, partial=True)
                self.check_unique(data, instance=obj)
                for key, value in data.items():
                    setattr(obj, key, value)
                self.check_write_scope(obj)
                obj = self._save(lambda: self.perform_update(obj, data))
            after = self.serialize(obj)
            changed = {k: {'from': before.get(k), 'to': v} for k, v in after.items() if before.get(k) != v}
            return obj, f'Updated {self.describe(obj)}', changed

        obj = self.audited(audit.UPDATE, pk, op)
        return self.serialize(obj)

    def delete(self, pk) -> None:
        def op():
            permissions.require_permission(self.actor, self.write_permission)
            with transaction.atomic():
                obj = self.get_object(pk, for_update=True)
                self.check_write_scope(obj)
                self.check_delete(obj)
                description = f'{self.delete_verb} {self.describe(obj)}'
                snapshot = self.serialize(obj)
                self._save(lambda: self.perform_delete(obj))
            return obj, description, {'deleted': snapshot}

        self.audited(audit.DELETE, pk, op)

