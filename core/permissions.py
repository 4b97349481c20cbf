"""
Authorization guard: permission strings plus facility/county scoping.

Services call :func:`require_permission` and :func:`check_scope` before
touching an entity and :func:`scope_queryset` before listing.  The DRF
permission class returned by :func:`requires` covers endpoints that are
gated by a single permission and have no service behind them.
"""
from __future__ import annotations

from typing import Iterable

from django.db.models import Q, QuerySet
from rest_framework.permissions import BasePermission

from . import roles
from .exceptions import Forbidden
from .tokens import Principal


def get_principal(request) -> Principal | None:
    """Return the request's principal, deriving one for session/forced auth."""
    auth = getattr(request, 'auth', None)
    if isinstance(auth, Principal):
        return auth
    user = getattr(request, 'user', None)
    if user is not None and getattr(user, 'is_authenticated', False):
        return Principal.for_user(user)
    return None


def has_permission(principal: Principal | None, permission: str) -> bool:
    if principal is None:
        return False
    perms = principal.permissions
    return permission in perms or roles.WILDCARD in perms


def require_permission(principal: Principal | None, permission: str) -> None:
    if not has_permission(principal, permission):
        raise Forbidden(f'Forbidden - missing permission {permission}')


def can_access_module(principal: Principal | None, module: str) -> bool:
    permission = roles.MODULE_PERMISSIONS.get(module)
    return bool(permission) and has_permission(principal, permission)


def _ids(values: Iterable) -> set[str]:
    return {str(v) for v in values if v not in (None, '')}


def in_scope(principal: Principal, facility_ids: Iterable = (), county_ids: Iterable = ()) -> bool:
    """True if the entity owned by ``facility_ids``/``county_ids`` is in reach.

    ``county_ids`` should include the counties of the owning facilities
    as well as any county the entity carries itself.
    """
    scope = principal.scope
    if scope == roles.SCOPE_GLOBAL:
        return True
    if scope == roles.SCOPE_COUNTY:
        return bool(principal.county_id) and principal.county_id in _ids(county_ids)
    return bool(principal.facility_id) and principal.facility_id in _ids(facility_ids)


def check_scope(principal: Principal, facility_ids: Iterable = (), county_ids: Iterable = ()) -> None:
    if not in_scope(principal, facility_ids, county_ids):
        raise Forbidden('Forbidden - outside your facility or county')


def scope_queryset(
    principal: Principal,
    qs: QuerySet,
    facility_fields: Iterable[str] = (),
    county_fields: Iterable[str] = (),
) -> QuerySet:
    """Restrict ``qs`` to rows within the principal's facility or county.

    ``facility_fields`` name lookups that resolve to a hospital id;
    ``county_fields`` name lookups that resolve to a county id.
    """
    scope = principal.scope
    if scope == roles.SCOPE_GLOBAL:
        return qs
    if scope == roles.SCOPE_COUNTY:
        target, fields = principal.county_id, list(county_fields)
    else:
        target, fields = principal.facility_id, list(facility_fields)
    if not target or not fields:
        return qs.none()
    cond = Q()
    for f in fields:
        cond |= Q(**{f: target})
    return qs.filter(cond).distinct()


def requires(permission: str) -> type[BasePermission]:
    """Build a DRF permission class that checks one permission string."""

    class _Requires(BasePermission):
        message = f'Forbidden - missing permission {permission}'

        def has_permission(self, request, view) -> bool:  # type: ignore[override]
            return has_permission(get_principal(request), permission)

    _Requires.__name__ = f'Requires_{permission.replace(".", "_")}'
    return _Requires

