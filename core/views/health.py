import logging

from django.core.cache import cache
from django.db import DatabaseError, connections
from django.http import JsonResponse
from django.utils import timezone

logger = logging.getLogger(__name__)


def _database_ok() -> bool:
    try:
        with connections['default'].cursor() as c:
            c.execute('SELECT 1')
            row = c.fetchone()
        return bool(row and row[0] == 1)
    except DatabaseError:
        logger.exception('health check: database unreachable')
        return False


def _cache_ok() -> bool:
    try:
        cache.set('healthz', 1, 5)
        return cache.get('healthz') == 1
    except Exception:
        logger.exception('health check: cache unreachable')
        return False


def healthz(request):
    checks = {'db': _database_ok(), 'cache': _cache_ok()}
    ok = all(checks.values())
    return JsonResponse(
        {'ok': ok, 'checks': checks, 'time': timezone.now().isoformat()},
        status=200 if ok else 503,
    )
