"""
Typed API errors and the project-wide DRF exception handler.

Services raise these; the handler turns every exception into the
``{"error": ..., "details": ...}`` envelope.  Unexpected exceptions are
logged with their traceback and answered with a generic 500 so that no
internal detail leaks to clients.
"""
from __future__ import annotations

import logging

from rest_framework import exceptions, status
from rest_framework.response import Response

logger = logging.getLogger(__name__)

ValidationError = exceptions.ValidationError


class Unauthenticated(exceptions.NotAuthenticated):
    default_detail = 'Authentication required'


class InvalidToken(exceptions.AuthenticationFailed):
    # Same message whatever the cause: bad signature, expired or malformed
    default_detail = 'Invalid or expired token'
    default_code = 'invalid_token'


class Forbidden(exceptions.PermissionDenied):
    default_detail = 'Forbidden - insufficient permissions'


class NotFound(exceptions.NotFound):
    default_detail = 'Not found'


class Conflict(exceptions.APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Conflict'
    default_code = 'conflict'


class InvalidTransition(exceptions.APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid status transition'
    default_code = 'invalid_transition'


def _message(data) -> str:
    if isinstance(data, dict) and 'detail' in data:
        return str(data['detail'])
    if isinstance(data, list) and data:
        return str(data[0])
    return str(data)


def api_exception_handler(exc, context):
    # rest_framework.views resolves DEFAULT_AUTHENTICATION_CLASSES on import,
    # and core.authentication imports this module
    from rest_framework.views import exception_handler as drf_exception_handler

    resp = drf_exception_handler(exc, context)
    if resp is None:
        view = context.get('view') if context else None
        logger.exception('Unhandled error in %s', getattr(view, '__name__', view), exc_info=exc)
        return Response({'error': 'Internal server error'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    if isinstance(exc, exceptions.ValidationError):
        resp.data = {'error': 'Invalid data', 'details': resp.data}
    else:
        resp.data = {'error': _message(resp.data)}
    return resp
