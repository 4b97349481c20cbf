"""
Request authentication.

``PrincipalAuthentication`` accepts a simplejwt access token from the
``Authorization: Bearer`` header or, failing that, from one of the
``AUTH_COOKIE_NAMES`` cookies.  It returns ``(user, principal)`` so that
views find the login account on ``request.user`` and the authorization
view of the caller on ``request.auth``.
"""
from __future__ import annotations

from django.conf import settings
from django.contrib.auth import get_user_model
from rest_framework.authentication import BaseAuthentication
from rest_framework_simplejwt.authentication import JWTAuthentication

from .exceptions import InvalidToken
from .tokens import Principal, verify_token


def token_from_request(request) -> str | None:
    """Return the raw token from the Authorization header or auth cookies."""
    header = request.META.get('HTTP_AUTHORIZATION', '')
    parts = header.split()
    if len(parts) == 2 and parts[0].lower() == 'bearer':
        return parts[1]
    for name in getattr(settings, 'AUTH_COOKIE_NAMES', ('auth_token', 'token')):
        value = request.COOKIES.get(name)
        if value:
            return value
    return None


class PrincipalAuthentication(JWTAuthentication):
    """JWT authentication that also reads cookies and yields a Principal."""

    def authenticate(self, request):
        raw = token_from_request(request)
        if raw is None:
            return None
        principal: Principal = verify_token(raw)
        user = (
            get_user_model().objects.select_related('facility', 'county')
            .filter(pk=principal.id, is_active=True)
            .first()
        )
        if user is None:
            raise InvalidToken()
        return user, principal


class CredentialEndpointAuthentication(BaseAuthentication):
    """For login/refresh: ignores any token but keeps 401 answers as 401."""

    def authenticate(self, request):
        return None

    def authenticate_header(self, request):
        return 'Bearer realm="api"'
