"""
Authentication views.

``login`` exchanges a username and password for a simplejwt token pair,
returned in the body and set as httpOnly cookies (``auth_token`` for
the access token, ``refreshToken`` for the refresh token).  ``refresh``
mints a new access token, ``logout`` blacklists the refresh token and
clears the cookies, ``me`` describes the caller.  Logins and logouts
are audited.
"""
from __future__ import annotations

import logging

from django.conf import settings
from django.contrib.auth import authenticate, get_user_model
from django.contrib.auth.models import update_last_login
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.exceptions import AuthenticationFailed
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken

from core.authentication import CredentialEndpointAuthentication
from core.exceptions import InvalidToken
from core.permissions import get_principal
from core.serializers.auth import LoginSerializer, RefreshSerializer
from core.services import audit
from core.tokens import Principal, issue_tokens, refresh_access, user_id_from_refresh

logger = logging.getLogger(__name__)

ACCESS_COOKIE = 'auth_token'
REFRESH_COOKIE = 'refreshToken'


def _set_cookie(response, name: str, value: str, lifetime) -> None:
    response.set_cookie(
        name,
        value,
        max_age=int(lifetime.total_seconds()),
        httponly=True,
        secure=settings.AUTH_COOKIE_SECURE,
        samesite='Lax',
    )


def _user_payload(user, principal) -> dict:
    return {
        'id': user.id,
        'username': user.username,
        'name': principal.name,
        'email': user.email,
        'role': principal.role,
        'facilityId': principal.facility_id,
        'countyId': principal.county_id,
        'scope': principal.scope,
        'permissions': sorted(principal.permissions),
    }


def _raw_refresh(request) -> str:
    s = RefreshSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    return s.validated_data.get('refreshToken') or request.COOKIES.get(REFRESH_COOKIE) or ''


# ---------------------------------------------------------------------
# Username/password login
# ---------------------------------------------------------------------
@api_view(['POST'])
@authentication_classes([CredentialEndpointAuthentication])
@permission_classes([AllowAny])
def login_view(request):
    s = LoginSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    username = s.validated_data['username']
    meta = audit.request_meta(request)

    user = authenticate(request, username=username, password=s.validated_data['password'])
    if user is None:
        audit.record(
            actor=None,
            action=audit.LOGIN,
            entity_type='USER',
            description=f'Failed login for {username}',
            success=False,
            error_message='Invalid credentials',
            meta=meta,
        )
        logger.info('failed login for %s from %s', username, meta.get('ip_address'))
        raise AuthenticationFailed('Invalid credentials')

    refresh = issue_tokens(user)
    access = refresh.access_token
    principal = Principal.for_user(user)
    update_last_login(None, user)
    audit.record(
        actor=principal,
        action=audit.LOGIN,
        entity_type='USER',
        entity_id=user.pk,
        description=f'{principal.name} logged in',
        meta=meta,
    )

    jwt = settings.SIMPLE_JWT
    response = Response({
        'token': str(access),
        'refreshToken': str(refresh),
        'expiresIn': int(jwt['ACCESS_TOKEN_LIFETIME'].total_seconds()),
        'user': _user_payload(user, principal),
    })
    _set_cookie(response, ACCESS_COOKIE, str(access), jwt['ACCESS_TOKEN_LIFETIME'])
    _set_cookie(response, REFRESH_COOKIE, str(refresh), jwt['REFRESH_TOKEN_LIFETIME'])
    return response

# ScopedRateThrottle reads throttle_scope from the view class
login_view.cls.throttle_scope = 'login'


@api_view(['POST'])
@authentication_classes([CredentialEndpointAuthentication])
@permission_classes([AllowAny])
def refresh_view(request):
    raw = _raw_refresh(request)
    if not raw:
        raise InvalidToken()
    user = get_user_model().objects.filter(pk=user_id_from_refresh(raw), is_active=True).first()
    if user is None:
        raise InvalidToken()
    access = refresh_access(raw, user)
    jwt = settings.SIMPLE_JWT
    response = Response({
        'token': str(access),
        'expiresIn': int(jwt['ACCESS_TOKEN_LIFETIME'].total_seconds()),
    })
    _set_cookie(response, ACCESS_COOKIE, str(access), jwt['ACCESS_TOKEN_LIFETIME'])
    return response


@api_view(['POST'])
def logout_view(request):
    principal = get_principal(request)
    raw = _raw_refresh(request)
    revoked = False
    if raw:
        try:
            RefreshToken(raw).blacklist()
            revoked = True
        except TokenError as exc:
            # already expired or blacklisted; nothing left to revoke
            logger.info('logout with unusable refresh token for user %s: %s', principal.id, exc)
    audit.record(
        actor=principal,
        action=audit.LOGOUT,
        entity_type='USER',
        entity_id=principal.id,
        description=f'{principal.name} logged out',
        meta=audit.request_meta(request),
    )
    response = Response({'success': True, 'revoked': revoked})
    for name in (*settings.AUTH_COOKIE_NAMES, REFRESH_COOKIE):
        response.delete_cookie(name)
    return response


@api_view(['GET'])
def me_view(request):
    return Response(_user_payload(request.user, get_principal(request)))
