"""
JWT issuing and verification.

Tokens are simplejwt access/refresh pairs carrying the user's role and
facility/county binding as extra claims.  ``verify_token`` is pure: it
checks signature and expiry and turns the claims into a
:class:`Principal` without touching the database.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.settings import api_settings
from rest_framework_simplejwt.tokens import AccessToken, RefreshToken

from . import roles
from .exceptions import InvalidToken


@dataclass(frozen=True)
class Principal:
    """The caller of a request, as far as authorization is concerned."""
    id: str
    role: str
    facility_id: str | None = None
    county_id: str | None = None
    permissions: frozenset[str] = field(default_factory=frozenset)
    name: str = ''
    email: str = ''

    @property
    def is_authenticated(self) -> bool:
        return True

    @property
    def scope(self) -> str:
        return roles.role_scope(self.role)

    @classmethod
    def for_user(cls, user) -> 'Principal':
        return create_user_object(_claims_for(user))


def _str_or_none(value: Any) -> str | None:
    if value in (None, ''):
        return None
    return str(value)


def _claims_for(user) -> dict[str, Any]:
    role = roles.normalize_role(user.role)
    return {
        api_settings.USER_ID_CLAIM: str(user.pk),
        'role': role,
        'facility_id': _str_or_none(user.facility_id),
        'county_id': _str_or_none(user.county_id),
        'permissions': sorted(roles.permissions_for_role(role)),
        'name': user.get_full_name() or user.username,
        'email': user.email or '',
    }


def issue_tokens(user) -> RefreshToken:
    """Return a refresh token for ``user``; ``.access_token`` carries the same claims."""
    refresh = RefreshToken.for_user(user)
    for key, value in _claims_for(user).items():
        if key != api_settings.USER_ID_CLAIM:
            refresh[key] = value
    return refresh


def refresh_access(raw_refresh: str, user) -> AccessToken:
    """Mint a fresh access token from a valid refresh token.

    Claims are re-read from ``user`` so that a role or facility change
    takes effect on the next refresh.
    """
    try:
        refresh = RefreshToken(raw_refresh)
    except TokenError as exc:
        raise InvalidToken() from exc
    if str(refresh.get(api_settings.USER_ID_CLAIM)) != str(user.pk):
        raise InvalidToken()
    access = refresh.access_token
    for key, value in _claims_for(user).items():
        access[key] = value
    return access


def user_id_from_refresh(raw_refresh: str) -> str:
    try:
        refresh = RefreshToken(raw_refresh)
    except TokenError as exc:
        raise InvalidToken() from exc
    return str(refresh[api_settings.USER_ID_CLAIM])


def verify_token(token: str) -> Principal:
    if not token:
        raise InvalidToken()
    try:
        access = AccessToken(token)
    except TokenError as exc:
        raise InvalidToken() from exc
    return create_user_object(access.payload)


def create_user_object(claims: Mapping[str, Any]) -> Principal:
    user_id = claims.get(api_settings.USER_ID_CLAIM)
    if user_id in (None, ''):
        raise InvalidToken()
    role = roles.normalize_role(claims.get('role'))
    granted = claims.get('permissions') or ()
    if isinstance(granted, str):
        granted = (granted,)
    return Principal(
        id=str(user_id),
        role=role,
        facility_id=_str_or_none(claims.get('facility_id')),
        county_id=_str_or_none(claims.get('county_id')),
        permissions=roles.ensure_basic_permissions(role, granted),
        name=str(claims.get('name') or ''),
        email=str(claims.get('email') or ''),
    )
