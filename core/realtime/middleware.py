"""Websocket authentication with the same access tokens as the HTTP API."""
from __future__ import annotations

from http.cookies import SimpleCookie
from urllib.parse import parse_qs

from channels.db import database_sync_to_async
from channels.middleware import BaseMiddleware
from django.conf import settings
from django.contrib.auth import get_user_model
from django.contrib.auth.models import AnonymousUser

from core.exceptions import InvalidToken
from core.tokens import verify_token


def _token_from_scope(scope) -> str | None:
    query = parse_qs((scope.get('query_string') or b'').decode())
    if query.get('token'):
        return query['token'][0]
    for name, value in scope.get('headers') or ():
        if name == b'cookie':
            cookies = SimpleCookie(value.decode())
            for cookie_name in getattr(settings, 'AUTH_COOKIE_NAMES', ('auth_token', 'token')):
                if cookie_name in cookies:
                    return cookies[cookie_name].value
    return None


@database_sync_to_async
def _user_for(raw: str):
    try:
        principal = verify_token(raw)
    except InvalidToken:
        return AnonymousUser()
    return get_user_model().objects.filter(pk=principal.id, is_active=True).first() or AnonymousUser()


class TokenAuthMiddleware(BaseMiddleware):
    """Sets ``scope['user']`` from a ``?token=`` parameter or the auth cookie."""

    async def __call__(self, scope, receive, send):
        raw = _token_from_scope(scope)
        if raw:
            scope = dict(scope, user=await _user_for(raw))
        return await super().__call__(scope, receive, send)
