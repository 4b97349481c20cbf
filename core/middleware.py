import logging

from django.conf import settings
from django.http import HttpResponseRedirect

from .exceptions import InvalidToken
from .tokens import verify_token

logger = logging.getLogger(__name__)

REDIRECT_COOKIE = 'redirect_url'
REDIRECT_COOKIE_MAX_AGE = 5 * 60


class LoginRedirectMiddleware:
    """Send unauthenticated page requests to the login page.

    API, admin, docs, static and health paths are left alone; API
    authentication is handled by DRF.  The requested path is kept in the
    short-lived ``redirect_url`` cookie so the login page can send the
    user back.
    """
    PUBLIC_PREFIXES = (
        '/api/', '/admin', '/static/', '/swagger', '/redoc', '/healthz', '/metrics', '/ws/',
        '/favicon.ico',
    )

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        path = request.path or '/'
        login_url = settings.LOGIN_URL
        if (
            request.method not in ('GET', 'HEAD')
            or path == login_url
            or any(path.startswith(p) for p in self.PUBLIC_PREFIXES)
            or self._has_valid_token(request)
        ):
            return self.get_response(request)
        response = HttpResponseRedirect(login_url)
        response.set_cookie(
            REDIRECT_COOKIE,
            request.get_full_path(),
            max_age=REDIRECT_COOKIE_MAX_AGE,
            samesite='Lax',
            secure=settings.AUTH_COOKIE_SECURE,
        )
        return response

    @staticmethod
    def _has_valid_token(request) -> bool:
        for name in settings.AUTH_COOKIE_NAMES:
            raw = request.COOKIES.get(name)
            if not raw:
                continue
            try:
                verify_token(raw)
                return True
            except InvalidToken:
                logger.debug('ignoring invalid %s cookie on %s', name, request.path)
        return False
