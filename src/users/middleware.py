from datetime import datetime, timezone

from django.conf import settings
from django.utils.timezone import now
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken, AccessToken


def valid_access_token(raw):
    """Return the decoded AccessToken, or None when missing, malformed or expired."""
    if not raw:
        return None
    try:
        token = AccessToken(raw)
    except TokenError:
        return None
    if token['exp'] < now().timestamp():
        return None
    return token


class JWTAuthCookieMiddleware:
    """
    Authenticate browser requests from the httpOnly JWT cookies.

    A valid `access_token` cookie becomes a Bearer Authorization header. If the
    access cookie is gone or expired but `refresh_token` is valid, a new access
    token is issued for this request and written back as a cookie.
    An explicit Authorization header always wins.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        if request.META.get('HTTP_AUTHORIZATION'):
            return self.get_response(request)

        access_raw = request.COOKIES.get('access_token')
        if valid_access_token(access_raw):
            request.META['HTTP_AUTHORIZATION'] = f'Bearer {access_raw}'
            return self.get_response(request)

        refresh_raw = request.COOKIES.get('refresh_token')
        if not refresh_raw:
            return self.get_response(request)

        try:
            new_access = RefreshToken(refresh_raw).access_token
        except TokenError:
            return self.get_response(request)

        request.META['HTTP_AUTHORIZATION'] = f'Bearer {new_access}'
        response = self.get_response(request)
        response.set_cookie(
            key='access_token',
            value=str(new_access),
            httponly=True,
            secure=getattr(settings, 'AUTH_COOKIE_SECURE', not settings.DEBUG),
            samesite=getattr(settings, 'AUTH_COOKIE_SAMESITE', 'Lax'),
            expires=datetime.fromtimestamp(new_access['exp'], tz=timezone.utc),
            path='/',
        )
        return response
