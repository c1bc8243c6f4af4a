from urllib.parse import parse_qs

from channels.db import database_sync_to_async
from channels.middleware import BaseMiddleware
from channels.sessions import CookieMiddleware
from django.contrib.auth import get_user_model
from django.contrib.auth.models import AnonymousUser
from rest_framework_simplejwt.settings import api_settings

from src.users.middleware import valid_access_token


@database_sync_to_async
def user_for_token(raw):
    token = valid_access_token(raw)
    if token is None:
        return AnonymousUser()
    User = get_user_model()
    lookup = {api_settings.USER_ID_FIELD: token.get(api_settings.USER_ID_CLAIM)}
    return User.objects.filter(is_active=True, **lookup).first() or AnonymousUser()


class JWTAuthMiddleware(BaseMiddleware):
    """
    WebSocket counterpart of the cookie middleware: take the access token from
    `?token=` or the `access_token` cookie and put the user in scope["user"].
    """

    async def __call__(self, scope, receive, send):
        query = parse_qs(scope.get("query_string", b"").decode())
        raw = (query.get("token") or [""])[0] or scope.get("cookies", {}).get("access_token", "")
        scope = dict(scope, user=await user_for_token(raw))
        return await super().__call__(scope, receive, send)


def JWTAuthMiddlewareStack(inner):
    return CookieMiddleware(JWTAuthMiddleware(inner))
