from django.urls import re_path

from .consumers import NotificationConsumer
from .middleware import JWTAuthMiddlewareStack

# both /ws and /ws/ are in use by clients
websocket_urlpatterns = [
    re_path(r"^ws/?$", JWTAuthMiddlewareStack(NotificationConsumer.as_asgi())),
]
