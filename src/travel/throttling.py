from rest_framework.settings import api_settings
from rest_framework.throttling import ScopedRateThrottle


class ScopedRateThrottleIsolated(ScopedRateThrottle):
    """
    Include the resolved rate in the cache key so scopes sharing a user
    or IP never collide, even when tests override DEFAULT_THROTTLE_RATES.
    Rates are read per request, so overridden settings take effect.
    """
    def get_rate(self):
        self.THROTTLE_RATES = api_settings.DEFAULT_THROTTLE_RATES
        return super().get_rate()

    def get_cache_key(self, request, view):
        key = super().get_cache_key(request, view)
        if key is None:
            return None
        return f"{key}:{self.get_rate() or 'none'}"


class ActionScopedThrottleMixin:
    """
    Viewset mixin: pick the throttle scope per action.

    `throttle_scope_map = {"checkout": "payments"}` overrides the class-level
    `throttle_scope` for the listed actions only.
    """
    throttle_scope_map = {}

    def get_throttles(self):
        action = getattr(self, "action", None)
        default = getattr(type(self), "throttle_scope", None)
        self.throttle_scope = self.throttle_scope_map.get(action, default)
        return super().get_throttles()
