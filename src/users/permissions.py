from rest_framework import permissions


def is_manager(user):
    return bool(user and user.is_authenticated and getattr(user, "is_manager", False))


def is_advertiser(user):
    return bool(user and user.is_authenticated and getattr(user, "is_advertiser", False))


class IsManager(permissions.BasePermission):
    """Platform administrators only."""
    message = "Manager role required."

    def has_permission(self, request, view):
        return is_manager(request.user)


class IsAdvertiser(permissions.BasePermission):
    message = "Advertiser role required."

    def has_permission(self, request, view):
        return is_advertiser(request.user)


class IsManagerOrReadOnly(permissions.BasePermission):
    """Read for everyone; write only for managers."""
    def has_permission(self, request, view):
        if request.method in permissions.SAFE_METHODS:
            return True
        return is_manager(request.user)
