from rest_framework import permissions

from src.users.permissions import is_advertiser, is_manager


class IsBookingParticipant(permissions.BasePermission):
    """
    Read: the booking's customer, an advertiser assigned to its package, or a manager.
    cancel / checkout / verify_payment: the customer (managers may also cancel).
    """
    def has_object_permission(self, request, view, obj):
        user = request.user
        uid = getattr(user, "id", None)
        if is_manager(user) and view.action != "checkout":
            return True

        is_customer = obj.customer_id == uid
        if request.method in permissions.SAFE_METHODS:
            return is_customer or obj.package.advertisers.filter(pk=uid).exists()

        if view.action in ("cancel", "checkout", "verify_payment"):
            return is_customer
        return False


class IsCodeOwnerOrManager(permissions.BasePermission):
    """Advertisers may read their own codes; every write is manager-only."""
    def has_object_permission(self, request, view, obj):
        user = request.user
        if is_manager(user):
            return True
        return request.method in permissions.SAFE_METHODS and obj.advertiser_id == getattr(user, "id", None)


class IsManagerOrAdvertiserReadOnly(permissions.BasePermission):
    """Managers do everything; advertisers may only read."""
    def has_permission(self, request, view):
        if is_manager(request.user):
            return True
        return request.method in permissions.SAFE_METHODS and is_advertiser(request.user)
