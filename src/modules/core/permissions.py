"""Permission classes shared by the storefront API."""

from rest_framework.permissions import BasePermission


def is_store_admin(user) -> bool:
    """Staff users and users whose profile role is ``admin``."""
    if not user or not user.is_authenticated:
        return False
    if user.is_staff:
        return True
    profile = getattr(user, "profile", None)
    return getattr(profile, "role", None) == "admin"


class IsStoreAdmin(BasePermission):
    message = "Administrator privileges are required."

    def has_permission(self, request, view) -> bool:
        return is_store_admin(request.user)


class IsStoreAdminOrReadOnly(BasePermission):
    """Anyone may read; only store administrators may write."""

    def has_permission(self, request, view) -> bool:
        if request.method in ("GET", "HEAD", "OPTIONS"):
            return True
        return is_store_admin(request.user)
