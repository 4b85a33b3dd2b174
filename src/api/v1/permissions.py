"""Custom DRF permissions for the CRM API."""
from rest_framework.permissions import BasePermission


class CanCloseQuarter(BasePermission):
    """Closing a quarter locks the books: staff only."""

    message = "Only staff members can close a quarter."

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and (user.is_staff or user.is_superuser))


class CanSetQuarterTargets(BasePermission):
    message = "You are not allowed to change quarter targets."

    def has_permission(self, request, view):
        user = request.user
        if not (user and user.is_authenticated):
            return False
        return user.is_staff or user.has_perm("quarters.change_quarter")
