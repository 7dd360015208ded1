"""
Role-based permissions for the practice API
"""
from rest_framework import permissions

from apps.common.roles import user_is_client, user_is_privileged


class IsPrivileged(permissions.BasePermission):
    """Admins and super admins only."""

    message = 'Access denied, admin or Super Admin only'

    def has_permission(self, request, view):
        return user_is_privileged(request.user)


class IsPrivilegedOrReadOnly(permissions.BasePermission):
    """
    Any authenticated user may read; writes need admin or super admin.

    Read scoping (clients only see their own matters) is applied by each
    viewset's queryset, not here.
    """

    message = 'Access denied, admin or Super Admin only'

    def has_permission(self, request, view):
        user = request.user
        if not (user and user.is_authenticated):
            return False
        if request.method in permissions.SAFE_METHODS:
            return True
        return user_is_privileged(user)


class IsStaffMember(permissions.BasePermission):
    """Any signed-in user who is not a client."""

    message = 'Access denied for client accounts'

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated) and not user_is_client(user)
