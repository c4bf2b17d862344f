from rest_framework.permissions import BasePermission


class IsManager(BasePermission):
    """Managers (and superusers) only"""
    message = 'Manager access required'

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_manager)
