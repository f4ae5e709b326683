from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import BasePermission


class IsAdminRole(BasePermission):
    """Admin role, staff or superuser"""
    message = 'Admin privileges required.'

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_admin)


def is_owner_or_admin(user, owner_id) -> bool:
    return user.pk == owner_id or user.is_admin


def require_owner_or_admin(user, owner_id, action='modify'):
    """
    Raise PermissionDenied unless `user` owns the resource or is an admin
    """
    if not is_owner_or_admin(user, owner_id):
        raise PermissionDenied(f"You are not authorized to {action} this request")
