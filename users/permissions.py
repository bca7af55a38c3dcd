"""
Users — DRF Permission Classes

Farm membership and farm-role checks for ViewSets. Every farm-scoped
endpoint requires an ACTIVE user attached to a farm; writes that reshape
houses, batches or allocations additionally need OWNER or MANAGER.

@file users/permissions.py
"""

from rest_framework.permissions import SAFE_METHODS, BasePermission


class IsActiveUser(BasePermission):
    """Requires user to be authenticated and have ACTIVE status."""

    def has_permission(self, request, view):
        return bool(
            request.user
            and request.user.is_authenticated
            and getattr(request.user, 'status', None) == 'ACTIVE'
        )


class IsFarmMember(IsActiveUser):
    message = 'User does not belong to a farm.'

    def has_permission(self, request, view):
        return super().has_permission(request, view) and request.user.farm_id is not None


class CanManageFarm(BasePermission):
    """
    Read access for every farm member; writes need one of the roles in
    ``view.manage_roles`` (default OWNER and MANAGER). Views may list
    actions open to every member in ``view.member_actions``.
    """

    message = 'Your farm role does not allow this operation.'

    def has_permission(self, request, view):
        if request.method in SAFE_METHODS:
            return True
        if getattr(view, 'action', None) in getattr(view, 'member_actions', ()):
            return True
        roles = getattr(view, 'manage_roles', ('OWNER', 'MANAGER'))
        return request.user.has_farm_role(*roles)


class IsFarmOwner(BasePermission):
    message = 'Only the farm owner can perform this operation.'

    def has_permission(self, request, view):
        if request.method in SAFE_METHODS:
            return True
        return request.user.has_farm_role('OWNER')
