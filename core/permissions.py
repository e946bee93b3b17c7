"""
Role-clearance permissions.
Roles are ranked REGULAR < CASHIER < MANAGER < SUPERUSER.
"""

from rest_framework.permissions import BasePermission


class RoleClearance(BasePermission):
    required_role = None

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.has_clearance(self.required_role))


class IsCashierOrHigher(RoleClearance):
    message = "Forbidden. Requires cashier or higher."
    required_role = "CASHIER"


class IsManagerOrHigher(RoleClearance):
    message = "Insufficient clearance"
    required_role = "MANAGER"
