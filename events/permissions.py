from rest_framework.permissions import BasePermission


class IsManagerOrOrganizer(BasePermission):
    """
    Managers manage every event; organizers only the events they organize.
    """

    message = "Forbidden. Requires manager clearance or organizer of this event."

    def has_permission(self, request, view):
        return bool(request.user and request.user.is_authenticated)

    def has_object_permission(self, request, view, obj):
        return request.user.is_manager_or_higher or obj.is_organizer(request.user)
