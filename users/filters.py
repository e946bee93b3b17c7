"""
Query-string filters for the user list.
"""

from django.db.models import Q
from rest_framework.filters import BaseFilterBackend

from core.query import query_bool, query_choice
from users.models import User


class UserFilterBackend(BaseFilterBackend):
    """
    Supports ?name, ?role, ?verified and ?activated.
    """

    def filter_queryset(self, request, queryset, view):
        params = request.query_params

        name = params.get("name")
        if name:
            queryset = queryset.filter(Q(utorid__icontains=name) | Q(name__icontains=name))

        role = query_choice(params, "role", [role.lower() for role, _ in User.ROLE_CHOICES] + list(User.ROLE_RANK))
        if role:
            queryset = queryset.filter(role=role.upper())

        verified = query_bool(params, "verified")
        if verified is not None:
            queryset = queryset.filter(verified=verified)

        activated = query_bool(params, "activated")
        if activated is not None:
            queryset = queryset.filter(last_login__isnull=not activated)

        return queryset.order_by("-id")
