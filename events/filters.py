"""
Query-string filters for the event list.
"""

from django.db.models import F, Q
from rest_framework.filters import BaseFilterBackend

from core.query import filter_by_lifecycle, query_bool


class EventFilterBackend(BaseFilterBackend):
    """
    Supports ?name, ?location, ?started/?ended, ?showFull and (managers only) ?published.
    Full events are hidden unless showFull=true.
    """

    def filter_queryset(self, request, queryset, view):
        params = request.query_params

        name = params.get("name")
        if name:
            queryset = queryset.filter(name__icontains=name)

        location = params.get("location")
        if location:
            queryset = queryset.filter(location__icontains=location)

        queryset = filter_by_lifecycle(queryset, params)

        if not query_bool(params, "showFull"):
            queryset = queryset.filter(Q(capacity__isnull=True) | Q(num_guests__lt=F("capacity")))

        if request.user.is_manager_or_higher:
            published = query_bool(params, "published")
            if published is not None:
                queryset = queryset.filter(published=published)
        else:
            queryset = queryset.filter(published=True)

        return queryset.order_by("start_time", "id")
