"""
Page/limit pagination returning {"count", "results"}.
"""

from rest_framework.pagination import BasePagination
from rest_framework.response import Response

from core.exceptions import QueryValidationError


class PageLimitPagination(BasePagination):
    """
    Reads `page` (1-based) and `limit` from the query string.
    A page past the end yields an empty result list.
    """

    page_query_param = "page"
    limit_query_param = "limit"
    default_limit = 10

    def _read_positive(self, request, param, default):
        raw = request.query_params.get(param)
        if raw in (None, ""):
            return default
        try:
            value = int(raw)
        except (TypeError, ValueError):
            raise QueryValidationError({param: ["Expected number, received string"]}) from None
        if value <= 0:
            raise QueryValidationError({param: ["Number must be greater than 0"]})
        return value

    def paginate_queryset(self, queryset, request, view=None):
        page = self._read_positive(request, self.page_query_param, 1)
        limit = self._read_positive(request, self.limit_query_param, self.default_limit)

        self.count = queryset.count()
        offset = (page - 1) * limit
        return list(queryset[offset : offset + limit])

    def get_paginated_response(self, data):
        return Response({"count": self.count, "results": data})

    def get_paginated_response_schema(self, schema):
        return {
            "type": "object",
            "required": ["count", "results"],
            "properties": {
                "count": {"type": "integer", "example": 42},
                "results": schema,
            },
        }
