"""
Query-string filtering and ordering for transactions and promotions.
"""

from django.db.models import Q
from rest_framework.filters import BaseFilterBackend

from core.exceptions import QueryValidationError
from core.query import filter_by_lifecycle, query_bool, query_choice, query_int
from loyalty.models import Promotion, Transaction

TRANSACTION_ORDERINGS = {
    "typeAsc": ["type", "-id"],
    "typeDesc": ["-type", "-id"],
    "dateNewest": ["-created_at", "-id"],
    "dateOldest": ["created_at", "id"],
    "amountHighest": ["-amount", "-id"],
    "amountLowest": ["amount", "-id"],
}

ALL_TRANSACTION_FILTERS = frozenset(
    ["name", "createdBy", "suspicious", "promotionId", "type", "relatedId", "eventId", "amount", "orderBy"]
)


class TransactionFilterBackend(BaseFilterBackend):
    """
    Composes the transaction filters and the requested ordering.
    Views narrow the accepted filters with `transaction_filters`.
    """

    def filter_queryset(self, request, queryset, view):
        allowed = getattr(view, "transaction_filters", ALL_TRANSACTION_FILTERS)
        params = request.query_params

        name = params.get("name") if "name" in allowed else None
        if name:
            queryset = queryset.filter(Q(user__utorid__icontains=name) | Q(user__name__icontains=name))

        created_by = params.get("createdBy") if "createdBy" in allowed else None
        if created_by:
            queryset = queryset.filter(created_by__utorid=created_by)

        if "suspicious" in allowed:
            suspicious = query_bool(params, "suspicious")
            if suspicious is not None:
                queryset = queryset.filter(suspicious=suspicious)

        tx_type = query_choice(params, "type", [value for value, _ in Transaction.TRANSACTION_TYPES])
        if tx_type:
            queryset = queryset.filter(type=tx_type)

        related_id = query_int(params, "relatedId", minimum=1)
        if related_id is not None:
            if not tx_type:
                raise QueryValidationError({"relatedId": ["relatedId must be used together with type"]})
            queryset = queryset.filter(related_id=related_id)

        event_id = query_int(params, "eventId", minimum=1)
        if event_id is not None:
            queryset = queryset.filter(type=Transaction.EVENT, related_id=event_id)

        promotion_id = query_int(params, "promotionId", minimum=1)
        if promotion_id is not None:
            queryset = queryset.filter(promotions__id=promotion_id).distinct()

        queryset = self._filter_amount(params, queryset)

        order_by = query_choice(params, "orderBy", list(TRANSACTION_ORDERINGS)) or "dateNewest"
        return queryset.order_by(*TRANSACTION_ORDERINGS[order_by])

    def _filter_amount(self, params, queryset):
        amount = query_int(params, "amount")
        operator = query_choice(params, "operator", ["gte", "lte"])

        if amount is None and operator is None:
            return queryset
        if amount is None:
            raise QueryValidationError({"amount": ["amount is required when operator is given"]})
        if operator is None:
            raise QueryValidationError({"operator": ["operator is required when amount is given"]})

        return queryset.filter(**{f"amount__{operator}": amount})


class PromotionFilterBackend(BaseFilterBackend):
    """
    Managers see every promotion and may filter by lifecycle.
    Everyone else only sees active promotions, minus one-time promotions they already used.
    """

    def filter_queryset(self, request, queryset, view):
        params = request.query_params
        user = request.user

        name = params.get("name")
        if name:
            queryset = queryset.filter(name__icontains=name)

        promotion_type = query_choice(params, "type", [value for value, _ in Promotion.PROMOTION_TYPES])
        if promotion_type:
            queryset = queryset.filter(type=promotion_type)

        if user.is_manager_or_higher:
            return filter_by_lifecycle(queryset, params)

        queryset = queryset.active()
        if not user.is_cashier_or_higher:
            queryset = queryset.exclude(pk__in=user.used_promotions.filter(type=Promotion.ONE_TIME).values("pk"))
        return queryset
