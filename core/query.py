"""
Helpers for parsing typed query-string filters.
"""

from django.utils import timezone

from core.exceptions import BadRequest, QueryValidationError

TRUE_VALUES = {"true", "1"}
FALSE_VALUES = {"false", "0"}


def query_bool(params, name):
    """
    Returns True/False for "true"/"false" (also "1"/"0"), None when absent.
    """
    raw = params.get(name)
    if raw in (None, ""):
        return None
    value = raw.lower()
    if value in TRUE_VALUES:
        return True
    if value in FALSE_VALUES:
        return False
    raise QueryValidationError({name: ["Expected boolean, received string"]})


def query_int(params, name, minimum=None):
    raw = params.get(name)
    if raw in (None, ""):
        return None
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise QueryValidationError({name: ["Expected number, received string"]}) from None
    if minimum is not None and value < minimum:
        raise QueryValidationError({name: [f"Number must be greater than or equal to {minimum}"]})
    return value


def query_choice(params, name, choices):
    raw = params.get(name)
    if raw in (None, ""):
        return None
    if raw not in choices:
        options = " | ".join(f"'{choice}'" for choice in choices)
        raise QueryValidationError({name: [f"Invalid enum value. Expected {options}, received '{raw}'"]})
    return raw


def filter_by_lifecycle(queryset, params, now=None):
    """
    Applies ?started / ?ended against start_time and end_time.
    """
    started = query_bool(params, "started")
    ended = query_bool(params, "ended")
    if started is not None and ended is not None:
        raise BadRequest('Cannot specify both "started" and "ended" simultaneously.')

    now = now or timezone.now()
    if started is not None:
        queryset = queryset.filter(start_time__lte=now) if started else queryset.filter(start_time__gt=now)
    if ended is not None:
        queryset = queryset.filter(end_time__lte=now) if ended else queryset.filter(end_time__gt=now)
    return queryset
