"""
API error types and the exception handler that shapes every error response.

Validation failures become a list of {"path", "message"} items, everything else
becomes a single {"error": "<message>"} body.
"""

import logging

from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.settings import api_settings
from rest_framework.views import exception_handler
from rest_framework_simplejwt.exceptions import InvalidToken

logger = logging.getLogger(__name__)


class BadRequest(exceptions.APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Bad request."
    default_code = "bad_request"


class Conflict(exceptions.APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Conflict."
    default_code = "conflict"


class Gone(exceptions.APIException):
    status_code = status.HTTP_410_GONE
    default_detail = "Resource is no longer available."
    default_code = "gone"


class QueryValidationError(exceptions.ValidationError):
    """
    Validation error raised while parsing query parameters.
    Paths are reported under "query." instead of "body.".
    """

    path_prefix = "query"


def flatten_errors(detail, path):
    """
    Walks a DRF error structure and yields {"path", "message"} items.
    Object-level errors stay on the parent path.
    """
    if isinstance(detail, dict):
        for key, value in detail.items():
            if key == api_settings.NON_FIELD_ERRORS_KEY:
                yield from flatten_errors(value, path)
            else:
                yield from flatten_errors(value, f"{path}.{key}")
    elif isinstance(detail, list):
        for item in detail:
            yield from flatten_errors(item, path)
    else:
        yield {"path": path, "message": str(detail)}


def _first_message(detail):
    if isinstance(detail, dict):
        detail = next(iter(detail.values()), "")
    if isinstance(detail, list):
        return _first_message(detail[0]) if detail else ""
    return str(detail)


def api_exception_handler(exc, context):
    """
    Custom exception handler that returns consistent error responses.
    """
    response = exception_handler(exc, context)

    if response is None:
        logger.exception("Unhandled exception in %s", context.get("view").__class__.__name__)
        return Response({"error": "Internal Server Error"}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    if isinstance(exc, exceptions.ValidationError):
        prefix = getattr(exc, "path_prefix", "body")
        response.data = {"error": list(flatten_errors(exc.detail, prefix))}
        return response

    if isinstance(exc, InvalidToken):
        message = "Invalid or expired token."
    elif isinstance(exc, exceptions.NotAuthenticated):
        message = "Unauthorized"
    elif isinstance(exc, exceptions.Throttled):
        message = "Too many requests. Please try again later."
    else:
        message = _first_message(getattr(exc, "detail", response.data))

    if response.status_code >= 500:
        logger.error("API Exception: %s", exc, exc_info=True)
    else:
        logger.info("API error %s: %s", response.status_code, message)

    response.data = {"error": message}
    return response
