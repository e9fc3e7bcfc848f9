"""
HTTP components: request text handling, fixed-status responses, and the
prefix router.

    request.py       bytes → HTTPRequest, id and body extraction
    response.py      HTTPResponse, status-line constants, ok/not_found/internal_error
    router.py        ordered prefix routes
    status_codes.py  the three statuses the server speaks
"""

from .request import HTTPRequest, parse_request, extract_id, extract_body, parse_task_id
from .response import (
    HTTPResponse,
    OK_RESPONSE,
    NOT_FOUND_RESPONSE,
    INTERNAL_ERROR_RESPONSE,
    ok,
    not_found,
    internal_error,
)
from .router import Router, Route
from .status_codes import HTTPStatus

__all__ = [
    # Requests
    "HTTPRequest",
    "parse_request",
    "extract_id",
    "extract_body",
    "parse_task_id",

    # Responses
    "HTTPResponse",
    "OK_RESPONSE",
    "NOT_FOUND_RESPONSE",
    "INTERNAL_ERROR_RESPONSE",
    "ok",
    "not_found",
    "internal_error",

    # Routing
    "Router",
    "Route",

    # Status codes
    "HTTPStatus",
]
