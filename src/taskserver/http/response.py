"""
=============================================================================
HTTP RESPONSE WRITER
=============================================================================

A response is one of three fixed status-line constants followed directly
by a body string:

    HTTP/1.1 200 OK\r\n                        ┐
    Content-Type: application/json\r\n         ├── OK_RESPONSE
    \r\n                                       ┘
    {"id":1,"title":"a","description":"b"}     ←── body

    HTTP/1.1 404 NOT FOUND\r\n\r\n             ←── NOT_FOUND_RESPONSE
    Task not found

    HTTP/1.1 500 INTERNAL ERROR\r\n\r\n        ←── INTERNAL_ERROR_RESPONSE
    Internal error

No Content-Length is sent, even though OK claims a JSON content type and
some OK bodies are plain text ("User created"). The client learns where the
body ends when the server closes the connection.

=============================================================================
"""

from dataclasses import dataclass

from .status_codes import HTTPStatus


OK_RESPONSE = "HTTP/1.1 200 OK\r\nContent-Type: application/json\r\n\r\n"
NOT_FOUND_RESPONSE = "HTTP/1.1 404 NOT FOUND\r\n\r\n"
INTERNAL_ERROR_RESPONSE = "HTTP/1.1 500 INTERNAL ERROR\r\n\r\n"

STATUS_LINES = {
    HTTPStatus.OK: OK_RESPONSE,
    HTTPStatus.NOT_FOUND: NOT_FOUND_RESPONSE,
    HTTPStatus.INTERNAL_SERVER_ERROR: INTERNAL_ERROR_RESPONSE,
}


@dataclass
class HTTPResponse:
    """
    A status plus a body, ready to be written to the socket.

    Handlers build these with ok(), not_found() and internal_error() rather
    than directly.
    """

    status: HTTPStatus = HTTPStatus.OK
    body: str = ""

    @property
    def status_line(self) -> str:
        """The fixed head for this status, including the blank line."""
        return STATUS_LINES[self.status]

    def to_bytes(self) -> bytes:
        """Serialize as status-line constant + body, UTF-8 encoded."""
        return (self.status_line + self.body).encode("utf-8")


def ok(body: str = "") -> HTTPResponse:
    """200 with the given body (a JSON document or a confirmation string)."""
    return HTTPResponse(HTTPStatus.OK, body)


def not_found(body: str = "404 not found") -> HTTPResponse:
    """404. The default body is the one used for unmatched routes."""
    return HTTPResponse(HTTPStatus.NOT_FOUND, body)


def internal_error() -> HTTPResponse:
    """500 with the static body. No error detail ever reaches the client."""
    return HTTPResponse(HTTPStatus.INTERNAL_SERVER_ERROR, "Internal error")
