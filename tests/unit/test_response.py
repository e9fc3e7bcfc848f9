"""
Unit tests for response serialization.
"""

from taskserver.http.response import (
    INTERNAL_ERROR_RESPONSE,
    NOT_FOUND_RESPONSE,
    OK_RESPONSE,
    HTTPResponse,
    internal_error,
    not_found,
    ok,
)
from taskserver.http.status_codes import HTTPStatus


class TestStatusLines:
    """Tests for the fixed status-line constants."""

    def test_ok(self):
        """OK carries a JSON content type and the blank line."""
        assert OK_RESPONSE == "HTTP/1.1 200 OK\r\nContent-Type: application/json\r\n\r\n"

    def test_not_found(self):
        """Not Found has no headers."""
        assert NOT_FOUND_RESPONSE == "HTTP/1.1 404 NOT FOUND\r\n\r\n"

    def test_internal_error(self):
        """Internal Error has no headers."""
        assert INTERNAL_ERROR_RESPONSE == "HTTP/1.1 500 INTERNAL ERROR\r\n\r\n"

    def test_phrases(self):
        """Status phrases match the status lines."""
        assert HTTPStatus.OK.phrase == "OK"
        assert HTTPStatus.NOT_FOUND.phrase == "NOT FOUND"
        assert HTTPStatus.INTERNAL_SERVER_ERROR.phrase == "INTERNAL ERROR"


class TestHTTPResponse:
    """Tests for HTTPResponse and its helpers."""

    def test_to_bytes(self):
        """Serialized form is the status line followed by the body."""
        response = ok("User created")
        assert response.to_bytes() == (
            b"HTTP/1.1 200 OK\r\nContent-Type: application/json\r\n\r\nUser created"
        )

    def test_no_content_length(self):
        """No Content-Length header is ever written."""
        assert b"Content-Length" not in ok('{"id":1}').to_bytes()

    def test_not_found_default_body(self):
        """The default 404 body is the unmatched-route text."""
        response = not_found()
        assert response.status == HTTPStatus.NOT_FOUND
        assert response.to_bytes() == b"HTTP/1.1 404 NOT FOUND\r\n\r\n404 not found"

    def test_not_found_custom_body(self):
        """A 404 can carry a specific body."""
        assert not_found("Task not found").body == "Task not found"

    def test_internal_error(self):
        """500 always has the same static body."""
        response = internal_error()
        assert response.status == HTTPStatus.INTERNAL_SERVER_ERROR
        assert response.to_bytes() == b"HTTP/1.1 500 INTERNAL ERROR\r\n\r\nInternal error"

    def test_utf8_body(self):
        """Non-ASCII bodies are UTF-8 encoded."""
        response = HTTPResponse(HTTPStatus.OK, "café")
        assert response.to_bytes().endswith("café".encode("utf-8"))
