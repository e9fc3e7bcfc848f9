"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The server only ever answers with three statuses:

    ┌────────┬──────────────────┬─────────────────────────────────────────┐
    │  Code  │  Reason phrase   │  When                                   │
    ├────────┼──────────────────┼─────────────────────────────────────────┤
    │  200   │  OK              │  Operation succeeded                    │
    │  404   │  NOT FOUND       │  No such task, or no matching route     │
    │  500   │  INTERNAL ERROR  │  Bad id, bad body, database failure     │
    └────────┴──────────────────┴─────────────────────────────────────────┘

There is no 400-class "bad request": a malformed id or body is reported as
a 500 like any other failure.

The reason phrases are upper-case and "INTERNAL ERROR" is not the RFC 7231
phrase. Clients that parse the status line only look at the code.

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    Status codes used by the server.

        >>> HTTPStatus.OK == 200
        True
        >>> HTTPStatus.NOT_FOUND.phrase
        'NOT FOUND'
    """

    OK = 200
    NOT_FOUND = 404
    INTERNAL_SERVER_ERROR = 500

    @property
    def phrase(self) -> str:
        return STATUS_PHRASES[self]


STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.NOT_FOUND: "NOT FOUND",
    HTTPStatus.INTERNAL_SERVER_ERROR: "INTERNAL ERROR",
}
