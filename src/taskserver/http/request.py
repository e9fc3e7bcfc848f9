"""
=============================================================================
HTTP REQUEST PARSING
=============================================================================

The server does not parse HTTP properly, and deliberately so. It decodes
whatever bytes arrived in a single read and then pulls out two things with
plain string operations:

    PUT /tasks/42 HTTP/1.1\r\n                ◄── request line
    Host: localhost:8080\r\n
    Content-Type: application/json\r\n
    \r\n                                      ◄── last blank-line boundary
    {"title": "a", "description": "b"}        ◄── body = text after it

=============================================================================
IDENTIFIER EXTRACTION
=============================================================================

    request line:   PUT /tasks/42 HTTP/1.1
    split on "/":   ["PUT ", "tasks", "42 HTTP", "1.1"]
                                       ───┬───
                                     index 2
    first token:    "42"

Only the request line is consulted. "/tasks/42/anything" still yields
"42". "/tasks/" yields "HTTP" (the start of the version), which then fails
to parse as an integer. That failure is a 500, not a 404.

=============================================================================
BODY EXTRACTION
=============================================================================

The body is whatever follows the LAST "\r\n\r\n" in the text. With no
such boundary the whole request text is treated as the body, and fails to
decode as JSON. Content-Length is ignored, and so is anything past the
read buffer.

=============================================================================
"""

import re
from dataclasses import dataclass

from ..errors import InvalidTaskId
from ..models import Task


HEADER_BODY_SEPARATOR = "\r\n\r\n"

# Range of a PostgreSQL SERIAL (int4) column.
MIN_TASK_ID = -(2 ** 31)
MAX_TASK_ID = 2 ** 31 - 1

_ID_PATTERN = re.compile(r"[+-]?[0-9]+")


@dataclass
class HTTPRequest:
    """
    A request as the server sees it: the decoded text of a single read.

    Attributes:
        text: Request bytes decoded as UTF-8, invalid sequences replaced.
    """

    text: str

    @property
    def request_line(self) -> str:
        """First line of the request, without its line terminator."""
        return self.text.partition("\n")[0].rstrip("\r")

    @property
    def method(self) -> str:
        """Method token of the request line, or "" for an empty request."""
        parts = self.request_line.split(" ", 1)
        return parts[0]

    @property
    def body(self) -> str:
        return extract_body(self.text)

    def task_id(self) -> int:
        """
        Parse the identifier segment of the request line.

        Raises:
            InvalidTaskId: Missing token, not an integer, or outside the
                           32-bit range of the id column.
        """
        return parse_task_id(extract_id(self.request_line))

    def task(self) -> Task:
        """
        Decode the body into a Task.

        Raises:
            InvalidTaskBody: See Task.from_json.
        """
        return Task.from_json(self.body)


def parse_request(raw: bytes) -> HTTPRequest:
    """
    Decode raw socket bytes into an HTTPRequest.

    Decoding never fails: bytes that are not valid UTF-8 (including a
    multi-byte character cut off by the read buffer) become U+FFFD.
    """
    return HTTPRequest(raw.decode("utf-8", errors="replace"))


def extract_id(request_line: str) -> str:
    """
    Return the identifier token of a request line, or "" if absent.

        >>> extract_id("GET /tasks/7 HTTP/1.1")
        '7'
        >>> extract_id("GET /tasks")
        ''
    """
    segments = request_line.split("/")
    if len(segments) < 3:
        return ""

    tokens = segments[2].split()
    return tokens[0] if tokens else ""


def extract_body(text: str) -> str:
    """Return the text after the last blank-line boundary."""
    return text.split(HEADER_BODY_SEPARATOR)[-1]


def parse_task_id(token: str) -> int:
    """
    Parse an identifier token as a 32-bit signed integer.

    Accepts an optional sign followed by ASCII digits and nothing else.
    """
    if not _ID_PATTERN.fullmatch(token):
        raise InvalidTaskId(token)

    value = int(token)
    if not MIN_TASK_ID <= value <= MAX_TASK_ID:
        raise InvalidTaskId(token)

    return value
