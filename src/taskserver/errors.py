"""
Error taxonomy for the task server.

Every exception here ends up as the same static Internal-Error response on
the wire; the subclasses only exist so the server log says what went wrong.
Not-Found is never raised: a missing row or an unmatched route is an
ordinary handler result.

    TaskServerError
    ├── InvalidTaskId      id segment missing or not a 32-bit integer
    ├── InvalidTaskBody    body is not a JSON object with title/description
    ├── StoreError         connecting to or querying the database failed
    └── SchemaInitError    startup table creation failed (fatal)
"""


class TaskServerError(Exception):
    """Base class for all task server errors."""


class InvalidTaskId(TaskServerError):
    """The identifier token could not be parsed as a task id."""

    def __init__(self, token: str):
        self.token = token
        super().__init__(f"Invalid task id: {token!r}")


class InvalidTaskBody(TaskServerError):
    """The request body could not be decoded into a Task."""


class StoreError(TaskServerError):
    """A database connection or statement failed."""


class SchemaInitError(StoreError):
    """Creating the tasks table at startup failed."""
