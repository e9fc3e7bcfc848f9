"""
=============================================================================
TASK OPERATION HANDLERS
=============================================================================

One method per operation. Each takes the parsed request, performs exactly
one store call, and maps the result to a response:

    ┌──────────┬──────────────────┬──────────────────────────────────────┐
    │ Handler  │ Route prefix     │ Result                               │
    ├──────────┼──────────────────┼──────────────────────────────────────┤
    │ create   │ POST /tasks      │ 200 "User created"                   │
    │ read_one │ GET /tasks/      │ 200 task JSON / 404 "Task not found" │
    │ read_all │ GET /tasks       │ 200 JSON array ([] when empty)       │
    │ update   │ PUT /tasks/      │ 200 "User updated"                   │
    │ delete   │ DELETE /tasks/   │ 200 "User deleted" / 404             │
    └──────────┴──────────────────┴──────────────────────────────────────┘

Handlers never build a 500 themselves. A bad id, a bad body or a store
failure raises a TaskServerError, and the server turns every exception into
the same static Internal-Error response.

Update answers "User updated" even when no row had the id, while delete
checks the affected-row count and answers 404. Clients cannot tell an
update of a missing task from a successful one.

=============================================================================
"""

import logging

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, ok, not_found
from ..http.router import Router
from ..models import dump_json
from ..store import TaskStore


logger = logging.getLogger(__name__)


TASK_CREATED = "User created"
TASK_UPDATED = "User updated"
TASK_DELETED = "User deleted"
TASK_NOT_FOUND = "Task not found"
DELETE_NOT_FOUND = "User not found"


class TaskHandler:
    """
    CRUD handlers for the tasks resource.

    Usage:
        handler = TaskHandler(TaskStore(config.database_url))
        handler.register(router)
    """

    def __init__(self, store: TaskStore):
        self.store = store

    def register(self, router: Router) -> Router:
        """
        Mount all five handlers on a router, in match priority order.

        "GET /tasks/" is registered before "GET /tasks" so single-task
        reads are not swallowed by the list route.
        """
        router.post("/tasks", name="create")(self.create)
        router.get("/tasks/", name="read_one")(self.read_one)
        router.get("/tasks", name="read_all")(self.read_all)
        router.put("/tasks/", name="update")(self.update)
        router.delete("/tasks/", name="delete")(self.delete)
        return router

    def create(self, request: HTTPRequest) -> HTTPResponse:
        task = request.task()
        self.store.create(task)
        logger.debug(f"Created task title={task.title!r}")
        return ok(TASK_CREATED)

    def read_one(self, request: HTTPRequest) -> HTTPResponse:
        task_id = request.task_id()
        task = self.store.get(task_id)
        if task is None:
            return not_found(TASK_NOT_FOUND)
        return ok(task.to_json())

    def read_all(self, request: HTTPRequest) -> HTTPResponse:
        tasks = self.store.list()
        return ok(dump_json([task.to_dict() for task in tasks]))

    def update(self, request: HTTPRequest) -> HTTPResponse:
        task_id = request.task_id()
        task = request.task()
        updated = self.store.update(task_id, task)
        if not updated:
            logger.debug(f"Update matched no task with id={task_id}")
        return ok(TASK_UPDATED)

    def delete(self, request: HTTPRequest) -> HTTPResponse:
        task_id = request.task_id()
        if self.store.delete(task_id) == 0:
            return not_found(DELETE_NOT_FOUND)
        return ok(TASK_DELETED)
