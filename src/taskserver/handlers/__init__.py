"""
Request handlers.

    from taskserver.handlers import TaskHandler

    handler = TaskHandler(store)
    handler.register(router)
"""

from .tasks import TaskHandler

__all__ = [
    "TaskHandler",
]
