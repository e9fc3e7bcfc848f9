"""
Task model and its JSON form.

    Request body (decode)             Response body (encode)
    ─────────────────────             ──────────────────────
    {"title": "a",                    {"id":1,"title":"a","description":"b"}
     "description": "b"}

On decode the id is ignored even when the client sends one; ids are only
ever assigned by the store.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .errors import InvalidTaskBody


@dataclass
class Task:
    """
    The single managed resource.

    Attributes:
        title: Task title.
        description: Task description.
        id: Store-assigned primary key. None until the row is inserted.
    """

    title: str
    description: str
    id: Optional[int] = None

    @classmethod
    def from_json(cls, text: str) -> "Task":
        """
        Decode a request body into a Task.

        Args:
            text: Raw body text.

        Returns:
            Task without an id.

        Raises:
            InvalidTaskBody: Body is not JSON, not an object, or lacks a
                             string title/description.
        """
        try:
            data = json.loads(text)
        except ValueError as e:
            raise InvalidTaskBody(f"Body is not valid JSON: {e}") from e

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: Any) -> "Task":
        if not isinstance(data, dict):
            raise InvalidTaskBody(f"Expected a JSON object, got {type(data).__name__}")

        for name in ("title", "description"):
            if name not in data:
                raise InvalidTaskBody(f"Missing field: {name}")
            if not isinstance(data[name], str):
                raise InvalidTaskBody(f"Field {name} must be a string")
            # json.loads lets "\ud800" escapes through as lone surrogates.
            try:
                data[name].encode("utf-8")
            except UnicodeEncodeError as e:
                raise InvalidTaskBody(f"Field {name} is not valid Unicode") from e

        return cls(title=data["title"], description=data["description"])

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
        }

    def to_json(self) -> str:
        return dump_json(self.to_dict())


def dump_json(data: Any) -> str:
    """Serialize to compact JSON, leaving non-ASCII characters unescaped."""
    return json.dumps(data, separators=(",", ":"), ensure_ascii=False)
