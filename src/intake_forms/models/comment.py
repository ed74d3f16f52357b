"""Inline field comments.

A comment thread maps question id -> ordered list of comments.  Threads
are append-only except for explicit removal by index ("resolve"), and a
question key disappears entirely once its last comment is removed.
"""

from datetime import datetime
from typing import Dict, List

from pydantic import BaseModel

from .enums import Role


class Comment(BaseModel):
    """A single timestamped remark attributed to a role."""

    role: Role
    text: str
    timestamp: datetime


# question id -> comments in insertion order
CommentThread = Dict[str, List[Comment]]
