"""Structured export snapshot for machine consumption."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel


class CaseSnapshot(BaseModel):
    """Case metadata plus the raw answer map.

    ``answers`` is stored exactly as persisted: answers to questions that
    are currently hidden are included.
    """

    client: dict[str, Any]
    answers: dict[str, Any]
    exported_at: datetime
    last_updated: datetime | None = None
