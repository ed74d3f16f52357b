"""Case-level models: sections, the client case, and listing rows.

A ``ClientCase`` mirrors one ``cases/<slug>/v<N>.yaml`` file.  It is built
once at startup and never mutated afterwards.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Iterator, List, Optional

from pydantic import BaseModel, ConfigDict, model_validator

from .question import Question


class Section(BaseModel):
    """Named, ordered group of questions.

    ``upload_link`` asks the UI to show the case's document-upload link at
    the top of the section (used by the documents checklist).
    """

    id: str
    title: str
    description: Optional[str] = None
    upload_link: bool = False
    questions: List[Question]


class ClientCase(BaseModel):
    """One client's questionnaire plus case metadata.

    Validation enforces that question ids are unique across all sections
    and that every visibility rule points at an existing question.
    """

    model_config = ConfigDict(frozen=True)

    slug: str
    version: int = 1
    client_name: str
    case_name: str
    case_number: str
    decedent: Optional[str] = None
    decedent_dod: Optional[str] = None
    deadline: Optional[date] = None
    upload_url: Optional[str] = None
    sections: List[Section]

    @model_validator(mode="after")
    def _chk(self):
        seen: set[str] = set()
        for q in self.iter_questions():
            if q.id in seen:
                raise ValueError(f"Duplicate question id '{q.id}' in case {self.slug}")
            seen.add(q.id)
        for q in self.iter_questions():
            if q.show_if is not None and q.show_if.question not in seen:
                raise ValueError(
                    f"Question '{q.id}' in case {self.slug} depends on unknown "
                    f"question '{q.show_if.question}'"
                )
        return self

    def iter_questions(self) -> Iterator[Question]:
        """Yield every question in schema order."""
        for section in self.sections:
            yield from section.questions

    def get_question(self, question_id: str) -> Question:
        """Look up a question by id.

        Raises:
            KeyError: if no question has that id.
        """
        for q in self.iter_questions():
            if q.id == question_id:
                return q
        raise KeyError(question_id)

    @property
    def question_ids(self) -> list[str]:
        return [q.id for q in self.iter_questions()]

    def metadata(self) -> dict:
        """Case metadata without the question schema (used by exports)."""
        return {
            "slug": self.slug,
            "version": self.version,
            "client_name": self.client_name,
            "case_name": self.case_name,
            "case_number": self.case_number,
            "decedent": self.decedent,
            "decedent_dod": self.decedent_dod,
            "deadline": self.deadline.isoformat() if self.deadline else None,
        }


class ScopeEntry(BaseModel):
    """One row of the global slug -> last-update index."""

    scope: str
    updated_at: datetime


class CaseSummary(BaseModel):
    """Attorney dashboard row for one case."""

    slug: str
    client_name: str
    case_name: str
    deadline: Optional[date] = None
    days_until_deadline: Optional[int] = None
    updated_at: Optional[datetime] = None
    has_responses: bool = False
    progress: int = 0


class StoredResponses(BaseModel):
    """Answer map plus last update time; both None when nothing was saved."""

    answers: Optional[dict[str, Any]] = None
    updated_at: Optional[datetime] = None

    @property
    def is_empty(self) -> bool:
        return self.answers is None
