"""Rendered form and progress models — the contract between the evaluator
and API callers.

These are read-only projections of a case + answer map: only currently
visible questions appear, each with its current value and whether it
counts as answered.  They are recomputed on every call.
"""

from typing import Any

from pydantic import BaseModel


class QuestionView(BaseModel):
    """Flattened, visible question for UI consumers."""

    id: str
    kind: str
    label: str
    placeholder: str | None = None
    reference: str | None = None
    # multi_select: [label, ...]; checklist: [{id, label}, ...]
    options: list[Any] | None = None
    # repeatable_group: [{id, label, kind}, ...]
    fields: list[dict] | None = None
    # yes_no display default (never an answer)
    default_value: bool | None = None
    value: Any = None
    answered: bool = False


class SectionView(BaseModel):
    """A section with its visible questions."""

    id: str
    title: str
    description: str | None = None
    upload_url: str | None = None
    questions: list[QuestionView]


class FormView(BaseModel):
    """The whole form as the client or reviewing attorney sees it now."""

    slug: str
    case_name: str
    case_number: str
    progress: int
    sections: list[SectionView]


class SectionProgress(BaseModel):
    """Per-section counts using the same rule as overall progress."""

    section_id: str
    title: str
    answered: int
    total: int
    percent: int


class ProgressReport(BaseModel):
    """Overall progress plus the per-section breakdown."""

    slug: str
    progress: int
    sections: list[SectionProgress]
