"""Question kind models for intake questionnaires.

Each question kind maps to a specific UI component and answer shape:

  Answerable (value lives in the answer map under the question id):
    - short_text: single-line text input           -> str
    - long_text: multi-line text area              -> str
    - date: ISO calendar date picker               -> str (YYYY-MM-DD)
    - yes_no: two-way toggle                       -> bool
    - multi_select: chips, pick any number         -> list[str] of option labels
    - checklist: checkbox per option id            -> dict[option_id, bool]
    - repeatable_group: list of sub-field entries  -> list[dict[field_id, str]]

  Display-only:
    - static_display: a fixed literal shown to the reader; never read from
      or written to the answer map

The discriminated ``Question`` union uses ``kind`` as its discriminator.
The ``question_mapper`` dict maps kind strings to their Pydantic classes.
"""

from __future__ import annotations

from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator


# --- Visibility ---

class VisibilityRule(BaseModel):
    """Show the owning question only while ``answers[question] == equals``.

    YAML accepts either the full mapping or a bare controlling id, which
    means "shown when that question is answered yes"::

        show_if: hasOtherNames
        show_if: {question: speaksEnglish, equals: false}
    """

    question: str
    equals: Any = True


# --- Shared option/field models ---

class ChecklistOption(BaseModel):
    """A checkable item with a stable id and display label."""

    id: str
    label: str


class SubField(BaseModel):
    """A text leaf inside one entry of a repeatable group."""

    id: str
    label: str
    kind: Literal["short_text", "long_text"] = "short_text"


# --- Base question type ---

class BaseQuestion(BaseModel):
    """Fields shared by all question kinds."""

    id: str
    label: str
    placeholder: Optional[str] = None
    # Free-form external reference (statute, rule, form line) shown beside
    # the label and carried into exports.
    reference: Optional[str] = None
    show_if: Optional[VisibilityRule] = None

    @field_validator("show_if", mode="before")
    @classmethod
    def _expand_show_if(cls, v):
        if isinstance(v, str):
            return {"question": v}
        return v

    @property
    def is_conditional(self) -> bool:
        """True if the question carries a visibility predicate."""
        return self.show_if is not None


# --- Answerable kinds ---

class ShortTextQuestion(BaseQuestion):
    """Single-line text input."""

    kind: Literal["short_text"] = "short_text"


class LongTextQuestion(BaseQuestion):
    """Multi-line text area."""

    kind: Literal["long_text"] = "long_text"


class DateQuestion(BaseQuestion):
    """Calendar date, stored as an ISO ``YYYY-MM-DD`` string."""

    kind: Literal["date"] = "date"


class YesNoQuestion(BaseQuestion):
    """Two-way toggle.

    ``default_value`` is a display hint for the UI only.  It is never
    written to the answer map and never counts as an answer.
    """

    kind: Literal["yes_no"] = "yes_no"
    default_value: Optional[bool] = None


class MultiSelectQuestion(BaseQuestion):
    """Pick any number of the fixed option labels."""

    kind: Literal["multi_select"] = "multi_select"
    options: List[str]

    @model_validator(mode="after")
    def _chk(self):
        if not self.options:
            raise ValueError(f"multi_select {self.id} must declare options")
        if len(set(self.options)) != len(self.options):
            raise ValueError(f"multi_select {self.id} has duplicate options")
        return self


class ChecklistQuestion(BaseQuestion):
    """One checkbox per option; the answer maps option id -> checked."""

    kind: Literal["checklist"] = "checklist"
    options: List[ChecklistOption]

    @model_validator(mode="after")
    def _chk(self):
        ids = [o.id for o in self.options]
        if not ids:
            raise ValueError(f"checklist {self.id} must declare options")
        if len(set(ids)) != len(ids):
            raise ValueError(f"checklist {self.id} has duplicate option ids")
        return self

    @property
    def option_ids(self) -> list[str]:
        return [o.id for o in self.options]


class RepeatableGroupQuestion(BaseQuestion):
    """A growable list of entries, each a fixed set of text sub-fields."""

    kind: Literal["repeatable_group"] = "repeatable_group"
    fields: List[SubField]

    @model_validator(mode="after")
    def _chk(self):
        ids = [f.id for f in self.fields]
        if not ids:
            raise ValueError(f"repeatable_group {self.id} must declare fields")
        if len(set(ids)) != len(ids):
            raise ValueError(f"repeatable_group {self.id} has duplicate field ids")
        return self

    @property
    def field_ids(self) -> list[str]:
        return [f.id for f in self.fields]


# --- Display-only kind ---

class StaticDisplayQuestion(BaseQuestion):
    """Fixed literal shown to the reader (e.g. the case number)."""

    kind: Literal["static_display"] = "static_display"
    value: str


# --- Discriminated union of all question kinds ---

Question = Annotated[
    Union[
        ShortTextQuestion,
        LongTextQuestion,
        DateQuestion,
        YesNoQuestion,
        MultiSelectQuestion,
        ChecklistQuestion,
        RepeatableGroupQuestion,
        StaticDisplayQuestion,
    ],
    Field(discriminator="kind"),
]

# Maps kind string -> Pydantic class for dynamic deserialization from YAML.
question_mapper = {
    "short_text": ShortTextQuestion,
    "long_text": LongTextQuestion,
    "date": DateQuestion,
    "yes_no": YesNoQuestion,
    "multi_select": MultiSelectQuestion,
    "checklist": ChecklistQuestion,
    "repeatable_group": RepeatableGroupQuestion,
    "static_display": StaticDisplayQuestion,
}

# Kinds whose answers are plain strings.
TEXT_KINDS: frozenset[str] = frozenset({"short_text", "long_text", "date"})
