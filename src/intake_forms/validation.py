"""Answer-shape validation applied before any write.

Each question kind accepts exactly one value shape.  A value of the wrong
shape is a caller error and is rejected with ``AnswerShapeError``; nothing
is coerced.  ``None`` is accepted for every answerable kind and means "no
answer".
"""

from __future__ import annotations

from datetime import date
from typing import Any, Mapping

from intake_forms.errors import AnswerShapeError, ValidationError
from intake_forms.models.case import ClientCase
from intake_forms.models.question import (
    ChecklistQuestion,
    DateQuestion,
    MultiSelectQuestion,
    Question,
    RepeatableGroupQuestion,
    StaticDisplayQuestion,
    TEXT_KINDS,
    YesNoQuestion,
)


def _fail(question: Question, reason: str) -> AnswerShapeError:
    return AnswerShapeError(f"Answer for '{question.id}' ({question.kind}): {reason}")


def validate_answer(question: Question, value: Any) -> None:
    """Raise ``AnswerShapeError`` unless ``value`` fits the question's kind."""
    if isinstance(question, StaticDisplayQuestion):
        # Display-only: must never appear in the answer map
        raise _fail(question, "static display questions cannot be answered")

    if value is None:
        return

    if isinstance(question, YesNoQuestion):
        if not isinstance(value, bool):
            raise _fail(question, "expected true or false")
        return

    if isinstance(question, DateQuestion):
        if not isinstance(value, str):
            raise _fail(question, "expected an ISO date string")
        if value:
            try:
                date.fromisoformat(value)
            except ValueError:
                raise _fail(question, f"not an ISO date: {value!r}") from None
        return

    if question.kind in TEXT_KINDS:
        if not isinstance(value, str):
            raise _fail(question, "expected a string")
        return

    if isinstance(question, MultiSelectQuestion):
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise _fail(question, "expected a list of option labels")
        unknown = [v for v in value if v not in question.options]
        if unknown:
            raise _fail(question, f"unknown options {unknown}")
        if len(set(value)) != len(value):
            raise _fail(question, "duplicate options")
        return

    if isinstance(question, ChecklistQuestion):
        if not isinstance(value, dict):
            raise _fail(question, "expected a mapping of option id to bool")
        known = set(question.option_ids)
        for k, v in value.items():
            if k not in known:
                raise _fail(question, f"unknown option id '{k}'")
            if not isinstance(v, bool):
                raise _fail(question, f"option '{k}' must be true or false")
        return

    if isinstance(question, RepeatableGroupQuestion):
        if not isinstance(value, list):
            raise _fail(question, "expected a list of entries")
        known = set(question.field_ids)
        for i, entry in enumerate(value):
            if not isinstance(entry, dict):
                raise _fail(question, f"entry {i} must be a mapping")
            for k, v in entry.items():
                if k not in known:
                    raise _fail(question, f"entry {i} has unknown field '{k}'")
                if not isinstance(v, str):
                    raise _fail(question, f"entry {i} field '{k}' must be a string")
        return

    raise _fail(question, "unsupported question kind")


def validate_answers(case: ClientCase, answers: Mapping[str, Any]) -> None:
    """Validate a whole answer map against a case.

    Raises:
        ValidationError: if the payload is not a mapping or names a
            question the case does not have.
        AnswerShapeError: if any value has the wrong shape for its kind.
    """
    if not isinstance(answers, Mapping):
        raise ValidationError("answers must be an object")
    for qid, value in answers.items():
        try:
            question = case.get_question(qid)
        except KeyError:
            raise ValidationError(
                f"Unknown question id '{qid}' for case {case.slug}"
            ) from None
        validate_answer(question, value)
