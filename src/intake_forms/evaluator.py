"""FormEvaluator — visibility, completion and progress over an answer map.

Everything here is a pure function of ``(case, answers)``: nothing is
cached between calls and the answer map is never mutated.  Visibility is
display-time only, so an answer stored under a question that is currently
hidden stays in the map but is ignored by progress counting.

Visibility rules use *strict* equality: the controlling answer must have
the same type and value as the rule's ``equals``.  A missing controlling
answer therefore never matches, and ``1`` never matches ``True``.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from intake_forms.models.case import ClientCase, Section
from intake_forms.models.comment import CommentThread
from intake_forms.models.enums import HiddenAnswerPolicy
from intake_forms.models.question import (
    ChecklistQuestion,
    MultiSelectQuestion,
    Question,
    RepeatableGroupQuestion,
    StaticDisplayQuestion,
    YesNoQuestion,
)
from intake_forms.models.view import (
    FormView,
    ProgressReport,
    QuestionView,
    SectionProgress,
    SectionView,
)

logger = logging.getLogger(__name__)

_MISSING = object()


def strict_equals(left: Any, right: Any) -> bool:
    """Type-and-value equality (``True`` is not ``1``, ``None`` is not ``False``)."""
    return type(left) is type(right) and left == right


def percent(answered: int, total: int) -> int:
    """Integer percentage rounded half up; 0 when there is nothing to count."""
    if total <= 0:
        return 0
    return (200 * answered + total) // (2 * total)


class FormEvaluator:
    """Evaluates questionnaire state for a case and a flat answer map."""

    # ------------------------------------------------------------------
    # Per-question predicates
    # ------------------------------------------------------------------

    def is_visible(self, question: Question, answers: Mapping[str, Any]) -> bool:
        """True if the question has no rule or its controlling answer matches."""
        rule = question.show_if
        if rule is None:
            return True
        current = answers.get(rule.question, _MISSING)
        if current is _MISSING:
            return False
        return strict_equals(current, rule.equals)

    def is_answered(self, question: Question, value: Any) -> bool:
        """Kind-specific "has a usable answer" rule.

        - static_display: always answered
        - yes_no: value is exactly True or False
        - multi_select: non-empty list
        - checklist: at least one option checked
        - repeatable_group: non-empty list (blank entries still count)
        - text kinds: present and not the empty string
        """
        if isinstance(question, StaticDisplayQuestion):
            return True
        if isinstance(question, YesNoQuestion):
            return isinstance(value, bool)
        if isinstance(question, MultiSelectQuestion):
            return isinstance(value, list) and len(value) > 0
        if isinstance(question, ChecklistQuestion):
            return isinstance(value, dict) and any(v is True for v in value.values())
        if isinstance(question, RepeatableGroupQuestion):
            return isinstance(value, list) and len(value) > 0
        return value is not None and value != ""

    # ------------------------------------------------------------------
    # Aggregates
    # ------------------------------------------------------------------

    def visible_questions(
        self, case: ClientCase, answers: Mapping[str, Any]
    ) -> list[Question]:
        """All currently visible questions in schema order."""
        return [q for q in case.iter_questions() if self.is_visible(q, answers)]

    def _count(
        self, questions: Iterable[Question], answers: Mapping[str, Any]
    ) -> tuple[int, int]:
        answered = total = 0
        for q in questions:
            if not self.is_visible(q, answers):
                continue
            total += 1
            if self.is_answered(q, answers.get(q.id)):
                answered += 1
        return answered, total

    def compute_progress(self, case: ClientCase, answers: Mapping[str, Any]) -> int:
        """Percentage of visible questions that are answered (0..100)."""
        answered, total = self._count(case.iter_questions(), answers)
        return percent(answered, total)

    def section_progress(
        self, case: ClientCase, answers: Mapping[str, Any]
    ) -> list[SectionProgress]:
        """Per-section counts using the same rule as :meth:`compute_progress`."""
        rows = []
        for section in case.sections:
            answered, total = self._count(section.questions, answers)
            rows.append(
                SectionProgress(
                    section_id=section.id,
                    title=section.title,
                    answered=answered,
                    total=total,
                    percent=percent(answered, total),
                )
            )
        return rows

    def progress_report(
        self, case: ClientCase, answers: Mapping[str, Any]
    ) -> ProgressReport:
        return ProgressReport(
            slug=case.slug,
            progress=self.compute_progress(case, answers),
            sections=self.section_progress(case, answers),
        )

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render_form(self, case: ClientCase, answers: Mapping[str, Any]) -> FormView:
        """Project the case into visible questions with their current values.

        Sections whose questions are all hidden are still returned (with an
        empty question list) so the UI keeps stable section navigation.
        """
        sections = [self._render_section(case, s, answers) for s in case.sections]
        return FormView(
            slug=case.slug,
            case_name=case.case_name,
            case_number=case.case_number,
            progress=self.compute_progress(case, answers),
            sections=sections,
        )

    def _render_section(
        self, case: ClientCase, section: Section, answers: Mapping[str, Any]
    ) -> SectionView:
        views = [
            self._render_question(q, answers)
            for q in section.questions
            if self.is_visible(q, answers)
        ]
        return SectionView(
            id=section.id,
            title=section.title,
            description=section.description,
            upload_url=case.upload_url if section.upload_link else None,
            questions=views,
        )

    def _render_question(
        self, q: Question, answers: Mapping[str, Any]
    ) -> QuestionView:
        options = None
        fields = None
        default_value = None

        if isinstance(q, StaticDisplayQuestion):
            value = q.value
        else:
            value = answers.get(q.id)

        if isinstance(q, MultiSelectQuestion):
            options = list(q.options)
        elif isinstance(q, ChecklistQuestion):
            options = [o.model_dump() for o in q.options]
        elif isinstance(q, RepeatableGroupQuestion):
            fields = [f.model_dump() for f in q.fields]
        elif isinstance(q, YesNoQuestion):
            default_value = q.default_value

        return QuestionView(
            id=q.id,
            kind=q.kind,
            label=q.label,
            placeholder=q.placeholder,
            reference=q.reference,
            options=options,
            fields=fields,
            default_value=default_value,
            value=value,
            answered=self.is_answered(q, value),
        )

    # ------------------------------------------------------------------
    # Policies / navigation
    # ------------------------------------------------------------------

    def apply_hidden_policy(
        self,
        case: ClientCase,
        answers: Mapping[str, Any],
        policy: HiddenAnswerPolicy,
    ) -> dict[str, Any]:
        """Return the answer map to persist under the given policy.

        ``retain`` returns an unchanged copy.  ``clear`` drops answers whose
        question is hidden, repeating until nothing else becomes hidden
        (clearing a controlling answer can hide its dependants).
        """
        result = dict(answers)
        if policy is HiddenAnswerPolicy.RETAIN:
            return result

        while True:
            hidden = [
                q.id
                for q in case.iter_questions()
                if q.id in result and not self.is_visible(q, result)
            ]
            if not hidden:
                break
            for qid in hidden:
                del result[qid]
            logger.debug("Cleared hidden answers for %s: %s", case.slug, hidden)
        return result

    def commented_question_ids(
        self, case: ClientCase, thread: CommentThread
    ) -> list[str]:
        """Question ids with at least one comment, in schema order."""
        return [q.id for q in case.iter_questions() if thread.get(q.id)]
