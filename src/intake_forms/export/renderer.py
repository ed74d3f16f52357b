"""ReportRenderer — Jinja2-based human-readable report for a case.

Loads templates from the ``template/`` directory.  The template only lays
out the document; kind-specific value rendering happens here so the
output is identical regardless of template whitespace.

Only visible questions with a usable answer are emitted, in schema order.
Static display questions are emitted with their literal value.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

import jinja2

from intake_forms.constants import NO_LABEL, YES_LABEL
from intake_forms.evaluator import FormEvaluator
from intake_forms.models.case import ClientCase
from intake_forms.models.question import (
    ChecklistQuestion,
    MultiSelectQuestion,
    Question,
    RepeatableGroupQuestion,
    StaticDisplayQuestion,
    YesNoQuestion,
)

REPORT_TEMPLATE = "report.md.jinja2"


class ReportRenderer:
    """Renders ``(case, answers)`` into a Markdown report.

    Args:
        template_dir: optional override for the template directory.
            Defaults to ``template/`` sibling of this module.
        evaluator: optional evaluator instance (shared with the server).
    """

    def __init__(
        self,
        template_dir: Path | None = None,
        evaluator: FormEvaluator | None = None,
    ) -> None:
        if template_dir is None:
            template_dir = Path(__file__).parent / "template"
        self._env = jinja2.Environment(
            loader=jinja2.FileSystemLoader(str(template_dir)),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        self._evaluator = evaluator or FormEvaluator()

    def to_report(self, case: ClientCase, answers: Mapping[str, Any]) -> str:
        """Render the full report text.  Deterministic for equal inputs."""
        sections = []
        for section in case.sections:
            entries = []
            for q in section.questions:
                if not self._evaluator.is_visible(q, answers):
                    continue
                value = q.value if isinstance(q, StaticDisplayQuestion) else answers.get(q.id)
                if not self._evaluator.is_answered(q, value):
                    continue
                entries.append({"heading": self._heading(q), "body": format_value(q, value)})
            sections.append(
                {
                    "title": section.title,
                    "description": section.description,
                    "entries": entries,
                }
            )

        template = self._env.get_template(REPORT_TEMPLATE)
        return template.render(
            case=case,
            header=_header_lines(case),
            sections=sections,
        )

    @staticmethod
    def _heading(q: Question) -> str:
        if q.reference:
            return f"**{q.label}** ({q.reference})"
        return f"**{q.label}**"


def _header_lines(case: ClientCase) -> list[str]:
    lines = [f"Case No. {case.case_number}", f"Client: {case.client_name}"]
    if case.decedent:
        if case.decedent_dod:
            lines.append(f"Decedent: {case.decedent} (DOD: {case.decedent_dod})")
        else:
            lines.append(f"Decedent: {case.decedent}")
    return lines


def format_value(question: Question, value: Any) -> str:
    """Kind-specific text for one answered question.

    - yes_no: ``Yes`` / ``No``
    - multi_select: comma-joined labels in stored order
    - checklist: ``- label`` per checked option, in option order
    - repeatable_group: ``Entry N:`` blocks listing non-empty sub-fields
    - everything else: the literal string
    """
    if isinstance(question, YesNoQuestion):
        return YES_LABEL if value is True else NO_LABEL
    if isinstance(question, MultiSelectQuestion):
        return ", ".join(value)
    if isinstance(question, ChecklistQuestion):
        return "\n".join(f"- {o.label}" for o in question.options if value.get(o.id) is True)
    if isinstance(question, RepeatableGroupQuestion):
        blocks = []
        for idx, entry in enumerate(value, start=1):
            lines = [f"  Entry {idx}:"]
            for field in question.fields:
                field_value = entry.get(field.id)
                if field_value:
                    lines.append(f"    {field.label}: {field_value}")
            blocks.append("\n".join(lines))
        return "\n\n".join(blocks)
    return str(value)
