"""intake_forms — Client intake questionnaire SDK.

Public API:
    CaseStore       — loads versioned case YAML into typed models with lookup helpers
    FormEvaluator   — visibility, answered rules, progress and rendered form views
    ReportRenderer  — Markdown report export (Jinja2)
    to_snapshot     — structured JSON snapshot export
    validate_answers / validate_answer — reject wrong-shaped answers before a write
    append_comment / remove_comment    — comment thread operations
    summarize_cases / days_until_deadline — attorney dashboard helpers
"""

from intake_forms.casebook import CaseStore
from intake_forms.comments import append_comment, remove_comment
from intake_forms.dashboard import days_until_deadline, summarize_cases
from intake_forms.evaluator import FormEvaluator
from intake_forms.export import ReportRenderer, to_snapshot
from intake_forms.validation import validate_answer, validate_answers

__all__ = [
    "CaseStore",
    "FormEvaluator",
    "ReportRenderer",
    "append_comment",
    "days_until_deadline",
    "remove_comment",
    "summarize_cases",
    "to_snapshot",
    "validate_answer",
    "validate_answers",
]
