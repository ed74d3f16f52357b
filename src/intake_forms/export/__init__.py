"""Export formatting for attorney review.

Provides ``ReportRenderer`` (Markdown report via Jinja2) and
``to_snapshot`` (structured JSON snapshot), plus the download file names.
"""

from intake_forms.export.renderer import ReportRenderer, format_value
from intake_forms.export.snapshot import to_snapshot


def report_filename(slug: str) -> str:
    return f"{slug}-responses.md"


def snapshot_filename(slug: str) -> str:
    return f"{slug}-responses.json"


__all__ = [
    "ReportRenderer",
    "format_value",
    "report_filename",
    "snapshot_filename",
    "to_snapshot",
]
