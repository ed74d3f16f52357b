"""Console preview of a case questionnaire.

Prints every section with each question's visibility and answered state
for a given answer map, followed by per-section and overall progress.
Useful when authoring a new ``cases/<slug>/v<N>.yaml`` file.

Usage::

    intake-preview alvarado-pool
    intake-preview alvarado-pool --answers answers.json
    intake-preview --list
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Mapping

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from intake_forms.casebook import CaseStore
from intake_forms.errors import NotFound
from intake_forms.evaluator import FormEvaluator
from intake_forms.models.case import ClientCase


def render_preview(
    case: ClientCase,
    answers: Mapping[str, Any],
    console: Console,
    evaluator: FormEvaluator | None = None,
) -> None:
    """Print the case outline and progress to ``console``."""
    evaluator = evaluator or FormEvaluator()

    console.rule(f"[bold]{escape(case.case_name)}")
    console.print(f"  Case No. {escape(case.case_number)}  Client: {escape(case.client_name)}")
    if case.deadline:
        console.print(f"  Deadline: {case.deadline.isoformat()}")
    console.print()

    for section in case.sections:
        console.print(f"[bold cyan]{escape(section.title)}[/] [dim]({section.id})[/]")
        for q in section.questions:
            visible = evaluator.is_visible(q, answers)
            if not visible:
                marker = "[dim]-[/]"
            elif evaluator.is_answered(q, answers.get(q.id)):
                marker = "[green]✓[/]"
            else:
                marker = "[yellow]○[/]"
            rule = ""
            if q.show_if is not None:
                rule = f" [dim]if {q.show_if.question} == {q.show_if.equals!r}[/]"
            kind = escape(f"[{q.kind}]")
            console.print(f"  {marker} {escape(q.label)} [dim]{q.id} {kind}[/]{rule}")
        console.print()

    table = Table(title="Progress", show_lines=False)
    table.add_column("Section")
    table.add_column("Answered", justify="right")
    table.add_column("Visible", justify="right")
    table.add_column("%", justify="right")
    for row in evaluator.section_progress(case, answers):
        table.add_row(escape(row.title), str(row.answered), str(row.total), str(row.percent))
    console.print(table)
    console.print(f"[bold]Overall progress:[/] {evaluator.compute_progress(case, answers)}%")


def _load_answers(path: str | None) -> dict[str, Any]:
    if path is None:
        return {}
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    # Accept either a bare answer map or a saved snapshot/export
    if isinstance(data, dict) and isinstance(data.get("answers"), dict):
        return data["answers"]
    return data


def cli() -> None:
    """Console-script entry point for ``intake-preview``."""
    parser = argparse.ArgumentParser(
        description="Preview a client intake questionnaire and its progress.",
    )
    parser.add_argument("slug", nargs="?", help="Case slug (directory name under cases/)")
    parser.add_argument("--version", type=int, default=None, help="Schema version (default: latest)")
    parser.add_argument("--answers", default=None, help="JSON file with an answer map or snapshot")
    parser.add_argument("--case-dir", default=None, help="Override the case directory")
    parser.add_argument("--list", action="store_true", help="List known case slugs and exit")
    args = parser.parse_args()

    console = Console()
    store = CaseStore(args.case_dir)
    store.load()

    if args.list or not args.slug:
        for slug in store.slugs():
            versions = ", ".join(f"v{v}" for v in store.versions(slug))
            console.print(f"  {slug} ({versions})")
        sys.exit(0)

    try:
        case = store.get_case(args.slug, args.version)
    except NotFound:
        console.print(f"[red]Unknown case:[/] '{escape(args.slug)}'")
        console.print(f"Available: {', '.join(store.slugs())}")
        sys.exit(1)

    render_preview(case, _load_answers(args.answers), console)


if __name__ == "__main__":
    cli()
