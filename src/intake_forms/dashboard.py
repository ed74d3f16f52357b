"""Attorney dashboard helpers: deadline countdown and per-case summaries."""

from __future__ import annotations

import math
from datetime import date, datetime, time, timezone
from typing import Any, Mapping

from intake_forms.casebook import CaseStore
from intake_forms.evaluator import FormEvaluator
from intake_forms.models.case import CaseSummary, ClientCase

_SECONDS_PER_DAY = 24 * 60 * 60


def days_until_deadline(case: ClientCase, now: datetime | date) -> int | None:
    """Whole days until the case deadline, rounded up.

    The deadline is taken as the start of its day.  With a ``datetime``
    any part of a day still remaining counts as a full day; with a plain
    ``date`` the result is the calendar difference.  Negative once the
    deadline has passed; ``None`` when the case has no deadline.
    """
    if case.deadline is None:
        return None
    if not isinstance(now, datetime):
        return (case.deadline - now).days

    deadline_start = datetime.combine(case.deadline, time.min, tzinfo=now.tzinfo)
    seconds = (deadline_start - now).total_seconds()
    return math.ceil(seconds / _SECONDS_PER_DAY)


def summarize_cases(
    store: CaseStore,
    index: Mapping[str, datetime],
    answers_by_slug: Mapping[str, Mapping[str, Any]],
    *,
    evaluator: FormEvaluator | None = None,
    now: datetime | None = None,
) -> list[CaseSummary]:
    """One dashboard row per known case.

    Rows are ordered most recently updated first; cases that have never
    been saved come last, in slug order.

    Args:
        store: loaded case store (latest schema version of each case is used)
        index: slug -> last update time, from the global responses index
        answers_by_slug: slug -> stored answer map (missing means none)
    """
    evaluator = evaluator or FormEvaluator()
    now = now or datetime.now(timezone.utc)

    rows = []
    for case in store.cases():
        answers = answers_by_slug.get(case.slug) or {}
        rows.append(
            CaseSummary(
                slug=case.slug,
                client_name=case.client_name,
                case_name=case.case_name,
                deadline=case.deadline,
                days_until_deadline=days_until_deadline(case, now),
                updated_at=index.get(case.slug),
                has_responses=len(answers) > 0,
                progress=evaluator.compute_progress(case, answers),
            )
        )

    updated = [r for r in rows if r.updated_at is not None]
    never = [r for r in rows if r.updated_at is None]
    updated.sort(key=lambda r: r.updated_at, reverse=True)
    return updated + never
