"""Structured JSON snapshot of a case's answers."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping

from intake_forms.models.case import ClientCase
from intake_forms.models.export import CaseSnapshot


def to_snapshot(
    case: ClientCase,
    answers: Mapping[str, Any],
    *,
    updated_at: datetime | None = None,
    exported_at: datetime | None = None,
) -> CaseSnapshot:
    """Case metadata plus the raw answer map.

    No visibility filtering is applied: feeding ``snapshot.answers`` back
    into the evaluator reproduces the same progress.
    """
    return CaseSnapshot(
        client=case.metadata(),
        answers=dict(answers),
        exported_at=exported_at or datetime.now(timezone.utc),
        last_updated=updated_at,
    )
